from __future__ import annotations

from pathlib import Path

import pytest

from saucer.build.errors import ConfigurationError, DiscoveryError
from saucer.build.host import candidate_files, has_marker, import_aliases, locate_host, resolve_reconciler
from saucer.build.managers import discover_managers
from saucer.build.manifest import read_manifest

APP_TOML = """\
[project]
name = "app"

[tool.uv.sources]
mock-chat-manager = {{ path = "{chat}" }}
{extra}
"""


def _host_and_managers(project: Path):
    manifest = read_manifest(project)
    managers, _ = discover_managers(manifest)
    return manifest, locate_host(manifest), managers


def test_locates_marked_entry_point(fixtures_root: Path):
    manifest = read_manifest(fixtures_root / "mock_app")

    host = locate_host(manifest)

    assert host.path == fixtures_root / "mock_app" / "src" / "mock_app" / "__init__.py"
    assert "include runtime" in host.source


def test_marker_must_be_a_whole_comment_line():
    assert has_marker("x = 1\n# saucer: include runtime\n")
    assert has_marker("    #saucer: include runtime   \n")
    assert not has_marker('text = "# saucer: include runtime"\n')


def test_no_marker(write_project):
    project = write_project("app", pyproject='[project]\nname = "app"\n', files={"__init__.py": "x = 1\n"})
    with pytest.raises(DiscoveryError, match="no file contains"):
        locate_host(read_manifest(project))


def test_more_than_one_marker(write_project):
    marker = "# saucer: include runtime\n"
    project = write_project(
        "app",
        pyproject='[project]\nname = "app"\n',
        files={"__init__.py": marker, "main.py": marker},
    )
    with pytest.raises(DiscoveryError, match="more than one file"):
        locate_host(read_manifest(project))


def test_candidates_include_scripts_and_examples(write_project):
    project = write_project("app", pyproject='[project]\nname = "app"\n', files={"app.py": ""})
    (project / "examples" / "nested").mkdir(parents=True)
    (project / "examples" / "nested" / "demo.py").write_text("# saucer: include runtime\n", encoding="utf-8")

    manifest = read_manifest(project)

    assert [path.name for path in candidate_files(manifest)] == ["app.py", "demo.py"]
    assert locate_host(manifest).path.name == "demo.py"


def test_import_aliases():
    import ast

    tree = ast.parse("import a.b as ab\nimport c.d\nfrom e.f import g as h\nfrom . import local\n")
    assert import_aliases(tree) == {"ab": "a", "c": "c", "h": "e"}


def test_reconciler_from_runtime_call(fixtures_root: Path):
    manifest, host, managers = _host_and_managers(fixtures_root / "mock_chat_app")
    assert resolve_reconciler(manifest, host, managers).module_name == "mock_chat_manager"


def test_core_reconciler_from_saucer(fixtures_root: Path):
    manifest, host, managers = _host_and_managers(fixtures_root / "mock_app")
    assert resolve_reconciler(manifest, host, managers).module_name == "saucer"


def _chat_app(write_project, fixtures_root: Path, host: str, extra: str = "") -> Path:
    chat = (fixtures_root / "mock_chat_manager").as_posix()
    return write_project(
        "app",
        pyproject=APP_TOML.format(chat=chat, extra=extra),
        files={"__init__.py": host},
    )


def test_reconciler_keyword_through_alias(write_project, fixtures_root: Path):
    host = (
        "# saucer: include runtime\n"
        "from mock_chat_manager import echo_reconciler as echo\n"
        "from .runtime.sync import Runtime\n"
        "def build(app):\n"
        "    return Runtime(app.init, app.update, app.view, reconciler=echo())\n"
    )
    manifest, found, managers = _host_and_managers(_chat_app(write_project, fixtures_root, host))
    assert resolve_reconciler(manifest, found, managers).module_name == "mock_chat_manager"


def test_explicit_reconciler_wins(write_project, fixtures_root: Path):
    host = "# saucer: include runtime\nimport saucer\nRuntime(1, 2, 3, saucer.no_op_reconciler())\n"
    project = _chat_app(write_project, fixtures_root, host, extra='\n[tool.saucer]\nreconciler = "mock-chat-manager"\n')
    manifest, found, managers = _host_and_managers(project)
    assert resolve_reconciler(manifest, found, managers).module_name == "mock_chat_manager"


def test_explicit_reconciler_must_be_registered(write_project, fixtures_root: Path):
    project = _chat_app(
        write_project,
        fixtures_root,
        "# saucer: include runtime\n",
        extra='\n[tool.saucer]\nreconciler = "nowhere"\n',
    )
    manifest, found, managers = _host_and_managers(project)
    with pytest.raises(ConfigurationError, match="not a registered manager"):
        resolve_reconciler(manifest, found, managers)


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("x = 1\n", "found no Runtime"),
        ("import json\nRuntime(1, 2, 3, json.loads)\n", "does not come from a registered manager"),
        ("Runtime(1, 2, 3, reconcilers[0])\n", "cannot trace the reconciler"),
    ],
)
def test_reconciler_heuristic_failures(write_project, fixtures_root: Path, body: str, message: str):
    project = _chat_app(write_project, fixtures_root, "# saucer: include runtime\n" + body)
    manifest, found, managers = _host_and_managers(project)
    with pytest.raises(DiscoveryError, match=message):
        resolve_reconciler(manifest, found, managers)
