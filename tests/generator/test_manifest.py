from __future__ import annotations

from pathlib import Path

import pytest

from saucer.build.errors import ConfigurationError
from saucer.build.manifest import module_name_for, read_manifest, require_source_root, source_root


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "pyproject.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_reads_identity_requirements_and_metadata(fixtures_root: Path):
    manifest = read_manifest(fixtures_root / "mock_time_manager")

    assert manifest.package_name == "mock-time-manager"
    assert manifest.module_name == "mock_time_manager"
    assert manifest.requirements == ["saucer"]
    assert manifest.metadata.effect_manager is True
    assert manifest.metadata.request_type == "TimeRequest"
    assert manifest.metadata.self_msg_type == "()"
    assert manifest.lookup("tool", "saucer", "manager_type") == "TimeManager"
    assert manifest.lookup("tool", "missing", "key", default="x") == "x"


def test_path_dependencies_are_sorted_and_resolved(fixtures_root: Path):
    manifest = read_manifest(fixtures_root / "mock_app" / "pyproject.toml")

    deps = manifest.path_dependencies()

    assert [name for name, _ in deps] == ["mock-http-manager", "mock-time-manager"]
    assert deps[0][1] == (fixtures_root / "mock_http_manager").resolve()


@pytest.mark.parametrize(
    ("project", "expected"),
    [("mock_app", True), ("mock_port_app", True), ("mock_widget", True), ("mock_time_manager", False)],
)
def test_template_exclusions_from_hatch_and_setuptools(fixtures_root: Path, project: str, expected: bool):
    assert read_manifest(fixtures_root / project).excludes_templates() is expected


def test_missing_manifest_is_a_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="manifest not found"):
        read_manifest(tmp_path)


def test_malformed_manifest(tmp_path: Path):
    _write(tmp_path, "[project\nname = 1")
    with pytest.raises(ConfigurationError, match="malformed manifest"):
        read_manifest(tmp_path)


def test_missing_project_name(tmp_path: Path):
    _write(tmp_path, "[tool.saucer]\nhas_templates = true\n")
    with pytest.raises(ConfigurationError, match=r"\[project\].name"):
        read_manifest(tmp_path)


def test_wrong_metadata_types_are_rejected(tmp_path: Path):
    _write(tmp_path, '[project]\nname = "demo"\n\n[tool.saucer]\neffect_manager = "yes"\n')
    with pytest.raises(ConfigurationError, match="effect_manager"):
        read_manifest(tmp_path)


def test_source_root_prefers_src_layout(tmp_path: Path):
    _write(tmp_path, '[project]\nname = "demo-pkg"\n')
    manifest = read_manifest(tmp_path)
    assert source_root(manifest) is None
    with pytest.raises(ConfigurationError, match="no package directory"):
        require_source_root(manifest)

    (tmp_path / "demo_pkg").mkdir()
    assert source_root(manifest) == tmp_path / "demo_pkg"
    (tmp_path / "src" / "demo_pkg").mkdir(parents=True)
    assert source_root(manifest) == tmp_path / "src" / "demo_pkg"


def test_module_name_for():
    assert module_name_for("my-cool.pkg") == "my_cool_pkg"
