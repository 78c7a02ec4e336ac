import shutil
import sys
from pathlib import Path
from typing import Callable, Iterator, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
FIXTURES = Path(__file__).resolve().parent / "fixtures"
for path in (ROOT, SRC):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from saucer.build.models import GenerationRequest  # noqa: E402

FIXTURE_PACKAGES = tuple(sorted(path.name for path in FIXTURES.iterdir() if path.is_dir()))


@pytest.fixture()
def fixtures_root(tmp_path: Path) -> Path:
    """A private copy of every fixture project; generation writes next to host files."""
    target = tmp_path / "fixtures"
    shutil.copytree(FIXTURES, target, ignore=shutil.ignore_patterns("__pycache__", "runtime"))
    return target


@pytest.fixture()
def make_request(fixtures_root: Path) -> Callable[..., GenerationRequest]:
    def _make(project: str, **overrides) -> GenerationRequest:
        return GenerationRequest(manifest_dir=fixtures_root / project, **overrides)

    return _make


@pytest.fixture()
def import_fixtures(fixtures_root: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Put every fixture ``src`` dir on sys.path and forget the imported modules afterwards."""
    for package in FIXTURE_PACKAGES:
        monkeypatch.syspath_prepend(str(fixtures_root / package / "src"))
    yield fixtures_root
    stale: List[str] = [
        name for name in sys.modules if name.split(".")[0] in FIXTURE_PACKAGES
    ]
    for name in stale:
        del sys.modules[name]


@pytest.fixture()
def write_project(tmp_path: Path) -> Callable[..., Path]:
    """Lay out throwaway src-layout projects under ``tmp_path/projects``."""

    def _write(name: str, *, pyproject: str, files: dict) -> Path:
        return _layout(tmp_path / "projects", name, pyproject=pyproject, files=files)

    return _write


def _layout(root: Path, name: str, *, pyproject: str, files: dict) -> Path:
    project = root / name
    module = name.replace("-", "_")
    (project / "src" / module).mkdir(parents=True, exist_ok=True)
    (project / "pyproject.toml").write_text(pyproject, encoding="utf-8")
    for relative, content in files.items():
        path = project / "src" / module / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return project
