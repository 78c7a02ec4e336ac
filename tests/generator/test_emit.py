from __future__ import annotations

import ast
from pathlib import Path

import pytest

from saucer.build.coordinator import generate_runtime
from saucer.build.emit.common import HEADER
from saucer.build.emit.helpers import render_helper_module, validate_helper
from saucer.build.emit.request import render_core_module
from saucer.build.errors import EmissionError
from saucer.build.managers import discover_managers
from saucer.build.manifest import read_manifest
from saucer.build.models import GenerationRequest

SINGLE_TOML = """\
[project]
name = "single"

[tool.saucer]
has_templates = true

[tool.hatch.build]
exclude = ["*.tea.py"]

[tool.uv.sources]
mock-time-manager = {{ path = "{manager}" }}
"""

SINGLE_HOST = """\
# saucer: include runtime
import saucer

from .runtime.single import app
from .runtime.sync import Runtime

runtime = Runtime(app.init, app.update, app.view, saucer.no_op_reconciler())
"""

SINGLE_TEMPLATE = """\
from __future__ import annotations

from mock_time_manager.command import notify_after
from saucer import Cmd


def init():
    return 0, notify_after(1.0, lambda now: now)


def update(model, msg):
    return model, Cmd.none()


def view(model):
    return model
"""


def _functions(source: str):
    return [node.name for node in ast.parse(source).body if isinstance(node, ast.FunctionDef)]


def _classes(source: str):
    return [node.name for node in ast.parse(source).body if isinstance(node, ast.ClassDef)]


def test_one_manager_one_helper_scenario(write_project, fixtures_root: Path):
    project = write_project(
        "single",
        pyproject=SINGLE_TOML.format(manager=(fixtures_root / "mock_time_manager").as_posix()),
        files={"__init__.py": SINGLE_HOST, "app.tea.py": SINGLE_TEMPLATE},
    )

    result = generate_runtime(GenerationRequest(manifest_dir=project))
    files = result.files

    assert sorted(files) == [
        "__init__.py",
        "mock_time_manager.py",
        "request.py",
        "single/__init__.py",
        "single/app.py",
        "sync.py",
    ]
    assert _functions(files["mock_time_manager.py"]) == ["notify_after"]
    request = files["request.py"]
    assert "VARIANTS = ('Core', 'Time')" in request
    assert [name for name in _classes(request) if name.startswith("Request")] == [
        "Request",
        "RequestCore",
        "RequestTime",
    ]
    assert "SelfMsg = NoneType" in request
    assert all(text.startswith(HEADER) for text in files.values())
    assert result.output_dir == project / "src" / "single" / "runtime"


def test_generated_request_module_for_ports_and_self_messages(fixtures_root: Path):
    ports = generate_runtime(GenerationRequest(manifest_dir=fixtures_root / "mock_port_app")).files["request.py"]
    assert "VARIANTS = ('Core', 'Ports')" in ports
    assert "class PortsRequestOutboundCount(PortsRequest):" in ports
    assert "    value: int" in ports
    assert _functions(ports) == ["outbound_count"]

    chat = generate_runtime(GenerationRequest(manifest_dir=fixtures_root / "mock_chat_app")).files["request.py"]
    assert "class SelfMsgChat(SelfMsg):" in chat
    assert "    value: mock_chat_manager.ChatManagerMsg" in chat
    assert "NoneType" not in chat


def test_ports_module_exposes_one_handle_per_port(fixtures_root: Path):
    files = generate_runtime(GenerationRequest(manifest_dir=fixtures_root / "mock_port_app")).files

    ports = files["ports.py"]
    classes = _classes(ports)

    assert [name for name in classes if name.endswith("PortIn")] == ["IncrementPortPortIn", "SetCountPortIn"]
    assert [name for name in classes if name.endswith("PortOut")] == ["OutboundCountPortOut"]
    assert "    def send(self, value: int) -> None:" in ports
    assert "    outbound_count: asyncio.Queue" in ports
    assert '"port:outbound_count": self._receivers.outbound_count,' in files["sync.py"]
    assert files["mock_port_app/app.py"].count("def outbound_count") == 0
    assert "from ..request import outbound_count" in files["mock_port_app/app.py"]


def test_helper_module_reimports_annotation_names(fixtures_root: Path):
    managers, _ = discover_managers(read_manifest(fixtures_root / "mock_app"))
    http = next(m for m in managers if m.module_name == "mock_http_manager")

    source = render_helper_module(http, ["get"])

    assert "from typing import Callable" in source
    assert "from mock_http_manager.requests import HttpResponse" in source
    assert "from mock_http_manager import requests as _requests" in source
    assert "def get(url: str, returns: Callable[[HttpResponse], Msg]) -> Cmd:" in source
    assert "return Cmd.single(RequestHttp(_requests.get(url, returns)))" in source
    assert "from .request import Cmd, RequestHttp" in source
    assert "from ..request import Cmd, RequestHttp" in render_helper_module(http, ["get"], level=2)


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ("def other() -> TimeRequest[Msg]:\n    ...\n", "not a public function"),
        ("def _hidden() -> TimeRequest[Msg]:\n    ...\n", "not a public function"),
        ("def helper(x: int):\n    ...\n", "must declare a return type"),
        ("def helper(x: int) -> HttpRequest[Msg]:\n    ...\n", "returns HttpRequest"),
        ("def helper(x: int) -> TimeRequest[int]:\n    ...\n", "generic over Msg"),
        ("def helper(self, x: int) -> TimeRequest[Msg]:\n    ...\n", "not a method"),
        ("def helper(*xs: int) -> TimeRequest[Msg]:\n    ...\n", r"\*args"),
    ],
)
def test_invalid_helpers(fixtures_root: Path, source: str, message: str):
    managers, _ = discover_managers(read_manifest(fixtures_root / "mock_app"))
    timers = next(m for m in managers if m.module_name == "mock_time_manager")
    tree = ast.parse(source)
    name = "_hidden" if "_hidden" in source else "helper"
    func = next((node for node in tree.body if node.name == name), None)

    with pytest.raises(EmissionError, match=message):
        validate_helper(timers, func, name)


def test_helper_missing_from_requests_file(write_project, fixtures_root: Path):
    project = write_project(
        "single",
        pyproject=SINGLE_TOML.format(manager=(fixtures_root / "mock_time_manager").as_posix()),
        files={
            "__init__.py": SINGLE_HOST,
            "app.tea.py": SINGLE_TEMPLATE.replace("notify_after", "notify_later"),
        },
    )
    with pytest.raises(EmissionError, match="notify_later"):
        generate_runtime(GenerationRequest(manifest_dir=project))


def test_unknown_core_helper():
    assert "def shutdown() -> Cmd:" in render_core_module(["shutdown"])
    with pytest.raises(EmissionError, match="no helper named 'restart'"):
        render_core_module(["restart"])


def test_helper_module_reimports_default_value_names(fixtures_root: Path):
    managers, _ = discover_managers(read_manifest(fixtures_root / "mock_app"))
    timers = next(m for m in managers if m.module_name == "mock_time_manager")

    source = render_helper_module(timers, ["later"])

    assert "from mock_time_manager.requests import DEFAULT_DELAY" in source
    assert "def later(returns: Callable[[float], Msg], delay: float=DEFAULT_DELAY) -> Cmd:" in source
    assert "return Cmd.single(RequestTime(_requests.later(returns, delay)))" in source
