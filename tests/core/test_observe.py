from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List

import pytest

from saucer.core import (
    Observation,
    ObservationKind,
    filter_observer,
    filter_with,
    logging_observer,
    no_op_observer,
    redacted_repr,
    tee_observer,
)


@dataclass(frozen=True)
class Fetch:
    url: str
    returns: Callable[[str], str]


def test_observation_constructors():
    assert Observation.event("m").kind is ObservationKind.EVENT
    assert Observation.effect("r").kind is ObservationKind.EFFECT
    msg = Observation.manager_msg("timers", "tick")
    assert msg.kind is ObservationKind.MANAGER_MSG
    assert msg.manager == "timers"
    assert Observation.event("m") == Observation.event("m")


def test_tee_and_filter():
    seen: List[Observation] = []
    other: List[Observation] = []
    observer = tee_observer(
        filter_with(lambda o: o.kind is ObservationKind.EVENT, seen.append),
        other.append,
        no_op_observer(),
    )

    observer(Observation.event("a"))
    observer(Observation.effect("b"))

    assert [o.data for o in seen] == ["a"]
    assert [o.data for o in other] == ["a", "b"]


def test_logging_observer_uses_kind_loggers(caplog: pytest.LogCaptureFixture):
    observer = logging_observer(logging.INFO)
    with caplog.at_level(logging.INFO):
        observer(Observation.event("hello"))
        observer(Observation.effect(Fetch("https://example.test", str)))
        observer(Observation.manager_msg("chat", "ping"))

    by_logger = {record.name: record.getMessage() for record in caplog.records}
    assert by_logger["saucer.core.Msg"] == "'hello'"
    assert by_logger["saucer.core.Cmd"] == "Fetch(url='https://example.test', returns=<redacted>)"
    assert by_logger["saucer.core.SelfMsg"] == "chat: 'ping'"


def test_filter_observer_skips_rejected(caplog: pytest.LogCaptureFixture):
    observer = filter_observer(lambda o: o.kind is ObservationKind.EFFECT, logging.INFO)
    with caplog.at_level(logging.INFO):
        observer(Observation.event("quiet"))
    assert not caplog.records


def test_redacted_repr_hides_callbacks():
    assert redacted_repr([Fetch("u", str)]) == "[Fetch(url='u', returns=<redacted>)]"
    assert redacted_repr((1,)) == "(1,)"
    assert redacted_repr(len) == "<redacted>"
    assert redacted_repr({"a": 1}) == "{'a': 1}"
