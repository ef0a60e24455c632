from __future__ import annotations

import allure

from terminal_agent.agent import EventBus, LoopEvent

pytestmark = [
    allure.epic("Agent Loop"),
    allure.feature("Observable Events"),
]


def test_emit_reaches_subscribers_in_order() -> None:
    bus = EventBus()
    received: list[tuple[str, str, str]] = []
    bus.subscribe(LoopEvent.ITERATION, lambda a, u: received.append(("first", a, u)))
    bus.subscribe(LoopEvent.ITERATION, lambda a, u: received.append(("second", a, u)))

    bus.emit(LoopEvent.ITERATION, "assistant", "user")

    assert received == [("first", "assistant", "user"), ("second", "assistant", "user")]


def test_failing_subscriber_does_not_block_others(caplog) -> None:
    bus = EventBus()
    received: list[list] = []

    def broken(_history) -> None:
        raise RuntimeError("subscriber bug")

    bus.subscribe(LoopEvent.MAX_ACTIONS_REACHED, broken)
    bus.subscribe(LoopEvent.MAX_ACTIONS_REACHED, received.append)

    bus.emit(LoopEvent.MAX_ACTIONS_REACHED, ["snapshot"])

    assert received == [["snapshot"]]
    assert "Subscriber for loop:max_actions failed" in caplog.text


def test_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    received: list[str] = []
    unsubscribe = bus.subscribe(LoopEvent.ITERATION, lambda a, _u: received.append(a))

    bus.emit(LoopEvent.ITERATION, "one", "x")
    unsubscribe()
    unsubscribe()
    bus.emit(LoopEvent.ITERATION, "two", "x")

    assert received == ["one"]


def test_emit_without_subscribers_is_a_no_op() -> None:
    EventBus().emit(LoopEvent.ITERATION, "a", "u")
