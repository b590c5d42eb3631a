"""Unit tests for the bot lifecycle state machine."""

import pytest

from src.bh_common.enums import BotStatus
from src.bh_common.errors import InvalidBotTransitionError
from src.bh_deploy.domain.state_machine import can_transition, ensure_transition, is_terminal

ALLOWED = [
    (BotStatus.PENDING, BotStatus.DEPLOYING),
    (BotStatus.PENDING, BotStatus.FAILED),
    (BotStatus.DEPLOYING, BotStatus.DEPLOYED),
    (BotStatus.DEPLOYING, BotStatus.FAILED),
    (BotStatus.DEPLOYED, BotStatus.STOPPED),
]


@pytest.mark.parametrize(("current", "target"), ALLOWED)
def test_allowed_transitions(current: BotStatus, target: BotStatus) -> None:
    assert can_transition(current, target)
    ensure_transition("bot-1", current, target)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (BotStatus.PENDING, BotStatus.DEPLOYED),
        (BotStatus.DEPLOYED, BotStatus.DEPLOYING),
        (BotStatus.FAILED, BotStatus.DEPLOYING),
        (BotStatus.STOPPED, BotStatus.DEPLOYED),
        (BotStatus.DEPLOYING, BotStatus.PENDING),
    ],
)
def test_forbidden_transitions(current: BotStatus, target: BotStatus) -> None:
    assert not can_transition(current, target)
    with pytest.raises(InvalidBotTransitionError):
        ensure_transition("bot-1", current, target)


def test_terminal_states() -> None:
    assert is_terminal(BotStatus.FAILED)
    assert is_terminal(BotStatus.STOPPED)
    assert not is_terminal(BotStatus.PENDING)
    assert not is_terminal(BotStatus.DEPLOYED)


def test_nothing_returns_to_pending() -> None:
    assert all(not can_transition(s, BotStatus.PENDING) for s in BotStatus)
