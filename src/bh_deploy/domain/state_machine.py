"""Bot lifecycle state machine.

    pending ──► deploying ──► deployed ──► stopped
       │            │
       └──► failed ◄┘

failed and stopped are terminal. Moves are driven by the provisioning
platform's status reports, never by a timer.
"""

from src.bh_common.enums import BotStatus
from src.bh_common.errors import InvalidBotTransitionError

ALLOWED_TRANSITIONS: dict[BotStatus, frozenset[BotStatus]] = {
    BotStatus.PENDING: frozenset({BotStatus.DEPLOYING, BotStatus.FAILED}),
    BotStatus.DEPLOYING: frozenset({BotStatus.DEPLOYED, BotStatus.FAILED}),
    BotStatus.DEPLOYED: frozenset({BotStatus.STOPPED}),
    BotStatus.FAILED: frozenset(),
    BotStatus.STOPPED: frozenset(),
}


def can_transition(current: BotStatus, target: BotStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def is_terminal(status: BotStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def ensure_transition(bot_id: str, current: BotStatus, target: BotStatus) -> None:
    if not can_transition(current, target):
        raise InvalidBotTransitionError(bot_id, current.value, target.value)
