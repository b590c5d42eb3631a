"""Global enums: must match DB CHECK constraints exactly.

See alembic/versions/003_create_accounts_and_ledger.py and 005_create_bots.py.
"""

from enum import Enum


class LedgerEventKind(str, Enum):
    DAILY_CLAIM = "daily_claim"
    REFERRAL_BONUS = "referral_bonus"
    DEPLOYMENT_DEBIT = "deployment_debit"
    ADMIN_GRANT = "admin_grant"


class BotStatus(str, Enum):
    PENDING = "pending"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"
    STOPPED = "stopped"


class DeploymentLogType(str, Enum):
    DEPLOYMENT = "deployment"
    BUILD = "build"
    ERROR = "error"
    INFO = "info"


class ReferenceType(str, Enum):
    """ledger_events.reference_type values."""
    BOT = "BOT"
    REFERRAL = "REFERRAL"
    ADMIN = "ADMIN"
