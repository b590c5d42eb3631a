"""Domain models for bh_referral."""

import secrets
import string
from dataclasses import dataclass
from datetime import datetime

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_SUFFIX_LEN = 6


@dataclass
class Referral:
    id: str
    referrer_id: str
    referred_id: str                 # UNIQUE: at most one referral per new account
    bonus_given: bool
    created_at: datetime | None = None


def generate_referral_code(username: str) -> str:
    """username + 6 random [A-Z0-9] characters, e.g. alice -> aliceK3Q9ZD."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(REFERRAL_SUFFIX_LEN))
    return f"{username}{suffix}"
