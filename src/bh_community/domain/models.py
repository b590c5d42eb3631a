from dataclasses import dataclass
from datetime import datetime

MESSAGE_MAX_LENGTH = 1000
RECENT_LIMIT = 50


@dataclass
class CommunityMessage:
    id: str
    user_id: str
    username: str
    message: str
    created_at: datetime | None = None
