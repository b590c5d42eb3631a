from pydantic import BaseModel, Field, field_validator

from src.bh_community.domain.models import MESSAGE_MAX_LENGTH, CommunityMessage


class PostMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=MESSAGE_MAX_LENGTH)

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message must not be blank")
        return v


class MessageResponse(BaseModel):
    id: str
    user_id: str
    username: str
    message: str
    created_at: str | None

    @classmethod
    def from_message(cls, msg: CommunityMessage) -> "MessageResponse":
        return cls(
            id=msg.id,
            user_id=msg.user_id,
            username=msg.username,
            message=msg.message,
            created_at=msg.created_at.isoformat() if msg.created_at else None,
        )
