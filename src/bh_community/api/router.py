"""bh_community REST API: all endpoints require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_common.database import get_db_session
from src.bh_common.response import ApiResponse, respond
from src.bh_community.application.schemas import MessageResponse, PostMessageRequest
from src.bh_community.application.service import CommunityService
from src.bh_community.domain.models import RECENT_LIMIT
from src.bh_gateway.auth.dependencies import get_current_user
from src.bh_gateway.user.db_models import UserModel

router = APIRouter(prefix="/community", tags=["community"])

_service = CommunityService()


@router.get("/messages")
async def list_messages(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(RECENT_LIMIT, ge=1, le=RECENT_LIMIT),
) -> ApiResponse:
    messages = await _service.list_recent(db, limit)
    return respond(request, [MessageResponse.from_message(m).model_dump() for m in messages])


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def post_message(
    body: PostMessageRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    msg = await _service.post(db, str(current_user.id), body.message)
    return respond(request, MessageResponse.from_message(msg).model_dump(), "Message posted")
