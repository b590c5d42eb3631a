# src/bh_admin/api/router.py
"""Admin REST API. Every route re-checks is_admin on the caller's users row."""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_admin.application.service import AdminService
from src.bh_common.database import get_db_session
from src.bh_common.response import ApiResponse, respond
from src.bh_deploy.application.schemas import MAX_ENV_VARS, AdminBotResponse, BotResponse
from src.bh_gateway.auth.dependencies import require_admin
from src.bh_gateway.user.db_models import UserModel

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class UpdateEnvRequest(BaseModel):
    env_vars: dict[str, str] = Field(..., max_length=MAX_ENV_VARS)


class GrantRequest(BaseModel):
    amount: int = Field(..., gt=0, le=1_000_000)
    description: str = Field("Admin grant", min_length=1, max_length=500)


@router.get("/bots")
async def list_all_bots(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    bots = await _service.list_all_bots(db)
    return respond(request, [AdminBotResponse.from_owned(b).model_dump() for b in bots])


@router.put("/bots/{bot_id}/env")
async def update_bot_env(
    bot_id: uuid.UUID,
    body: UpdateEnvRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    bot = await _service.update_bot_env(db, str(bot_id), body.env_vars, str(admin.id))
    return respond(
        request, BotResponse.from_bot(bot).model_dump(), "Environment variables updated"
    )


@router.get("/stats")
async def get_stats(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return respond(request, await _service.get_stats(db))


@router.post("/users/{user_id}/grant")
async def grant_coins(
    user_id: uuid.UUID,
    body: GrantRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.grant_coins(
        db, str(user_id), body.amount, body.description, str(admin.id)
    )
    return respond(request, data.model_dump(), f"{body.amount} coins granted")


@router.get("/ledger/verify")
async def verify_ledger(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return respond(request, await _service.verify_ledger(db))
