"""bh_deploy REST API: the caller's own bots; all endpoints require JWT."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_common.database import get_db_session
from src.bh_common.response import ApiResponse, respond
from src.bh_deploy.application.schemas import (
    BotResponse,
    DeployBotRequest,
    DeploymentLogItem,
)
from src.bh_deploy.application.service import DeploymentGate
from src.bh_gateway.auth.dependencies import get_current_user
from src.bh_gateway.user.db_models import UserModel

router = APIRouter(prefix="/bots", tags=["bots"])

_gate = DeploymentGate()


def get_deployment_gate() -> DeploymentGate:
    return _gate


@router.get("")
async def list_bots(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    gate: Annotated[DeploymentGate, Depends(get_deployment_gate)],
    request: Request,
) -> ApiResponse:
    bots = await gate.list_user_bots(db, str(current_user.id))
    return respond(request, [BotResponse.from_bot(b).model_dump() for b in bots])


@router.post("", status_code=status.HTTP_201_CREATED)
async def deploy_bot(
    body: DeployBotRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    gate: Annotated[DeploymentGate, Depends(get_deployment_gate)],
    request: Request,
) -> ApiResponse:
    bot = await gate.request_deployment(db, str(current_user.id), body.to_spec())
    return respond(request, BotResponse.from_bot(bot).model_dump(), "Deployment requested")


@router.get("/{bot_id}/logs")
async def list_bot_logs(
    bot_id: uuid.UUID,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    gate: Annotated[DeploymentGate, Depends(get_deployment_gate)],
    request: Request,
    limit: int = Query(100, ge=1, le=500),
) -> ApiResponse:
    logs = await gate.list_logs(db, str(current_user.id), str(bot_id), limit)
    return respond(request, [DeploymentLogItem.from_log(entry).model_dump() for entry in logs])
