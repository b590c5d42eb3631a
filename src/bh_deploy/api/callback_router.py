"""Status callbacks from the provisioning platform.

Authenticated by the shared X-Provisioner-Token header, not by a user JWT.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_common.database import get_db_session
from src.bh_common.response import ApiResponse, respond
from src.bh_deploy.api.router import get_deployment_gate
from src.bh_deploy.application.schemas import BotResponse, ProvisioningCallbackRequest
from src.bh_deploy.application.service import DeploymentGate
from src.bh_gateway.auth.dependencies import require_provisioner

router = APIRouter(
    prefix="/provisioning",
    tags=["provisioning"],
    dependencies=[Depends(require_provisioner)],
)


@router.post("/callback")
async def provisioning_callback(
    body: ProvisioningCallbackRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    gate: Annotated[DeploymentGate, Depends(get_deployment_gate)],
    request: Request,
) -> ApiResponse:
    bot = await gate.apply_status_update(
        db,
        str(body.bot_id),
        body.status,
        body.message,
        external_app_id=body.external_app_id,
        external_app_name=body.external_app_name,
    )
    return respond(request, BotResponse.from_bot(bot).model_dump(), "Status recorded")
