"""bh_account REST API: all endpoints require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_account.application.service import AccountApplicationService
from src.bh_common.database import get_db_session
from src.bh_common.enums import LedgerEventKind
from src.bh_common.response import ApiResponse, respond
from src.bh_gateway.auth.dependencies import get_current_user
from src.bh_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/profile")
async def get_profile(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_profile(db, current_user)
    return respond(request, data.model_dump())


@router.get("/balance")
async def get_balance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, str(current_user.id))
    return respond(request, data.model_dump())


@router.post("/claim-daily")
async def claim_daily(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.claim_daily(db, str(current_user.id))
    return respond(request, data.model_dump(), f"{data.claimed} coins claimed successfully")


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    kind: LedgerEventKind | None = Query(None, description="Filter by event kind"),
) -> ApiResponse:
    data = await _service.list_ledger(
        db, str(current_user.id), cursor, limit, kind.value if kind else None
    )
    return respond(request, data.model_dump())
