"""Auth API router: availability checks, register, verify email, login, refresh.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bh_common.database import get_db_session
from src.bh_common.response import ApiResponse, respond
from src.bh_gateway.user.schemas import (
    AvailabilityResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.bh_gateway.user.service import UserService
from src.bh_mail.service import VerificationMailer

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()
_mailer = VerificationMailer()


@router.get(
    "/check-username/{username}",
    response_model=ApiResponse,
    summary="Is this username free",
)
async def check_username(
    request: Request,
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    available = await _service.is_username_available(username, db)
    return respond(request, AvailabilityResponse(available=available).model_dump())


@router.get(
    "/check-email/{email}",
    response_model=ApiResponse,
    summary="Is this email free",
)
async def check_email(
    request: Request,
    email: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    available = await _service.is_email_available(email, db)
    return respond(request, AvailabilityResponse(available=available).model_dump())


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="User registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    async with db.begin():
        reg = await _service.register(
            body.username, body.email, body.password, body.referral_code, db
        )

    # Committed; the mail goes out in the background
    _mailer.schedule(reg.user.email, reg.user.username, reg.verification_token)

    data = RegisterResponse(
        user_id=str(reg.user.id),
        username=reg.user.username,
        email=reg.user.email,
        coins=reg.account.coins,
        referral_code=reg.user.referral_code,
        referred=reg.referral is not None,
        created_at=reg.user.created_at.isoformat(),
    )
    return respond(
        request,
        data.model_dump(),
        "Registration successful, check your email to verify the account",
    )


@router.get(
    "/verify-email",
    response_model=ApiResponse,
    summary="Confirm email address",
)
async def verify_email(
    request: Request,
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    async with db.begin():
        user_id = await _service.verify_email(token, db)
    return respond(request, {"user_id": user_id, "verified": True}, "Email verified")


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    session = await _service.login(body.email, body.password, db)

    data = LoginResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        token_type="Bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo(
            user_id=str(session.user.id),
            username=session.user.username,
            email=session.user.email,
            coins=session.coins,
            is_admin=session.user.is_admin,
        ),
    )
    return respond(request, data.model_dump(), "Login successful")


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Refresh access token",
)
async def refresh_token(
    request: Request,
    body: RefreshRequest,
) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token)

    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return respond(request, data.model_dump(), "Token refreshed")
