"""User identity service: availability, register, verify email, login, refresh.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bh_account.domain.models import Account
from src.bh_account.domain.repository import LedgerRepositoryProtocol
from src.bh_account.infrastructure.persistence import LedgerRepository
from src.bh_common.db_errors import violated_constraint
from src.bh_common.errors import (
    EmailExistsError,
    InternalError,
    InvalidCredentialsError,
    InvalidVerificationTokenError,
    NotVerifiedError,
    UsernameExistsError,
)
from src.bh_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.bh_gateway.auth.password import hash_password, verify_password
from src.bh_gateway.auth.verification import (
    generate_verification_token,
    hash_verification_token,
)
from src.bh_gateway.user.db_models import UserModel
from src.bh_gateway.user.verification_repository import VerificationTokenRepository
from src.bh_referral.application.service import ReferralEngine
from src.bh_referral.domain.models import Referral, generate_referral_code

logger = logging.getLogger(__name__)

UQ_USERNAME = "uq_users_username"
UQ_EMAIL = "uq_users_email"
UQ_REFERRAL_CODE = "uq_users_referral_code"
_REFERRAL_CODE_ATTEMPTS = 5


@dataclass
class Registration:
    user: UserModel
    account: Account
    referral: Referral | None
    verification_token: str  # plain token, only for the outgoing mail


@dataclass
class Session:
    user: UserModel
    coins: int
    access_token: str
    refresh_token: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Stateless service: instantiate once, reuse across requests."""

    def __init__(
        self,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        referral_engine: ReferralEngine | None = None,
        token_repo: VerificationTokenRepository | None = None,
    ) -> None:
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._referrals = referral_engine or ReferralEngine(ledger_repo=self._ledger)
        self._tokens = token_repo or VerificationTokenRepository()

    async def is_username_available(self, username: str, db: AsyncSession) -> bool:
        result = await db.execute(select(UserModel.id).where(UserModel.username == username))
        return result.scalar_one_or_none() is None

    async def is_email_available(self, email: str, db: AsyncSession) -> bool:
        result = await db.execute(
            select(UserModel.id).where(UserModel.email == normalize_email(email))
        )
        return result.scalar_one_or_none() is None

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        referral_code: str | None,
        db: AsyncSession,
    ) -> Registration:
        """Create user + account, issue a verification token, apply the referral.

        One transaction; the caller must wrap this in `async with db.begin()`.
        The pre-checks give friendly errors for the common case; the UNIQUE
        constraints decide concurrent duplicates.
        """
        email = normalize_email(email)
        if not await self.is_username_available(username, db):
            raise UsernameExistsError()
        if not await self.is_email_available(email, db):
            raise EmailExistsError()

        user = await self._insert_user(username, email, hash_password(password), db)
        user_id = str(user.id)

        account = await self._ledger.create_account(db, user_id)

        token = generate_verification_token()
        await self._tokens.store(
            db, user_id, hash_verification_token(token), settings.VERIFICATION_TOKEN_TTL_HOURS
        )

        referral = await self._referrals.apply_referral(db, user_id, referral_code)
        if referral is not None:
            refreshed = await self._ledger.get_account_by_user_id(db, user_id)
            account = refreshed or account

        logger.info(
            "User registered: id=%s username=%s referred=%s", user_id, username, bool(referral)
        )
        return Registration(
            user=user, account=account, referral=referral, verification_token=token
        )

    async def _insert_user(
        self, username: str, email: str, password_hash: str, db: AsyncSession
    ) -> UserModel:
        for _ in range(_REFERRAL_CODE_ATTEMPTS):
            user = UserModel(
                id=uuid.uuid4(),
                username=username,
                email=email,
                password_hash=password_hash,
                referral_code=generate_referral_code(username),
                is_verified=False,
                is_admin=False,
            )
            try:
                # Savepoint: a constraint violation must not poison the outer transaction
                async with db.begin_nested():
                    db.add(user)
                    await db.flush()
            except IntegrityError as exc:
                constraint = violated_constraint(
                    exc, known=(UQ_USERNAME, UQ_EMAIL, UQ_REFERRAL_CODE)
                )
                if constraint == UQ_USERNAME:
                    raise UsernameExistsError() from None
                if constraint == UQ_EMAIL:
                    raise EmailExistsError() from None
                if constraint == UQ_REFERRAL_CODE:
                    logger.info("Referral code collision for %s, retrying", username)
                    continue
                raise
            return user
        raise InternalError("Could not allocate a unique referral code")

    async def verify_email(self, token: str, db: AsyncSession) -> str:
        """Consume a verification token and mark its user verified.

        The caller must wrap this in `async with db.begin()`.
        """
        user_id = await self._tokens.consume(db, hash_verification_token(token))
        if user_id is None:
            raise InvalidVerificationTokenError()
        await self._tokens.mark_user_verified(db, user_id)
        logger.info("Email verified: user=%s", user_id)
        return user_id

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> Session:
        """Authenticate and issue (access_token, refresh_token).

        Unknown email and wrong password both raise InvalidCredentialsError.
        An unverified account raises NotVerifiedError before the password is
        checked; this reveals that the email is registered.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.email == normalize_email(email))
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidCredentialsError()

        if not user.is_verified:
            raise NotVerifiedError()

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        account = await self._ledger.get_account_by_user_id(db, str(user.id))
        return Session(
            user=user,
            coins=account.coins if account else 0,
            access_token=create_access_token(str(user.id)),
            refresh_token=create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate a refresh token and return a new access token (no rotation)."""
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))
