"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity/Auth
  2xxx: Coin ledger / account
  3xxx: Bot
  4xxx: Community
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Identity/Auth ---

class DuplicateIdentityError(AppError):
    """Username or email collision at registration."""


class UsernameExistsError(DuplicateIdentityError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(DuplicateIdentityError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class NotVerifiedError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Please verify your email first", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class InvalidVerificationTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Invalid or expired verification token", 400)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1007, "Admin access required", 403)


# --- 2xxx: Coin ledger / account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient coins: required {required}, available {available}",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


class AlreadyClaimedTodayError(AppError):
    def __init__(self) -> None:
        super().__init__(2003, "Daily coins already claimed today", 409)


# --- 3xxx: Bot ---

class BotNotFoundError(AppError):
    def __init__(self, bot_id: str) -> None:
        super().__init__(3001, f"Bot not found: {bot_id}", 404)


class InvalidBotTransitionError(AppError):
    def __init__(self, bot_id: str, current: str, target: str) -> None:
        super().__init__(
            3002, f"Bot {bot_id} cannot move from {current} to {target}", 409
        )


class ProvisionerAuthError(AppError):
    def __init__(self) -> None:
        super().__init__(3003, "Invalid provisioner token", 401)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ServiceBusyError(AppError):
    def __init__(self) -> None:
        super().__init__(9003, "Service busy, please retry", 503)
