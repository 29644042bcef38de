"""
Auth Service - registration and bearer token lifecycle

Passwords are stored as passlib hashes. Login issues an opaque token
``"<id>|<secret>"``; only the sha256 digest of the secret is persisted, so
a leaked database cannot be replayed as credentials.
"""
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.core.errors import ErrorCode, auth_error
from catalog_api.core.logging_config import get_logger
from catalog_api.core.security import (
    format_plain_token,
    generate_token_secret,
    hash_password,
    hash_token,
    pwd_context,
    split_plain_token,
    token_matches,
    verify_password,
)
from catalog_api.db.models import PersonalAccessToken, utcnow
from catalog_api.repositories.token_repository import TokenRepository
from catalog_api.repositories.user_repository import UserRepository
from catalog_api.schemas import LoginResult, UserOut

logger = get_logger(__name__)

TOKEN_NAME = "auth-token"


class AuthService:
    """
    User registration, login and token revocation.

    Every method that writes commits its own unit of work and rolls back on
    failure. Field validation (required, unique email, confirmation) happens
    before these methods are called.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.tokens = TokenRepository(session)

    async def email_taken(self, field: str, value: Any) -> bool:
        """Uniqueness callback for the ``email`` validation rule."""
        return await self.users.email_exists(str(value))

    async def register(self, validated: Dict[str, Any]) -> UserOut:
        """Create a user from validated input (name, email, password)."""
        try:
            user = await self.users.create(
                name=validated["name"],
                email=validated["email"],
                password=hash_password(validated["password"]),
            )
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "user_registration_failed",
                email=validated.get("email"),
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.info("user_registered", user_id=user.id)
        return UserOut.model_validate(user)

    async def login(self, email: str, password: str) -> LoginResult:
        """Verify credentials and issue a fresh bearer token.

        Raises:
            ServiceError: 401 AUTH_INVALID_CREDENTIALS for an unknown email
                or a wrong password (indistinguishable to the caller)
        """
        user = await self.users.get_by_email(email)

        if user is None:
            # Spend the same hashing time as a real check
            pwd_context.dummy_verify()
            logger.warning("login_failed", reason="unknown_email")
            raise auth_error(ErrorCode.AUTH_INVALID_CREDENTIALS, "Invalid credentials")

        if not verify_password(password, user.password):
            logger.warning("login_failed", reason="wrong_password", user_id=user.id)
            raise auth_error(ErrorCode.AUTH_INVALID_CREDENTIALS, "Invalid credentials")

        secret = generate_token_secret()
        try:
            token = await self.tokens.create(
                user_id=user.id,
                name=TOKEN_NAME,
                token=hash_token(secret),
            )
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "token_issue_failed",
                user_id=user.id,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.info("user_logged_in", user_id=user.id, token_id=token.id)
        return LoginResult(
            user=UserOut.model_validate(user),
            token=format_plain_token(token.id, secret),
        )

    async def resolve_token(self, plain_token: str) -> Optional[PersonalAccessToken]:
        """Find the stored token matching a presented bearer string."""
        if not plain_token:
            return None

        token_id, secret = split_plain_token(plain_token)
        if token_id is None:
            return await self.tokens.get_by_digest(hash_token(secret))

        token = await self.tokens.get(token_id)
        if token is None or not token_matches(secret, token.token):
            return None
        return token

    async def authenticate(self, plain_token: Optional[str]) -> PersonalAccessToken:
        """Resolve a bearer token and stamp its last use.

        Raises:
            ServiceError: 401 AUTH_UNAUTHENTICATED for a missing, unknown or
                revoked token
        """
        token = await self.resolve_token(plain_token or "")
        if token is None:
            logger.info("authentication_failed", token_present=bool(plain_token))
            raise auth_error(ErrorCode.AUTH_UNAUTHENTICATED, "Unauthenticated.")

        try:
            token.last_used_at = utcnow()
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "token_touch_failed",
                token_id=token.id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

        logger.debug("authenticated", user_id=token.user_id, token_id=token.id)
        return token

    async def logout(self, token_id: int) -> None:
        """Revoke exactly the token that authenticated the request.

        Other tokens of the same user stay valid.
        """
        try:
            await self.tokens.delete(token_id)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "token_revoke_failed",
                token_id=token_id,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.info("token_revoked", token_id=token_id)
