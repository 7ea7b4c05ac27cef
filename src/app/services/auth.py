"""Authentication service with business logic."""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from jose import JWTError

from app.core.security import (
    create_access_token,
    create_refresh_token,
    get_user_id_from_token,
    hash_password,
    verify_password,
)
from app.models.enums import AuditAction, UserRole
from app.models.user import User
from app.repositories.user import UserRepository
from app.schemas.auth import TokenPair
from app.services.audit import AuditSink

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, user_repo: UserRepository, audit_sink: AuditSink | None = None):
        """
        Initialize authentication service.

        Args:
            user_repo: User repository for database operations
            audit_sink: Optional sink for LOGIN events
        """
        self.user_repo = user_repo
        self.audit = audit_sink

    async def register(self, email: str, password: str, full_name: str) -> User:
        """
        Register a new user with the USER role.

        Args:
            email: User email address
            password: Plain text password
            full_name: User's full name

        Returns:
            Created user object

        Raises:
            HTTPException: If email already exists
        """
        if await self.user_repo.email_exists(email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )

        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            role=UserRole.USER,
        )

        created_user = await self.user_repo.create(user)
        logger.info("Registered user %s", created_user.id)
        return created_user

    async def login(self, email: str, password: str, ip_address: str | None = None) -> TokenPair:
        """
        Authenticate user and return JWT tokens.

        Args:
            email: User email address
            password: Plain text password
            ip_address: Client address recorded with the LOGIN event

        Returns:
            Token pair (access + refresh tokens)

        Raises:
            HTTPException: If credentials are invalid or the account is deactivated
        """
        user = await self.user_repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User account is deactivated",
            )

        if self.audit is not None:
            self.audit.record(
                user.id, AuditAction.LOGIN, "User", str(user.id), "User logged in", ip_address
            )

        return TokenPair(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
        )

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """
        Generate new token pair using refresh token.

        Raises:
            HTTPException: If refresh token is invalid or the user is gone or inactive
        """
        try:
            user_id = get_user_id_from_token(refresh_token, expected_type="refresh")
        except (JWTError, ValueError):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )

        user = await self.get_current_user(user_id)
        return TokenPair(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
        )

    async def get_current_user(self, user_id: UUID) -> User:
        """
        Get user by ID for authenticated requests.

        Raises:
            HTTPException: If user not found or inactive
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User account is deactivated",
            )

        return user
