"""FastAPI dependency injection for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.cards.pan_codec import PanCodec, get_pan_codec
from app.core.principal import Principal
from app.core.security import get_user_id_from_token
from app.db.session import get_db
from app.models.user import User
from app.repositories.user import UserRepository
from app.services.admin import AdminService
from app.services.audit import AuditSink
from app.services.auth import AuthService
from app.services.card import CardService
from app.services.transfer import TransferService

# OAuth2 bearer token scheme
security = HTTPBearer()


def get_audit_sink(request: Request) -> AuditSink:
    """Audit sink created at application start-up."""
    return request.app.state.audit_sink


def get_codec() -> PanCodec:
    return get_pan_codec()


async def get_user_repository(
    db: AsyncSession = Depends(get_db),
) -> UserRepository:
    """
    Get user repository instance.

    Args:
        db: Database session

    Returns:
        UserRepository instance
    """
    return UserRepository(db)


async def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    audit_sink: AuditSink = Depends(get_audit_sink),
) -> AuthService:
    return AuthService(user_repo, audit_sink)


async def get_card_service(
    db: AsyncSession = Depends(get_db),
    audit_sink: AuditSink = Depends(get_audit_sink),
    codec: PanCodec = Depends(get_codec),
) -> CardService:
    return CardService(db, audit_sink, codec)


async def get_transfer_service(
    db: AsyncSession = Depends(get_db),
    audit_sink: AuditSink = Depends(get_audit_sink),
    codec: PanCodec = Depends(get_codec),
) -> TransferService:
    return TransferService(db, audit_sink, codec)


async def get_admin_service(
    db: AsyncSession = Depends(get_db),
    audit_sink: AuditSink = Depends(get_audit_sink),
) -> AdminService:
    return AdminService(db, audit_sink)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    user_repo: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Extract and validate user from JWT token.

    Args:
        credentials: HTTP bearer token credentials
        user_repo: User repository for database queries

    Returns:
        Authenticated user object

    Raises:
        HTTPException: If token is invalid, expired, or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except (JWTError, ValueError):
        raise credentials_exception

    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


async def get_principal(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> Principal:
    """Resolve the authenticated user into the principal passed to services."""
    request.state.user = current_user
    return Principal.from_user(
        current_user, ip_address=request.client.host if request.client else None
    )


async def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    """Principal of an administrator; anyone else gets 403."""
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return principal
