"""Administrative operations: user management, statistics and audit trail."""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.core.principal import Principal
from app.models.audit_log import AuditLog
from app.models.enums import AuditAction, CardStatus, TransactionStatus
from app.models.user import User
from app.repositories.audit_log import AuditLogRepository
from app.repositories.card import CardRepository
from app.repositories.transaction import TransactionRepository
from app.repositories.user import UserRepository
from app.services.audit import AuditSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemStatistics:
    total_users: int
    total_cards: int
    cards_by_status: dict[CardStatus, int]
    total_transactions: int
    transactions_by_status: dict[TransactionStatus, int]
    total_balance: Decimal
    total_transfer_amount: Decimal


class AdminService:
    """Service for administrator-only operations.

    Every method requires a principal holding the ADMIN capability.
    """

    def __init__(self, db: AsyncSession, audit_sink: AuditSink):
        self.db = db
        self.user_repo = UserRepository(db)
        self.card_repo = CardRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.audit_repo = AuditLogRepository(db)
        self.audit = audit_sink

    @staticmethod
    def _require_admin(principal: Principal) -> None:
        if not principal.is_admin:
            raise PermissionDeniedError(details={"principal_id": str(principal.id)})

    async def list_users(
        self,
        principal: Principal,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[User], int]:
        self._require_admin(principal)
        return await self.user_repo.list_users(search, skip, limit)

    async def get_user(self, user_id: UUID, principal: Principal) -> User:
        self._require_admin(principal)
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("RES_003", details={"user_id": str(user_id)})
        return user

    async def toggle_user_status(self, user_id: UUID, principal: Principal) -> User:
        """Flip a user's active flag. Administrators cannot toggle themselves."""
        user = await self.get_user(user_id, principal)
        if user.id == principal.id:
            raise ValidationError(details={"reason": "cannot change own account status"})

        user.is_active = not user.is_active
        await self.db.commit()
        await self.db.refresh(user)

        change = "enabled" if user.is_active else "disabled"
        logger.info("User %s %s by %s", user.id, change, principal.id)
        self.audit.record(
            principal.id,
            AuditAction.UPDATE,
            "User",
            str(user.id),
            f"User account {change}",
            principal.ip_address,
        )
        return user

    async def delete_user(self, user_id: UUID, principal: Principal) -> None:
        """Delete a user together with their cards and transactions."""
        user = await self.get_user(user_id, principal)
        if user.id == principal.id:
            raise ValidationError(details={"reason": "cannot delete own account"})

        await self.db.delete(user)
        await self.db.commit()

        logger.info("User %s deleted by %s", user_id, principal.id)
        self.audit.record(
            principal.id,
            AuditAction.DELETE,
            "User",
            str(user_id),
            "User account deleted",
            principal.ip_address,
        )

    async def get_statistics(self, principal: Principal) -> SystemStatistics:
        self._require_admin(principal)
        cards_by_status = await self.card_repo.count_by_status()
        transactions_by_status = await self.transaction_repo.count_by_status()
        return SystemStatistics(
            total_users=await self.user_repo.count(),
            total_cards=sum(cards_by_status.values()),
            cards_by_status=cards_by_status,
            total_transactions=sum(transactions_by_status.values()),
            transactions_by_status=transactions_by_status,
            total_balance=await self.card_repo.total_balance(),
            total_transfer_amount=await self.transaction_repo.total_successful_amount(),
        )

    async def list_audit_logs(
        self,
        principal: Principal,
        user_id: UUID | None = None,
        action: AuditAction | None = None,
        entity_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[AuditLog], int]:
        self._require_admin(principal)
        return await self.audit_repo.list_with_filters(
            user_id, action, entity_type, start, end, skip, limit
        )
