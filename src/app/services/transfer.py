"""Transfers between a user's own cards.

A transfer is one unit of work in the caller's session:

1. lock both card rows (ascending id order)
2. run the business checks in a fixed order; the first failure is stored as
   a FAILED transaction with its reason
3. debit, credit and store a SUCCESS transaction, then commit
4. hand a TRANSFER event to the audit sink

Only an amount that is not a storable number, a missing card and a
failure to take the locks are raised. Anything that goes wrong while
writing the debit and credit is rolled back and stored as a FAILED
transaction with a generic reason.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.cards.lifecycle import is_usable
from app.cards.pan_codec import PanCodec, get_pan_codec
from app.core.exceptions import InfraError, NotFoundError, PermissionDeniedError, ValidationError
from app.core.money import ZERO, to_money
from app.core.principal import Principal
from app.models.card import Card
from app.models.enums import AuditAction, TransactionStatus
from app.models.transaction import Transaction
from app.repositories.card import CardRepository
from app.repositories.transaction import TransactionRepository
from app.services.audit import AuditSink

logger = logging.getLogger(__name__)

CROSS_OWNER = "transfers allowed only between own cards"
NOT_SOURCE_OWNER = "source card does not belong to acting user"
SAME_CARD = "cannot transfer to the same card"
NON_POSITIVE_AMOUNT = "amount must be positive"
SOURCE_NOT_USABLE = "source card is not usable"
DESTINATION_NOT_USABLE = "destination card is not usable"
INSUFFICIENT_BALANCE = "insufficient balance"
INTERNAL_ERROR = "internal error while executing transfer"


@dataclass(frozen=True)
class TransferOutcome:
    """Result of a transfer attempt with the stored transaction row.

    Masked numbers are captured before any balance is touched so they stay
    readable after a rollback.
    """

    transaction: Transaction
    from_masked: str
    to_masked: str

    succeeded: ClassVar[bool]

    @property
    def reason(self) -> str | None:
        return self.transaction.failure_reason


@dataclass(frozen=True)
class TransferSucceeded(TransferOutcome):
    succeeded: ClassVar[bool] = True


@dataclass(frozen=True)
class TransferFailed(TransferOutcome):
    succeeded: ClassVar[bool] = False


def check_transfer(
    from_card: Card,
    to_card: Card,
    amount: Decimal,
    principal: Principal,
    today: date | None = None,
) -> str | None:
    """Return the reason the transfer is not allowed, or None if it is."""
    if from_card.owner_id != to_card.owner_id:
        return CROSS_OWNER
    if from_card.owner_id != principal.id:
        return NOT_SOURCE_OWNER
    if from_card.id == to_card.id:
        return SAME_CARD
    if amount <= ZERO:
        return NON_POSITIVE_AMOUNT
    if not is_usable(from_card, today):
        return SOURCE_NOT_USABLE
    if not is_usable(to_card, today):
        return DESTINATION_NOT_USABLE
    if from_card.balance < amount:
        return INSUFFICIENT_BALANCE
    return None


class TransferService:
    """Service layer for transfers and transaction history."""

    def __init__(self, db: AsyncSession, audit_sink: AuditSink, codec: PanCodec | None = None):
        self.db = db
        self.card_repo = CardRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.audit = audit_sink
        self.codec = codec or get_pan_codec()

    async def transfer(
        self,
        from_card_id: UUID,
        to_card_id: UUID,
        amount: Decimal | int | str,
        principal: Principal,
        today: date | None = None,
    ) -> TransferOutcome:
        """
        Move money between two cards owned by the acting user.

        Args:
            from_card_id: Card to debit
            to_card_id: Card to credit
            amount: Amount to move (floats are refused with TypeError)
            principal: Acting user
            today: Reference date for expiry checks

        Returns:
            TransferSucceeded or TransferFailed, both with the stored row

        Raises:
            ValidationError: If the amount is not a number or cannot be stored
            NotFoundError: If either card does not exist
            InfraError: If the card rows cannot be locked or a failure cannot be recorded
        """
        try:
            amount = to_money(amount)
        except ValueError as exc:
            raise ValidationError(details={"field": "amount", "reason": str(exc)}) from exc
        logger.info(
            "Transfer of %s requested from card %s to card %s",
            amount,
            from_card_id,
            to_card_id,
        )

        try:
            cards = await self.card_repo.lock_for_update([from_card_id, to_card_id])
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Could not lock cards %s and %s", from_card_id, to_card_id)
            raise InfraError(details={"operation": "lock_cards"}) from exc

        for card_id in (from_card_id, to_card_id):
            if card_id not in cards:
                await self.db.rollback()
                raise NotFoundError("RES_001", details={"card_id": str(card_id)})

        from_card = cards[from_card_id]
        to_card = cards[to_card_id]
        from_masked = self.codec.mask(from_card.card_number)
        to_masked = self.codec.mask(to_card.card_number)

        reason = check_transfer(from_card, to_card, amount, principal, today)
        if reason is not None:
            logger.warning("Transfer from card %s rejected: %s", from_card_id, reason)
            transaction = await self._record_failure(from_card_id, to_card_id, amount, reason)
            return TransferFailed(transaction, from_masked, to_masked)

        try:
            from_card.balance -= amount
            to_card.balance += amount
            await self.card_repo.save(from_card)
            await self.card_repo.save(to_card)
            transaction = await self.transaction_repo.add(
                Transaction(
                    from_card_id=from_card_id,
                    to_card_id=to_card_id,
                    amount=amount,
                    status=TransactionStatus.SUCCESS,
                )
            )
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception("Transfer from card %s to card %s failed", from_card_id, to_card_id)
            await self.db.rollback()
            transaction = await self._record_failure(
                from_card_id, to_card_id, amount, INTERNAL_ERROR
            )
            return TransferFailed(transaction, from_masked, to_masked)

        logger.info("Transfer %s completed", transaction.id)
        self.audit.record(
            principal.id,
            AuditAction.TRANSFER,
            "Transaction",
            str(transaction.id),
            f"Transfer {amount} from card {from_masked} to card {to_masked}",
            principal.ip_address,
        )
        return TransferSucceeded(transaction, from_masked, to_masked)

    async def _record_failure(
        self, from_card_id: UUID, to_card_id: UUID, amount: Decimal, reason: str
    ) -> Transaction:
        try:
            transaction = await self.transaction_repo.add(
                Transaction(
                    from_card_id=from_card_id,
                    to_card_id=to_card_id,
                    amount=amount,
                    status=TransactionStatus.FAILED,
                    failure_reason=reason,
                )
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Could not record failed transfer from card %s", from_card_id)
            raise InfraError(details={"operation": "record_failure"}) from exc
        return transaction

    async def _get_visible_card(self, card_id: UUID, principal: Principal) -> Card:
        card = await self.card_repo.get_by_id(card_id)
        if card is None:
            raise NotFoundError("RES_001", details={"card_id": str(card_id)})
        if not principal.can_access(card.owner_id):
            raise PermissionDeniedError(details={"card_id": str(card_id)})
        return card

    async def get_transaction(self, transaction_id: UUID, principal: Principal) -> Transaction:
        """Get a transaction visible to the owner of either card or an administrator."""
        transaction = await self.transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError("RES_002", details={"transaction_id": str(transaction_id)})
        if not (
            principal.can_access(transaction.from_card.owner_id)
            or principal.can_access(transaction.to_card.owner_id)
        ):
            raise PermissionDeniedError(details={"transaction_id": str(transaction_id)})
        return transaction

    async def get_user_transactions(
        self, user_id: UUID, skip: int = 0, limit: int = 100
    ) -> tuple[list[Transaction], int]:
        return await self.transaction_repo.get_by_owner(user_id, skip, limit)

    async def get_card_transactions(
        self, card_id: UUID, principal: Principal, skip: int = 0, limit: int = 100
    ) -> tuple[list[Transaction], int]:
        await self._get_visible_card(card_id, principal)
        return await self.transaction_repo.get_by_card(card_id, skip, limit)

    async def get_all_transactions(
        self,
        principal: Principal,
        status: TransactionStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Transaction], int]:
        """Admin listing across all cards."""
        if not principal.is_admin:
            raise PermissionDeniedError(details={"action": "list_transactions"})
        return await self.transaction_repo.list_with_filters(status, start, end, skip, limit)

    async def get_total_outgoing(self, card_id: UUID, principal: Principal) -> Decimal:
        await self._get_visible_card(card_id, principal)
        return await self.transaction_repo.total_outgoing(card_id)

    async def get_total_incoming(self, card_id: UUID, principal: Principal) -> Decimal:
        await self._get_visible_card(card_id, principal)
        return await self.transaction_repo.total_incoming(card_id)
