"""Transfer request and transaction response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Callable
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.money import MAX_DIGITS
from app.models.enums import TransactionStatus
from app.schemas.common import PaginationMeta


class TransferRequest(BaseModel):
    """Request to move money between two of the caller's cards.

    Non-positive amounts are accepted here and stored as FAILED transfers.
    """

    from_card_id: UUID
    to_card_id: UUID
    amount: Decimal = Field(
        max_digits=MAX_DIGITS, decimal_places=2, description="Amount to transfer"
    )


class TransactionResponse(BaseModel):
    """One transfer attempt, successful or failed."""

    id: UUID
    from_card_id: UUID
    to_card_id: UUID
    from_card_masked: str = Field(description="Masked source card number")
    to_card_masked: str = Field(description="Masked destination card number")
    amount: Decimal
    status: TransactionStatus
    failure_reason: str | None = Field(None, description="Why the transfer failed")
    timestamp: datetime


class TransactionListResult(BaseModel):
    """Paginated list of transactions."""

    items: list[TransactionResponse]
    pagination: PaginationMeta


def transaction_response(
    transaction, mask: Callable[[str], str]
) -> TransactionResponse:
    """Build a response from a transaction loaded with both cards."""
    return TransactionResponse(
        id=transaction.id,
        from_card_id=transaction.from_card_id,
        to_card_id=transaction.to_card_id,
        from_card_masked=mask(transaction.from_card.card_number),
        to_card_masked=mask(transaction.to_card.card_number),
        amount=transaction.amount,
        status=transaction.status,
        failure_reason=transaction.failure_reason,
        timestamp=transaction.timestamp,
    )
