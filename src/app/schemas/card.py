"""Pydantic schemas for card API requests and responses."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.money import MAX_DIGITS
from app.models.enums import CardStatus
from app.schemas.common import MoneyMeta, PaginationMeta


class CardCreateRequest(BaseModel):
    """Request to issue a new card (administrators only)."""

    owner_id: UUID = Field(description="User the card is issued to")
    expiration_date: date = Field(description="Last day the card can be used")
    initial_balance: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        max_digits=MAX_DIGITS,
        decimal_places=2,
        description="Opening balance",
    )


class CardResponse(BaseModel):
    """Card data for API responses. The stored card number is never exposed."""

    id: UUID
    masked_number: str = Field(description="Masked card number")
    owner_id: UUID
    expiration_date: date
    status: CardStatus
    balance: Decimal
    created_at: datetime = Field(description="Card creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")


class CardBalanceResponse(BaseModel):
    """Current balance with successful transfer totals."""

    card_id: UUID
    masked_number: str
    balance: Decimal
    total_outgoing: Decimal = Field(description="Sum of successful transfers out")
    total_incoming: Decimal = Field(description="Sum of successful transfers in")
    money: MoneyMeta


class CardListResult(BaseModel):
    """Paginated list of cards."""

    items: list[CardResponse]
    pagination: PaginationMeta


def card_response(card, masked_number: str) -> CardResponse:
    return CardResponse(
        id=card.id,
        masked_number=masked_number,
        owner_id=card.owner_id,
        expiration_date=card.expiration_date,
        status=card.status,
        balance=card.balance,
        created_at=card.created_at,
        updated_at=card.updated_at,
    )
