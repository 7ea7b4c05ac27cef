"""Card management endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_card_service, get_principal, get_transfer_service, require_admin
from app.config import settings
from app.core.principal import Principal
from app.schemas.card import (
    CardBalanceResponse,
    CardCreateRequest,
    CardListResult,
    CardResponse,
    card_response,
)
from app.schemas.common import MoneyMeta, PaginationMeta
from app.services.card import CardService
from app.services.transfer import TransferService

router = APIRouter(prefix="/cards", tags=["cards"])


@router.post(
    "",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a card",
    description="""
    Issue a new ACTIVE card to a user (administrators only).

    A unique 16-digit card number is generated and stored encrypted; the
    response carries only its masked form.
    """,
    responses={
        400: {"description": "Expiration date not in the future or negative balance"},
        403: {"description": "Administrator access required"},
        404: {"description": "Owner not found"},
    },
)
async def create_card(
    data: CardCreateRequest,
    principal: Principal = Depends(require_admin),
    card_service: CardService = Depends(get_card_service),
) -> CardResponse:
    card = await card_service.create_card(
        owner_id=data.owner_id,
        expiration_date=data.expiration_date,
        initial_balance=data.initial_balance,
        principal=principal,
    )
    return card_response(card, card_service.masked_number(card, principal))


@router.get(
    "",
    response_model=CardListResult,
    summary="List my cards",
    description="Get one page of the authenticated user's cards, newest first.",
)
async def list_my_cards(
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    size: Annotated[int, Query(ge=1, le=100, description="Items per page (1-100)")] = 20,
    principal: Principal = Depends(get_principal),
    card_service: CardService = Depends(get_card_service),
) -> CardListResult:
    cards, total = await card_service.get_user_cards(principal.id, (page - 1) * size, size)
    return CardListResult(
        items=[card_response(card, card_service.masked_number(card, principal)) for card in cards],
        pagination=PaginationMeta.build(page, size, total),
    )


@router.get(
    "/{card_id}",
    response_model=CardResponse,
    summary="Get card details",
    responses={
        403: {"description": "Access denied"},
        404: {"description": "Card not found"},
    },
)
async def get_card(
    card_id: UUID,
    principal: Principal = Depends(get_principal),
    card_service: CardService = Depends(get_card_service),
) -> CardResponse:
    """Get a card owned by the caller (administrators can see any card)."""
    card = await card_service.get_card(card_id, principal)
    return card_response(card, card_service.masked_number(card, principal))


@router.get(
    "/{card_id}/balance",
    response_model=CardBalanceResponse,
    summary="Get card balance",
    description="Current balance together with the totals of successful transfers in and out.",
)
async def get_card_balance(
    card_id: UUID,
    principal: Principal = Depends(get_principal),
    card_service: CardService = Depends(get_card_service),
    transfer_service: TransferService = Depends(get_transfer_service),
) -> CardBalanceResponse:
    card = await card_service.get_card(card_id, principal)
    return CardBalanceResponse(
        card_id=card.id,
        masked_number=card_service.masked_number(card, principal),
        balance=await card_service.get_balance(card_id, principal),
        total_outgoing=await transfer_service.get_total_outgoing(card_id, principal),
        total_incoming=await transfer_service.get_total_incoming(card_id, principal),
        money=MoneyMeta(currency=settings.currency, minor_unit=settings.currency_minor_unit),
    )


@router.patch(
    "/{card_id}/block",
    response_model=CardResponse,
    summary="Block a card",
    description="""
    Block a card. Owners can block their own cards; administrators can block any.

    Blocked cards cannot take part in transfers until an administrator
    reactivates them.
    """,
    responses={
        403: {"description": "Access denied"},
        404: {"description": "Card not found"},
        409: {"description": "Card is already blocked"},
    },
)
async def block_card(
    card_id: UUID,
    principal: Principal = Depends(get_principal),
    card_service: CardService = Depends(get_card_service),
) -> CardResponse:
    card = await card_service.block_card(card_id, principal)
    return card_response(card, card_service.masked_number(card, principal))


@router.patch(
    "/{card_id}/activate",
    response_model=CardResponse,
    summary="Activate a card",
    description="Reactivate a blocked or expired card that is not past its expiration date.",
    responses={
        403: {"description": "Administrator access required"},
        404: {"description": "Card not found"},
        409: {"description": "Card already active or expired"},
    },
)
async def activate_card(
    card_id: UUID,
    principal: Principal = Depends(require_admin),
    card_service: CardService = Depends(get_card_service),
) -> CardResponse:
    card = await card_service.activate_card(card_id, principal)
    return card_response(card, card_service.masked_number(card, principal))


@router.delete(
    "/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a card",
    description="Delete a card and all transactions that reference it (administrators only).",
)
async def delete_card(
    card_id: UUID,
    principal: Principal = Depends(require_admin),
    card_service: CardService = Depends(get_card_service),
) -> Response:
    await card_service.delete_card(card_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
