"""Transfer endpoints and transaction history."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_principal, get_transfer_service
from app.core.principal import Principal
from app.schemas.common import PaginationMeta
from app.schemas.transaction import (
    TransactionListResult,
    TransactionResponse,
    TransferRequest,
    transaction_response,
)
from app.services.transfer import TransferService

router = APIRouter(prefix="/transfers", tags=["transfers"])

PageQuery = Annotated[int, Query(ge=1, description="Page number (1-indexed)")]
SizeQuery = Annotated[int, Query(ge=1, le=100, description="Items per page (1-100)")]


@router.post(
    "",
    response_model=TransactionResponse,
    summary="Transfer between own cards",
    description="""
    Move money from one of your cards to another.

    Every attempt is recorded. A transfer that breaks a business rule
    (different owners, same card, non-positive amount, unusable card,
    insufficient balance) is returned with `status: FAILED` and a
    `failure_reason`; balances are left unchanged.
    """,
    responses={
        404: {"description": "Card not found"},
        503: {"description": "Cards could not be locked"},
    },
)
async def create_transfer(
    data: TransferRequest,
    principal: Principal = Depends(get_principal),
    transfer_service: TransferService = Depends(get_transfer_service),
) -> TransactionResponse:
    outcome = await transfer_service.transfer(
        data.from_card_id, data.to_card_id, data.amount, principal
    )
    transaction = outcome.transaction
    return TransactionResponse(
        id=transaction.id,
        from_card_id=transaction.from_card_id,
        to_card_id=transaction.to_card_id,
        from_card_masked=outcome.from_masked,
        to_card_masked=outcome.to_masked,
        amount=transaction.amount,
        status=transaction.status,
        failure_reason=transaction.failure_reason,
        timestamp=transaction.timestamp,
    )


@router.get(
    "/history",
    response_model=TransactionListResult,
    summary="My transaction history",
    description="Transactions touching any of the caller's cards, newest first.",
)
async def get_history(
    page: PageQuery = 1,
    size: SizeQuery = 20,
    principal: Principal = Depends(get_principal),
    transfer_service: TransferService = Depends(get_transfer_service),
) -> TransactionListResult:
    transactions, total = await transfer_service.get_user_transactions(
        principal.id, (page - 1) * size, size
    )
    return TransactionListResult(
        items=[transaction_response(t, transfer_service.codec.mask) for t in transactions],
        pagination=PaginationMeta.build(page, size, total),
    )


@router.get(
    "/card/{card_id}",
    response_model=TransactionListResult,
    summary="Card transaction history",
)
async def get_card_history(
    card_id: UUID,
    page: PageQuery = 1,
    size: SizeQuery = 20,
    principal: Principal = Depends(get_principal),
    transfer_service: TransferService = Depends(get_transfer_service),
) -> TransactionListResult:
    """Transactions where the card is source or destination."""
    transactions, total = await transfer_service.get_card_transactions(
        card_id, principal, (page - 1) * size, size
    )
    return TransactionListResult(
        items=[transaction_response(t, transfer_service.codec.mask) for t in transactions],
        pagination=PaginationMeta.build(page, size, total),
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
    responses={
        403: {"description": "Access denied"},
        404: {"description": "Transaction not found"},
    },
)
async def get_transaction(
    transaction_id: UUID,
    principal: Principal = Depends(get_principal),
    transfer_service: TransferService = Depends(get_transfer_service),
) -> TransactionResponse:
    transaction = await transfer_service.get_transaction(transaction_id, principal)
    return transaction_response(transaction, transfer_service.codec.mask)
