"""Administrator endpoints. Every route requires the ADMIN capability."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_admin_service, get_card_service, get_transfer_service, require_admin
from app.config import settings
from app.core.principal import Principal
from app.models.enums import AuditAction, CardStatus, TransactionStatus
from app.schemas.admin import (
    AuditLogListResult,
    AuditLogResponse,
    ExpirySweepResult,
    StatisticsResponse,
    UserListResult,
)
from app.schemas.auth import UserResponse
from app.schemas.card import CardListResult, card_response
from app.schemas.common import MoneyMeta, PaginationMeta
from app.schemas.transaction import TransactionListResult, transaction_response
from app.services.admin import AdminService
from app.services.card import CardService
from app.services.transfer import TransferService

router = APIRouter(prefix="/admin", tags=["admin"])

PageQuery = Annotated[int, Query(ge=1, description="Page number (1-indexed)")]
SizeQuery = Annotated[int, Query(ge=1, le=100, description="Items per page (1-100)")]


@router.get("/users", response_model=UserListResult, summary="List users")
async def list_users(
    search: Annotated[str | None, Query(description="Match against email or full name")] = None,
    page: PageQuery = 1,
    size: SizeQuery = 20,
    principal: Principal = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserListResult:
    users, total = await admin_service.list_users(principal, search, (page - 1) * size, size)
    return UserListResult(
        items=[UserResponse.model_validate(user) for user in users],
        pagination=PaginationMeta.build(page, size, total),
    )


@router.get("/users/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(
    user_id: UUID,
    principal: Principal = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserResponse:
    return UserResponse.model_validate(await admin_service.get_user(user_id, principal))


@router.patch(
    "/users/{user_id}/toggle-status",
    response_model=UserResponse,
    summary="Enable or disable a user",
    description="Flip the user's active flag. Administrators cannot toggle their own account.",
)
async def toggle_user_status(
    user_id: UUID,
    principal: Principal = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserResponse:
    user = await admin_service.toggle_user_status(user_id, principal)
    return UserResponse.model_validate(user)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
    description="Delete a user with all of their cards and transactions.",
)
async def delete_user(
    user_id: UUID,
    principal: Principal = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> Response:
    await admin_service.delete_user(user_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/cards", response_model=CardListResult, summary="List all cards")
async def list_cards(
    card_status: Annotated[CardStatus | None, Query(alias="status")] = None,
    owner_id: UUID | None = None,
    page: PageQuery = 1,
    size: SizeQuery = 20,
    principal: Principal = Depends(require_admin),
    card_service: CardService = Depends(get_card_service),
) -> CardListResult:
    cards, total = await card_service.list_cards(
        principal, card_status, owner_id, (page - 1) * size, size
    )
    return CardListResult(
        items=[card_response(card, card_service.masked_number(card, principal)) for card in cards],
        pagination=PaginationMeta.build(page, size, total),
    )


@router.get("/transactions", response_model=TransactionListResult, summary="List all transactions")
async def list_transactions(
    transaction_status: Annotated[TransactionStatus | None, Query(alias="status")] = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: PageQuery = 1,
    size: SizeQuery = 20,
    principal: Principal = Depends(require_admin),
    transfer_service: TransferService = Depends(get_transfer_service),
) -> TransactionListResult:
    transactions, total = await transfer_service.get_all_transactions(
        principal, transaction_status, start, end, (page - 1) * size, size
    )
    return TransactionListResult(
        items=[
            transaction_response(t, transfer_service.codec.mask_privileged) for t in transactions
        ],
        pagination=PaginationMeta.build(page, size, total),
    )


@router.get("/audit-logs", response_model=AuditLogListResult, summary="Browse the audit trail")
async def list_audit_logs(
    user_id: UUID | None = None,
    action: AuditAction | None = None,
    entity_type: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: PageQuery = 1,
    size: SizeQuery = 20,
    principal: Principal = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> AuditLogListResult:
    entries, total = await admin_service.list_audit_logs(
        principal, user_id, action, entity_type, start, end, (page - 1) * size, size
    )
    return AuditLogListResult(
        items=[AuditLogResponse.model_validate(entry) for entry in entries],
        pagination=PaginationMeta.build(page, size, total),
    )


@router.get("/statistics", response_model=StatisticsResponse, summary="System statistics")
async def get_statistics(
    principal: Principal = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> StatisticsResponse:
    stats = await admin_service.get_statistics(principal)
    return StatisticsResponse(
        total_users=stats.total_users,
        total_cards=stats.total_cards,
        active_cards=stats.cards_by_status[CardStatus.ACTIVE],
        blocked_cards=stats.cards_by_status[CardStatus.BLOCKED],
        expired_cards=stats.cards_by_status[CardStatus.EXPIRED],
        total_transactions=stats.total_transactions,
        successful_transactions=stats.transactions_by_status[TransactionStatus.SUCCESS],
        failed_transactions=stats.transactions_by_status[TransactionStatus.FAILED],
        total_balance=stats.total_balance,
        total_transfer_amount=stats.total_transfer_amount,
        money=MoneyMeta(currency=settings.currency, minor_unit=settings.currency_minor_unit),
    )


@router.post(
    "/expiry-sweep",
    response_model=ExpirySweepResult,
    summary="Run the expiry sweep now",
    description="Mark every card past its expiration date as EXPIRED without waiting for the scheduled sweep.",
)
async def run_expiry_sweep(
    principal: Principal = Depends(require_admin),
    card_service: CardService = Depends(get_card_service),
) -> ExpirySweepResult:
    return ExpirySweepResult(expired_cards=await card_service.update_expired_cards())
