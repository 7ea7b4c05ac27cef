"""Schemas for administrator endpoints."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AuditAction
from app.schemas.auth import UserResponse
from app.schemas.common import MoneyMeta, PaginationMeta


class UserListResult(BaseModel):
    items: list[UserResponse]
    pagination: PaginationMeta


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None = Field(None, description="Acting user; empty for system events")
    action: AuditAction
    entity_type: str | None
    entity_id: str | None
    details: str | None
    ip_address: str | None
    created_at: datetime


class AuditLogListResult(BaseModel):
    items: list[AuditLogResponse]
    pagination: PaginationMeta


class StatisticsResponse(BaseModel):
    """System-wide counters and totals."""

    total_users: int
    total_cards: int
    active_cards: int
    blocked_cards: int
    expired_cards: int
    total_transactions: int
    successful_transactions: int
    failed_transactions: int
    total_balance: Decimal
    total_transfer_amount: Decimal = Field(description="Sum of successful transfers")
    money: MoneyMeta


class ExpirySweepResult(BaseModel):
    expired_cards: int = Field(description="Cards marked EXPIRED by this sweep")
