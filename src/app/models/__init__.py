"""Database models."""
from app.models.user import User
from app.models.card import Card
from app.models.transaction import Transaction
from app.models.audit_log import AuditLog

__all__ = ["User", "Card", "Transaction", "AuditLog"]
