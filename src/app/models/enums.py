"""Enumerations stored as strings in the database."""
from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class CardStatus(str, Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    EXPIRED = "EXPIRED"


class TransactionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    BLOCK = "BLOCK"
    ACTIVATE = "ACTIVATE"
    EXPIRE = "EXPIRE"
    TRANSFER = "TRANSFER"
    LOGIN = "LOGIN"
