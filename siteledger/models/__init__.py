from sqlmodel import SQLModel

from siteledger.models.account import FinancialAccount
from siteledger.models.attendance import Hajari, Labor
from siteledger.models.audit import AuditLog
from siteledger.models.base import ApprovableMixin, TimestampMixin, UUIDBase
from siteledger.models.content import Document, Photo, Task
from siteledger.models.enums import (
    AccountType,
    ApprovalStatus,
    AttendanceStatus,
    AuditAction,
    AuditEntityType,
    EntityType,
    JournalMode,
    LaborType,
    MaterialMovementType,
    NotificationType,
    PaymentMode,
    RecordStatus,
    RecordType,
    Role,
    TaskStatus,
    TransactionType,
)
from siteledger.models.journal import JournalEntry
from siteledger.models.ledger import Ledger
from siteledger.models.material import Material, MaterialLedgerEntry
from siteledger.models.notification import Notification
from siteledger.models.project import Project
from siteledger.models.record import Recordable, RecordSettlement
from siteledger.models.transaction import Transaction

__all__ = [
    "AccountType",
    "ApprovableMixin",
    "ApprovalStatus",
    "AttendanceStatus",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Document",
    "EntityType",
    "FinancialAccount",
    "Hajari",
    "JournalEntry",
    "JournalMode",
    "Labor",
    "LaborType",
    "Ledger",
    "Material",
    "MaterialLedgerEntry",
    "MaterialMovementType",
    "Notification",
    "NotificationType",
    "PaymentMode",
    "Photo",
    "Project",
    "RecordSettlement",
    "RecordStatus",
    "RecordType",
    "Recordable",
    "Role",
    "SQLModel",
    "Task",
    "TaskStatus",
    "Transaction",
    "TransactionType",
    "UUIDBase",
    "TimestampMixin",
]
