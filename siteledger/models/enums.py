from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Actor role. Only admins apply writes directly."""

    ADMIN = "admin"
    USER = "user"


class ApprovalStatus(enum.StrEnum):
    """Approval state shared by every approvable entity."""

    APPROVED = "approved"
    PENDING_CREATE = "pending-create"
    PENDING_EDIT = "pending-edit"
    PENDING_DELETE = "pending-delete"
    REJECTED = "rejected"

    @property
    def is_pending(self) -> bool:
        return self in (ApprovalStatus.PENDING_CREATE, ApprovalStatus.PENDING_EDIT, ApprovalStatus.PENDING_DELETE)


class EntityType(enum.StrEnum):
    """Routing keys for approvable entity types."""

    TRANSACTION = "transaction"
    RECORDABLE = "recordable"
    LEDGER = "ledger"
    TASK = "task"
    PHOTO = "photo"
    DOCUMENT = "document"
    HAJARI = "hajari"
    MATERIAL = "material"
    MATERIAL_LEDGER_ENTRY = "materialledgerentry"


class TransactionType(enum.StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMode(enum.StrEnum):
    CASH = "cash"
    BANK = "bank"


class RecordType(enum.StrEnum):
    """Receivable (asset) or payable (liability)."""

    ASSET = "asset"
    LIABILITY = "liability"


class RecordStatus(enum.StrEnum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class AccountType(enum.StrEnum):
    CASH = "CASH"
    BANK = "BANK"


class JournalMode(enum.StrEnum):
    """Which kind of book a journal side posts to."""

    CASH = "cash"
    BANK = "bank"
    LEDGER = "ledger"


class AttendanceStatus(enum.StrEnum):
    """Daily attendance classification, overloaded with settlement rows."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"
    SETTLEMENT = "settlement"
    PENDING_SETTLEMENT = "pending-settlement"

    @property
    def is_settlement(self) -> bool:
        return self in (AttendanceStatus.SETTLEMENT, AttendanceStatus.PENDING_SETTLEMENT)


class LaborType(enum.StrEnum):
    LABORER = "laborer"
    FOREMAN = "foreman"


class TaskStatus(enum.StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class MaterialMovementType(enum.StrEnum):
    IN = "in"
    OUT = "out"


class NotificationType(enum.StrEnum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    INFO = "info"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    REQUEST_CREATE = "REQUEST_CREATE"
    REQUEST_EDIT = "REQUEST_EDIT"
    REQUEST_DELETE = "REQUEST_DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    SETTLE = "SETTLE"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log, a superset of the approvable types."""

    TRANSACTION = "transaction"
    RECORDABLE = "recordable"
    LEDGER = "ledger"
    TASK = "task"
    PHOTO = "photo"
    DOCUMENT = "document"
    HAJARI = "hajari"
    MATERIAL = "material"
    MATERIAL_LEDGER_ENTRY = "materialledgerentry"
    PROJECT = "project"
    LABOR = "labor"
    FINANCIAL_ACCOUNT = "financialaccount"
    JOURNAL_ENTRY = "journalentry"
    RECORD_SETTLEMENT = "recordsettlement"
