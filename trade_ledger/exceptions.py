"""
Typed exceptions for the trade ledger.

Every error carries a machine-readable `code` (per class) and a
`kind`, which is one of five categories the API layer maps to an
HTTP status:

    VALIDATION             bad input, nothing written
    NOT_FOUND              a referenced id does not exist
    INVALID_ACCOUNT_STATE  account inactive or not usable in this role
    CONSISTENCY_VIOLATION  the operation would break a ledger invariant
    STORAGE_FAILURE        the unit of work could not commit (retryable)

Structured context is kept as attributes so it survives logging
and serialization.
"""


class LedgerError(Exception):
    """Base exception for all trade ledger errors."""

    code: str = "LEDGER_ERROR"
    kind: str = "LEDGER_ERROR"
    retryable: bool = False


# Validation


class LedgerValidationError(LedgerError):
    """Input is missing or malformed."""

    code: str = "VALIDATION_ERROR"
    kind: str = "VALIDATION"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class DuplicateCodeError(LedgerValidationError):
    code: str = "DUPLICATE_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Account with code '{account_code}' already exists",
            field="code",
        )


class InvalidParentError(LedgerValidationError):
    code: str = "INVALID_PARENT"

    def __init__(self, message: str):
        super().__init__(message, field="parent_id")


class TypeMismatchError(LedgerValidationError):
    code: str = "TYPE_MISMATCH"

    def __init__(self, parent_type, child_type):
        self.parent_type = parent_type
        self.child_type = child_type
        super().__init__(
            f"Parent and child accounts must have the same type "
            f"(parent: {parent_type.value}, child: {child_type.value})",
            field="account_type",
        )


# Not found


class NotFoundError(LedgerError):
    code: str = "NOT_FOUND"
    kind: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id):
        super().__init__("Account", account_id)


# Account state


class InvalidAccountStateError(LedgerError):
    code: str = "INVALID_ACCOUNT_STATE"
    kind: str = "INVALID_ACCOUNT_STATE"


class AccountInactiveError(InvalidAccountStateError):
    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account {account_code} is not active")


class AccountNotEligibleError(InvalidAccountStateError):
    code: str = "ACCOUNT_NOT_ELIGIBLE"

    def __init__(self, account_code: str, role: str):
        self.account_code = account_code
        self.role = role
        super().__init__(f"Account {account_code} cannot be used as {role}")


# Consistency


class ConsistencyViolationError(LedgerError):
    code: str = "CONSISTENCY_VIOLATION"
    kind: str = "CONSISTENCY_VIOLATION"


class PartyMismatchError(ConsistencyViolationError):
    code: str = "PARTY_MISMATCH"

    def __init__(self, document: str, document_id: int, party: str, party_id: int):
        self.document = document
        self.document_id = document_id
        self.party_id = party_id
        super().__init__(
            f"{document} {document_id} does not belong to {party} {party_id}"
        )


class HasLedgerEntriesError(ConsistencyViolationError):
    code: str = "HAS_LEDGER_ENTRIES"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Cannot delete account {account_code} with transaction entries; "
            f"deactivate it instead"
        )


class HasChildAccountsError(ConsistencyViolationError):
    code: str = "HAS_CHILD_ACCOUNTS"

    def __init__(self, account_code: str, children: int):
        self.account_code = account_code
        self.children = children
        super().__init__(
            f"Cannot delete account {account_code} with {children} child "
            f"account(s); delete or reassign the children first"
        )


class PaymentsExistError(ConsistencyViolationError):
    code: str = "PAYMENTS_EXIST"

    def __init__(self, message: str):
        super().__init__(message)


class UnbalancedTransactionError(ConsistencyViolationError):
    code: str = "UNBALANCED_TRANSACTION"

    def __init__(self, debits, credits):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Transaction does not balance: "
            f"debits={debits}, credits={credits}"
        )


# Storage


class StorageFailureError(LedgerError):
    code: str = "STORAGE_FAILURE"
    kind: str = "STORAGE_FAILURE"
    retryable: bool = True

    def __init__(self, message: str = "The operation could not be saved; please retry"):
        super().__init__(message)
