from dataclasses import dataclass

# Field name used for errors that belong to the whole form rather than one input
FORM_FIELD = "__all__"


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ChequeError(Exception):
    """Base class for cheque domain errors."""


class ChequeValidationError(ChequeError):
    def __init__(self, errors: list[FieldError]):
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ChequeValidationError":
        return cls([FieldError(field, message)])

    def for_field(self, field: str) -> list[str]:
        return [e.message for e in self.errors if e.field == field]


class ChequeNotFoundError(ChequeError):
    def __init__(self, cheque_id: int):
        super().__init__(f"Cheque {cheque_id} not found")
        self.cheque_id = cheque_id


class ConcurrencyConflictError(ChequeError):
    """The row changed underneath an update for a reason other than deletion."""

    def __init__(self, cheque_id: int, reason: str):
        super().__init__(f"Cheque {cheque_id} could not be saved: {reason}")
        self.cheque_id = cheque_id
        self.reason = reason


class NotAuthenticatedError(Exception):
    pass


class PermissionDeniedError(Exception):
    def __init__(self, operation: str):
        super().__init__(f"Access denied for {operation}")
        self.operation = operation
