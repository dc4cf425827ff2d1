from pydantic import BaseModel, Field, ValidationError, field_validator
from datetime import datetime, date
from typing import Optional
from decimal import Decimal
from app.core.config import get_settings
from app.core.exceptions import FieldError, FORM_FIELD
from app.models.cheque import ChequeStatus

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999999.99")


def _coerce_status(value):
    """Accept enum members, their numeric values (also as strings) and names."""
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        try:
            return ChequeStatus[text.upper()]
        except KeyError:
            return value
    return value


class ChequeInput(BaseModel):
    number: str = Field(min_length=1, max_length=30)
    payee_name: str = Field(min_length=1, max_length=120)
    amount: Decimal = Field(ge=MIN_AMOUNT, le=MAX_AMOUNT, max_digits=14, decimal_places=2)
    currency: str = Field(default_factory=lambda: get_settings().DEFAULT_CURRENCY, min_length=3, max_length=3)
    issue_date: date = Field(default_factory=date.today)
    due_date: date = Field(default_factory=date.today)
    status: ChequeStatus = ChequeStatus.DRAFT
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        return _coerce_status(v)

    @field_validator("notes")
    @classmethod
    def blank_notes(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    class Config:
        str_strip_whitespace = True
        # id / created_at_utc sent by a client are dropped, never trusted
        extra = "ignore"


class ChequeCreate(ChequeInput):
    pass


class ChequeUpdate(ChequeInput):
    id: int
    # Optimistic-concurrency token echoed back from the edit form
    version: Optional[int] = None


class ChequeResponse(BaseModel):
    id: int
    number: str
    payee_name: str
    amount: Decimal
    currency: str
    issue_date: date
    due_date: date
    status: ChequeStatus
    notes: Optional[str] = None
    created_at_utc: datetime
    version: int

    @property
    def status_label(self) -> str:
        return self.status.label

    class Config:
        from_attributes = True


class ChequeFilter(BaseModel):
    q: Optional[str] = None
    status: Optional[ChequeStatus] = None
    issued_from: Optional[date] = None
    due_to: Optional[date] = None

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        if v == "":
            return None
        return _coerce_status(v)


def field_errors(exc: ValidationError) -> list[FieldError]:
    """Flatten a pydantic error into field/message pairs."""
    errors = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else FORM_FIELD
        message = err["msg"]
        # Drop pydantic's "Value error, " prefix from custom validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field, message))
    return errors
