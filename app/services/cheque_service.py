"""Cheque lifecycle: listing, validation, uniqueness and optimistic updates."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy import select, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import (
    FORM_FIELD,
    ChequeNotFoundError,
    ChequeValidationError,
    ConcurrencyConflictError,
    FieldError,
)
from app.models.cheque import Cheque
from app.schemas.cheque import ChequeCreate, ChequeFilter, ChequeResponse, ChequeUpdate, field_errors

logger = logging.getLogger(__name__)

DUPLICATE_NUMBER = "Cheque number already exists."
ID_MISMATCH = "Invalid request: id mismatch."
NO_LONGER_EXISTS = "The cheque no longer exists."
DELETED_BY_OTHER = "The cheque was deleted by another operation."

# Never copied from client input onto a stored row
SERVER_OWNED_FIELDS = {"id", "created_at_utc", "version"}

ChequeData = Union[BaseModel, Mapping[str, Any]]


class ChequeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_cheques(self, filters: Optional[ChequeFilter] = None) -> list[Cheque]:
        """Return every cheque matching all supplied filters, newest issue date first."""
        filters = filters or ChequeFilter()
        query = select(Cheque)

        q = (filters.q or "").strip()
        if q:
            query = query.where(
                or_(
                    Cheque.number.icontains(q, autoescape=True),
                    Cheque.payee_name.icontains(q, autoescape=True),
                )
            )
        if filters.status is not None:
            query = query.where(Cheque.status == filters.status)
        if filters.issued_from is not None:
            query = query.where(Cheque.issue_date >= filters.issued_from)
        if filters.due_to is not None:
            query = query.where(Cheque.due_date <= filters.due_to)

        query = query.order_by(Cheque.issue_date.desc(), Cheque.id.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, cheque_id: int) -> Cheque:
        cheque = await self.db.get(Cheque, cheque_id)
        if cheque is None:
            raise ChequeNotFoundError(cheque_id)
        return cheque

    async def snapshot(self, cheque_id: int) -> ChequeResponse:
        """Read-only copy of a cheque for display and printing."""
        result = await self.db.execute(select(Cheque).where(Cheque.id == cheque_id))
        cheque = result.scalar_one_or_none()
        if cheque is None:
            raise ChequeNotFoundError(cheque_id)
        return ChequeResponse.model_validate(cheque)

    async def create(self, data: ChequeData) -> Cheque:
        payload, errors = _parse(ChequeCreate, data)
        if errors:
            raise ChequeValidationError(errors)
        if await self._number_taken(payload.number):
            raise ChequeValidationError.single("number", DUPLICATE_NUMBER)

        cheque = Cheque(
            **payload.model_dump(exclude=SERVER_OWNED_FIELDS),
            created_at_utc=datetime.now(timezone.utc),
        )
        self.db.add(cheque)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            # A concurrent insert can win the race past the existence check
            if await self._number_taken(payload.number):
                raise ChequeValidationError.single("number", DUPLICATE_NUMBER)
            raise

        logger.info("Created cheque id=%s number=%s", cheque.id, cheque.number)
        return cheque

    async def update(self, cheque_id: int, data: ChequeData) -> Cheque:
        payload, errors = _parse(ChequeUpdate, data)
        body_id = payload.id if payload is not None else _raw_id(data)
        if body_id != cheque_id:
            raise ChequeValidationError.single(FORM_FIELD, ID_MISMATCH)
        if errors:
            raise ChequeValidationError(errors)

        original = await self.db.get(Cheque, cheque_id)
        if original is None:
            raise ChequeValidationError.single(FORM_FIELD, NO_LONGER_EXISTS)
        if await self._number_taken(payload.number, exclude_id=cheque_id):
            raise ChequeValidationError.single("number", DUPLICATE_NUMBER)
        if payload.version is not None and payload.version != original.version:
            logger.error(
                "Stale edit of cheque id=%s: submitted version %s, stored %s",
                cheque_id, payload.version, original.version,
            )
            raise ConcurrencyConflictError(cheque_id, "it was modified by another operation")

        created_at_utc = original.created_at_utc
        for key, value in payload.model_dump(exclude=SERVER_OWNED_FIELDS).items():
            setattr(original, key, value)
        original.created_at_utc = created_at_utc

        try:
            await self.db.flush()
        except StaleDataError:
            await self.db.rollback()
            if await self._exists(cheque_id):
                logger.error("Concurrency conflict saving cheque id=%s", cheque_id)
                raise ConcurrencyConflictError(cheque_id, "the stored row version changed")
            raise ChequeValidationError.single(FORM_FIELD, DELETED_BY_OTHER)
        except IntegrityError:
            await self.db.rollback()
            if await self._number_taken(payload.number, exclude_id=cheque_id):
                raise ChequeValidationError.single("number", DUPLICATE_NUMBER)
            raise

        logger.info("Updated cheque id=%s version=%s", cheque_id, original.version)
        return original

    async def delete(self, cheque_id: int) -> bool:
        """Remove a cheque permanently. Missing ids are a no-op."""
        result = await self.db.execute(
            delete(Cheque)
            .where(Cheque.id == cheque_id)
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount > 0
        if removed:
            logger.info("Deleted cheque id=%s", cheque_id)
        else:
            logger.debug("Delete of missing cheque id=%s ignored", cheque_id)
        return removed

    async def _number_taken(self, number: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Cheque.id).where(Cheque.number == number)
        if exclude_id is not None:
            query = query.where(Cheque.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.first() is not None

    async def _exists(self, cheque_id: int) -> bool:
        result = await self.db.execute(select(Cheque.id).where(Cheque.id == cheque_id))
        return result.first() is not None


def _parse(schema: type[BaseModel], data: ChequeData) -> tuple[Optional[BaseModel], list[FieldError]]:
    if isinstance(data, schema):
        return data, []
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return schema.model_validate(data), []
    except ValidationError as exc:
        return None, field_errors(exc)


def _raw_id(data: ChequeData) -> Optional[int]:
    raw = getattr(data, "id", None) if isinstance(data, BaseModel) else data.get("id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
