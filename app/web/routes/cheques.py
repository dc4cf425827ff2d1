from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import get_settings
from app.core.database import get_db
from app.core.exceptions import FORM_FIELD, ChequeValidationError, FieldError
from app.core.permissions import Operation, require
from app.core.security import Identity
from app.schemas.cheque import ChequeFilter, ChequeResponse, field_errors
from app.services.cheque_service import ChequeService
from app.web.templating import render

router = APIRouter(prefix="/cheques", tags=["cheque pages"], include_in_schema=False)

FORM_FIELDS = (
    "id", "version", "number", "payee_name", "amount", "currency",
    "issue_date", "due_date", "status", "notes",
)
# A submitted-but-empty value must fail validation instead of falling back to a default
KEEP_BLANK_FIELDS = {"currency", "issue_date", "due_date"}


def _build_filter(**raw) -> ChequeFilter:
    """Blank or unparseable filter values impose no constraint."""
    raw = {k: v for k, v in raw.items() if v not in (None, "")}
    try:
        return ChequeFilter.model_validate(raw)
    except ValidationError as exc:
        bad = {e.field for e in field_errors(exc)}
        return ChequeFilter.model_validate({k: v for k, v in raw.items() if k not in bad})


async def _form_data(request: Request) -> dict:
    form = await request.form()
    data = {}
    for key in FORM_FIELDS:
        value = form.get(key)
        if not isinstance(value, str):
            continue
        if value.strip() or key in KEEP_BLANK_FIELDS:
            data[key] = value
    return data


def _render_form(
    request: Request,
    action: str,
    values: dict,
    errors: Optional[list[FieldError]] = None,
    status_code: int = 200,
    cheque_id: Optional[int] = None,
):
    errors = errors or []
    by_field: dict[str, list[str]] = {}
    for err in errors:
        by_field.setdefault(err.field, []).append(err.message)
    return render(
        request,
        "cheques/form.html",
        {
            "action": action,
            "cheque_id": cheque_id,
            "values": values,
            "errors": by_field,
            "form_errors": by_field.get(FORM_FIELD, []),
        },
        status_code=status_code,
    )


def _values_from(cheque: ChequeResponse) -> dict:
    values = cheque.model_dump()
    values["status"] = int(cheque.status)
    return values


def _back_to_index(request: Request) -> RedirectResponse:
    return RedirectResponse(url=request.app.url_path_for("cheque_index"), status_code=303)


@router.get("", name="cheque_index")
async def index(
    request: Request,
    q: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    issued_from: Optional[str] = Query(None, alias="from"),
    due_to: Optional[str] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.LIST)),
):
    filters = _build_filter(q=q, status=status, issued_from=issued_from, due_to=due_to)
    cheques = await ChequeService(db).list_cheques(filters)
    return render(request, "cheques/index.html", {"cheques": cheques, "filters": filters})


@router.get("/new", name="cheque_new")
async def create_form(
    request: Request,
    identity: Identity = Depends(require(Operation.CREATE)),
):
    today = date.today()
    defaults = {
        "currency": get_settings().DEFAULT_CURRENCY,
        "issue_date": today,
        "due_date": today,
    }
    return _render_form(request, "create", defaults)


@router.post("", name="cheque_create")
async def create_submit(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.CREATE)),
):
    data = await _form_data(request)
    try:
        await ChequeService(db).create(data)
    except ChequeValidationError as exc:
        return _render_form(request, "create", data, exc.errors, status_code=422)
    return _back_to_index(request)


@router.get("/{cheque_id}", name="cheque_details")
async def details(
    request: Request,
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.DETAILS)),
):
    cheque = await ChequeService(db).snapshot(cheque_id)
    return render(request, "cheques/details.html", {"cheque": cheque})


@router.get("/{cheque_id}/edit", name="cheque_edit")
async def edit_form(
    request: Request,
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.UPDATE)),
):
    cheque = await ChequeService(db).snapshot(cheque_id)
    return _render_form(request, "edit", _values_from(cheque), cheque_id=cheque_id)


@router.post("/{cheque_id}", name="cheque_update")
async def edit_submit(
    request: Request,
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.UPDATE)),
):
    data = await _form_data(request)
    try:
        await ChequeService(db).update(cheque_id, data)
    except ChequeValidationError as exc:
        data.setdefault("id", cheque_id)
        return _render_form(request, "edit", data, exc.errors, status_code=422, cheque_id=cheque_id)
    return _back_to_index(request)


@router.get("/{cheque_id}/delete", name="cheque_delete_confirm")
async def delete_form(
    request: Request,
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.DELETE)),
):
    cheque = await ChequeService(db).snapshot(cheque_id)
    return render(request, "cheques/delete.html", {"cheque": cheque})


@router.post("/{cheque_id}/delete", name="cheque_delete")
async def delete_submit(
    request: Request,
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.DELETE)),
):
    await ChequeService(db).delete(cheque_id)
    return _back_to_index(request)


@router.get("/{cheque_id}/print", name="cheque_print")
async def print_view(
    request: Request,
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.PRINT)),
):
    cheque = await ChequeService(db).snapshot(cheque_id)
    return render(request, "cheques/print.html", {"cheque": cheque})
