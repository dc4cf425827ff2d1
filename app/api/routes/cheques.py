from datetime import date
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.exceptions import ChequeNotFoundError, ChequeValidationError
from app.core.permissions import Operation, require
from app.core.security import Identity
from app.schemas.cheque import ChequeFilter, ChequeResponse
from app.services.cheque_service import ChequeService
from app.services.printing import render_cheque_pdf

router = APIRouter(prefix="/api/cheques", tags=["cheques"])


def _unprocessable(exc: ChequeValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=[{"field": e.field, "message": e.message} for e in exc.errors],
    )


async def _snapshot(db: AsyncSession, cheque_id: int) -> ChequeResponse:
    try:
        return await ChequeService(db).snapshot(cheque_id)
    except ChequeNotFoundError:
        raise HTTPException(status_code=404, detail="Cheque not found")


@router.get("", response_model=list[ChequeResponse])
async def list_cheques(
    q: Optional[str] = Query(None),
    status: Optional[int] = Query(None, ge=0, le=4),
    issued_from: Optional[date] = Query(None, alias="from"),
    due_to: Optional[date] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.LIST)),
):
    filters = ChequeFilter(q=q, status=status, issued_from=issued_from, due_to=due_to)
    cheques = await ChequeService(db).list_cheques(filters)
    return [ChequeResponse.model_validate(c) for c in cheques]


@router.get("/{cheque_id}", response_model=ChequeResponse)
async def get_cheque(
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.DETAILS)),
):
    return await _snapshot(db, cheque_id)


@router.post("", response_model=ChequeResponse, status_code=201)
async def create_cheque(
    body: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.CREATE)),
):
    try:
        cheque = await ChequeService(db).create(body)
    except ChequeValidationError as exc:
        raise _unprocessable(exc)
    return ChequeResponse.model_validate(cheque)


@router.put("/{cheque_id}", response_model=ChequeResponse)
async def update_cheque(
    cheque_id: int,
    body: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.UPDATE)),
):
    try:
        cheque = await ChequeService(db).update(cheque_id, body)
    except ChequeValidationError as exc:
        raise _unprocessable(exc)
    return ChequeResponse.model_validate(cheque)


@router.delete("/{cheque_id}", status_code=204)
async def delete_cheque(
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.DELETE)),
):
    await ChequeService(db).delete(cheque_id)
    return Response(status_code=204)


@router.get("/{cheque_id}/pdf")
async def download_cheque_pdf(
    cheque_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require(Operation.PRINT)),
):
    cheque = await _snapshot(db, cheque_id)
    pdf_buffer = render_cheque_pdf(cheque)
    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="cheque_{cheque.number}.pdf"'},
    )
