from pathlib import Path
from typing import Optional
from fastapi import Request
from fastapi.templating import Jinja2Templates
from app.core.permissions import Operation, is_allowed
from app.core.security import Identity
from app.models.cheque import ChequeStatus

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.filters["money"] = lambda value: f"{value:,.2f}"


def render(
    request: Request,
    name: str,
    context: Optional[dict] = None,
    status_code: int = 200,
):
    identity: Optional[Identity] = getattr(request.state, "identity", None)

    def can(operation: str) -> bool:
        return identity is not None and is_allowed(Operation(operation), identity.roles)

    ctx = {
        "identity": identity,
        "can": can,
        "statuses": list(ChequeStatus),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
