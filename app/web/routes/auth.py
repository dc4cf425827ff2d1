import logging
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import verify_password, create_access_token
from app.models.user import User
from app.web.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth pages"], include_in_schema=False)


def _safe_next(next_url: str | None) -> str:
    # Only same-site relative paths are followed after login
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/cheques"


@router.get("/login", name="login")
async def login_form(request: Request, next: str | None = None):
    return render(request, "login.html", {"next": _safe_next(next), "email": "", "error": None})


@router.post("/login")
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/cheques"),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.hashed_password):
        logger.warning("Failed login for %s", email)
        return render(
            request, "login.html",
            {"next": _safe_next(next), "email": email, "error": "Invalid email or password"},
            status_code=401,
        )
    if not user.is_active:
        return render(
            request, "login.html",
            {"next": _safe_next(next), "email": email, "error": "Your account is disabled."},
            status_code=403,
        )

    settings = get_settings()
    token = create_access_token({"sub": str(user.id)})
    response = RedirectResponse(url=_safe_next(next), status_code=303)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    logger.info("User id=%s signed in", user.id)
    return response


@router.post("/logout", name="logout")
async def logout():
    response = RedirectResponse(url="/login", status_code=303)
    response.delete_cookie(get_settings().AUTH_COOKIE_NAME)
    return response
