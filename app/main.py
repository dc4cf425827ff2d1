import logging
from contextlib import asynccontextmanager
from urllib.parse import quote
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from app.core.config import get_settings
from app.core.database import create_tables
from app.core.exceptions import (
    ChequeNotFoundError,
    ConcurrencyConflictError,
    NotAuthenticatedError,
    PermissionDeniedError,
)
from app.core.logging import configure_logging
from app.core.security import hash_password
from app.api import api_router
from app.web import web_router
from app.web.templating import render

settings = get_settings()
logger = logging.getLogger(__name__)


async def seed_users() -> None:
    from sqlalchemy import select, func
    from app.core.database import async_session_factory
    from app.models.user import User, ROLE_ADMIN, ROLE_USER

    async with async_session_factory() as session:
        count = (await session.execute(select(func.count()).select_from(User))).scalar()
        if count:
            return
        for email, pwd, name, role in [
            (settings.SEED_ADMIN_EMAIL, settings.SEED_ADMIN_PASSWORD, "System Admin", ROLE_ADMIN),
            (settings.SEED_USER_EMAIL, settings.SEED_USER_PASSWORD, "Default User", ROLE_USER),
        ]:
            session.add(User(
                email=email.lower(), hashed_password=hash_password(pwd),
                full_name=name, role=role,
                is_active=True,
            ))
        await session.commit()
        logger.info("Seeded default admin and user accounts")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    await create_tables()
    await seed_users()
    yield


app = FastAPI(title="Cheque Registry", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.include_router(web_router)


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


@app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    if _wants_json(request):
        return JSONResponse(
            status_code=401,
            content={"detail": "Not authenticated"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(url=f"/login?next={quote(target, safe='/')}", status_code=303)


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    if _wants_json(request):
        return JSONResponse(status_code=403, content={"detail": "Insufficient permissions"})
    return render(
        request, "error.html",
        {"title": "Access denied", "message": "You do not have permission to perform this action."},
        status_code=403,
    )


@app.exception_handler(ChequeNotFoundError)
async def not_found_handler(request: Request, exc: ChequeNotFoundError):
    if _wants_json(request):
        return JSONResponse(status_code=404, content={"detail": "Cheque not found"})
    return render(
        request, "error.html",
        {"title": "Not found", "message": "The requested cheque does not exist."},
        status_code=404,
    )


@app.exception_handler(ConcurrencyConflictError)
async def conflict_handler(request: Request, exc: ConcurrencyConflictError):
    logger.error("Unrecoverable save failure: %s", exc)
    if _wants_json(request):
        return JSONResponse(status_code=409, content={"detail": "The cheque could not be saved."})
    return render(
        request, "error.html",
        {"title": "Error", "message": "An error occurred while processing your request."},
        status_code=409,
    )


@app.get("/", include_in_schema=False)
async def home():
    return RedirectResponse(url="/cheques", status_code=303)


@app.get("/health")
async def health():
    return {"status": "ok"}
