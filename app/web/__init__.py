from fastapi import APIRouter
from app.web.routes import auth, cheques

web_router = APIRouter()
web_router.include_router(auth.router)
web_router.include_router(cheques.router)
