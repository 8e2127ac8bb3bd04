# endpoints/web_pages.py
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import IntegrityError

from config import settings
from repositories.user_repo import UserRepository
from .utils import get_session_claims, get_user_repo, login_session, logout_session

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")
router = APIRouter()


def _home_for(request: Request) -> str:
    claims = get_session_claims(request)
    if claims is not None and claims.is_counselor:
        return "/counselor/dashboard"
    return "/chat"


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(
        request, "index.html", {"claims": get_session_claims(request)}
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    if get_session_claims(request) is not None:
        return RedirectResponse(url=_home_for(request), status_code=302)
    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    ur: UserRepository = Depends(get_user_repo),
):
    user = await ur.authenticate(email.strip().lower(), password)
    if user is None:
        logger.info("Failed login for %s", email)
        return templates.TemplateResponse(
            request, "login.html", {"error": "Invalid email or password"}, status_code=401
        )
    login_session(request, user)
    logger.info("User %s logged in as %s", user.id, user.role.value)
    return RedirectResponse(url=_home_for(request), status_code=302)


@router.get("/register", response_class=HTMLResponse)
async def register_page(request: Request):
    return templates.TemplateResponse(request, "register.html", {"error": None})


@router.post("/register")
async def register(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    name: Optional[str] = Form(None),
    ur: UserRepository = Depends(get_user_repo),
):
    email = email.strip().lower()
    if not email or not password:
        return templates.TemplateResponse(
            request, "register.html", {"error": "Email and password are required"}, status_code=400
        )
    if await ur.get_by_email(email):
        return templates.TemplateResponse(
            request, "register.html", {"error": "Email already registered"}, status_code=400
        )
    try:
        user = await ur.create_user(email=email, password=password, name=name or None)
    except IntegrityError:
        # Параллельная регистрация с тем же email
        await ur.session.rollback()
        return templates.TemplateResponse(
            request, "register.html", {"error": "Email already registered"}, status_code=400
        )
    login_session(request, user)
    return RedirectResponse(url="/chat", status_code=302)


@router.get("/logout")
async def logout(request: Request):
    logout_session(request)
    return RedirectResponse(url="/", status_code=302)


@router.get("/chat", response_class=HTMLResponse)
async def chat_page(request: Request):
    return templates.TemplateResponse(
        request,
        "chat.html",
        {
            "claims": get_session_claims(request),
            "poll_interval_ms": settings.CHAT_POLL_INTERVAL_MS,
        },
    )


@router.get("/counselor/dashboard", response_class=HTMLResponse)
async def counselor_dashboard(request: Request):
    claims = get_session_claims(request)
    if claims is None or not claims.is_counselor:
        return RedirectResponse(url="/", status_code=302)
    return templates.TemplateResponse(
        request,
        "counselor_dashboard.html",
        {"claims": claims, "poll_interval_ms": settings.INBOX_POLL_INTERVAL_MS},
    )


@router.get("/counselor/chat/{chat_id}", response_class=HTMLResponse)
async def counselor_chat(request: Request, chat_id: int):
    claims = get_session_claims(request)
    if claims is None or not claims.is_counselor:
        return RedirectResponse(url="/", status_code=302)
    return templates.TemplateResponse(
        request,
        "counselor_chat.html",
        {
            "claims": claims,
            "chat_id": chat_id,
            "poll_interval_ms": settings.CHAT_POLL_INTERVAL_MS,
        },
    )
