"""
Users routes — /users/register, /users/login, /users/logout

Ungated. Login runs the configured CredentialStrategy; failure is a normal
outcome surfaced as a flash error and a redirect back to the form.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.auth import (
    CredentialStrategy,
    Identity,
    get_strategy,
    login_user,
    logout_user,
    redirect_if_authenticated,
)
from planmystay.auth.passwords import hash_password
from planmystay.database import get_db
from planmystay.errors import RETURN_TO_KEY
from planmystay.routes.forms import parse_form
from planmystay.schemas import LoginForm, RegisterForm, first_error_message
from planmystay.sessions import flash
from planmystay.templating import render

router = APIRouter(tags=["users"])
logger = logging.getLogger(__name__)


def _safe_return_to(value: object) -> str:
    # Only same-site relative paths; anything else falls back to /listings
    if isinstance(value, str) and value.startswith("/") and not value.startswith("//"):
        return value
    return "/listings"


@router.get("/register", dependencies=[Depends(redirect_if_authenticated)])
async def register_form(request: Request):
    return render(request, "users/register.html")


@router.post("/register", dependencies=[Depends(redirect_if_authenticated)])
async def register(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        form = await parse_form(request, RegisterForm)
    except ValidationError as exc:
        flash(request, first_error_message(exc), "error")
        return RedirectResponse("/users/register", status_code=303)

    if await store.user_exists(db, form.username, form.email):
        flash(request, "A user with that username or email is already registered", "error")
        return RedirectResponse("/users/register", status_code=303)

    password_hash = hash_password(form.password, rounds=request.app.state.settings.bcrypt_rounds)
    try:
        user = await store.create_user(db, form.username, form.email, password_hash)
    except IntegrityError:
        await db.rollback()
        flash(request, "A user with that username or email is already registered", "error")
        return RedirectResponse("/users/register", status_code=303)

    login_user(request, Identity.from_orm(user))
    flash(request, f"Welcome to PlanMyStay, {user.username}!", "success")
    return RedirectResponse("/listings", status_code=303)


@router.get("/login", dependencies=[Depends(redirect_if_authenticated)])
async def login_form(request: Request):
    return render(request, "users/login.html")


@router.post("/login", dependencies=[Depends(redirect_if_authenticated)])
async def login(
    request: Request,
    db: AsyncSession = Depends(get_db),
    strategy: CredentialStrategy = Depends(get_strategy),
):
    try:
        credentials = await parse_form(request, LoginForm)
    except ValidationError:
        flash(request, "Invalid username or password", "error")
        return RedirectResponse("/users/login", status_code=303)

    identity = await strategy.authenticate(db, credentials)
    if identity is None:
        flash(request, "Invalid username or password", "error")
        return RedirectResponse("/users/login", status_code=303)

    return_to = _safe_return_to(request.session.pop(RETURN_TO_KEY, None))
    login_user(request, identity)
    flash(request, f"Welcome back, {identity.username}!", "success")
    return RedirectResponse(return_to, status_code=303)


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(request: Request):
    logout_user(request)
    flash(request, "You have been logged out", "success")
    return RedirectResponse("/", status_code=303)
