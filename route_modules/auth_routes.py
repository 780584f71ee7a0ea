"""
Auth Routes - registration, login, token refresh and logout.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response

from auth import Identity, get_current_identity, get_optional_identity, get_settings
from config import Settings
from models import LoginRequest, RefreshRequest, RegisterRequest, TokenPair
from responses import created, ok
from service_modules.auth_service import AuthService, get_auth_service

router = APIRouter()

REFRESH_COOKIE = "refresh_token"


def _set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    cookie_args = dict(
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite.lower(),
        domain=settings.cookie_domain or None,
    )
    response.set_cookie(
        settings.cookie_name,
        tokens.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        **cookie_args,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 3600,
        path="/api/v1/auth",
        **cookie_args,
    )


@router.post("/auth/register")
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Register a trainer or trainee account and sign it in."""
    tokens = service.register_user(data)
    response = created(tokens, "Registration successful")
    _set_auth_cookies(response, tokens, settings)
    return response


@router.post("/auth/login")
async def login(
    data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for an access/refresh token pair."""
    tokens = service.authenticate_user(data.email, data.password)
    _set_auth_cookies(response, tokens, settings)
    return ok(tokens, "Login successful")


@router.post("/auth/refresh")
async def refresh(
    request: Request,
    response: Response,
    data: Optional[RefreshRequest] = Body(None),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Rotate the refresh token (from the body or the refresh cookie)."""
    token = (data.refresh_token if data else None) or request.cookies.get(REFRESH_COOKIE)
    tokens = service.refresh(token)
    _set_auth_cookies(response, tokens, settings)
    return ok(tokens)


@router.post("/auth/logout")
async def logout(
    request: Request,
    response: Response,
    data: Optional[RefreshRequest] = Body(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Revoke the refresh token and clear auth cookies."""
    token = (data.refresh_token if data else None) or request.cookies.get(REFRESH_COOKIE)
    service.logout(user_id=identity.user_id if identity else None, refresh_token=token)
    response.delete_cookie(settings.cookie_name, domain=settings.cookie_domain or None)
    response.delete_cookie(REFRESH_COOKIE, path="/api/v1/auth", domain=settings.cookie_domain or None)
    return ok(message="Logged out")


@router.get("/auth/me")
async def me(
    identity: Identity = Depends(get_current_identity),
    service: AuthService = Depends(get_auth_service),
):
    """Current user with their trainer or trainee profile."""
    return ok(service.get_me(identity.user_id))
