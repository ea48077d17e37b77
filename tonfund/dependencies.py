"""FastAPI dependency injection helpers."""

from __future__ import annotations

from typing import Callable

from fastapi import Cookie, Depends, Header

from tonfund.config import settings
from tonfund.services.token_service import AccessTokenIssuer, TokenConfig
from tonfund.utils.errors import ForbiddenError, UnauthorizedError
from tonfund.utils.supabase_client import get_service_client
from tonfund.utils.ton_address import AddressError, normalize_address
from tonfund.utils.tonapi_client import MAINNET, TonApiClient, get_tonapi_client
from supabase import Client


def get_db_client() -> Client:
    """Return the privileged Supabase client used by backend services."""
    return get_service_client()


def get_token_issuer() -> AccessTokenIssuer:
    """Return the session token issuer built from settings."""
    return AccessTokenIssuer(TokenConfig.from_settings(settings))


def get_tonapi() -> TonApiClient:
    """Return the mainnet chain API client."""
    return get_tonapi_client(MAINNET)


def get_tonapi_factory() -> Callable[[str], TonApiClient]:
    """Return a callable producing a chain API client for a network name."""
    return get_tonapi_client


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Malformed authorization header")
    return token.strip()


def get_current_wallet(
    authorization: str | None = Header(None),
    access_token: str | None = Cookie(None, alias=settings.access_cookie_name),
    issuer: AccessTokenIssuer = Depends(get_token_issuer),
) -> str:
    """Return the wallet address carried by the caller's access token.

    The ``Authorization: Bearer`` header wins over the session cookie.

    Raises:
        UnauthorizedError: 401 if no token is present or it does not verify.
    """
    token = _bearer_token(authorization) or access_token
    if not token:
        raise UnauthorizedError("Missing authorization header")
    return issuer.verify(token)


def is_admin(wallet: str) -> bool:
    """Return whether ``wallet`` is one of the configured moderators."""
    try:
        canonical = normalize_address(wallet)
    except AddressError:
        return False
    admins = set()
    for configured in settings.admin_wallets_list:
        try:
            admins.add(normalize_address(configured))
        except AddressError:
            continue
    return canonical in admins


def require_admin(wallet: str = Depends(get_current_wallet)) -> str:
    """Return the caller's wallet when it is a moderator."""
    if not is_admin(wallet):
        raise ForbiddenError("Moderator access required")
    return wallet
