"""Resolve a Supabase access token to the user it belongs to.

Two strategies are supported:

* ``remote`` asks the Supabase auth server (``GET /auth/v1/user``) to
  validate the token, which also catches revoked sessions.
* ``jwks`` verifies the token signature locally against the project's
  published JWKS; keys are cached for a few minutes.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import httpx
from jose import jwk, jwt
from jose.exceptions import JWKError, JWTError
from starlette.concurrency import run_in_threadpool

from ..config import settings

_JWKS_CACHE_SECONDS = 300
_SUPPORTED_ALGORITHMS = ("RS256", "ES256")


class SupabaseAuthError(Exception):
    """The token could not be resolved to a user."""


@dataclass(slots=True)
class SupabaseUser:
    id: str
    email: str | None = None
    role: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


@dataclass
class _JwksCache:
    url: str | None = None
    expires_at: float = 0.0
    keys: dict[str, dict[str, Any]] = field(default_factory=dict)


_jwks_cache = _JwksCache()


def _supabase_base_url() -> str:
    if settings.supabase_url is None:
        raise SupabaseAuthError("SUPABASE_URL is not configured")
    return settings.supabase_url.unicode_string().rstrip("/")


def jwks_url() -> str:
    if settings.supabase_jwks_url:
        return str(settings.supabase_jwks_url)
    return f"{_supabase_base_url()}/auth/v1/.well-known/jwks.json"


def jwt_issuer() -> str | None:
    if settings.supabase_jwt_issuer:
        return settings.supabase_jwt_issuer
    if settings.supabase_url is None:
        return None
    return f"{_supabase_base_url()}/auth/v1"


async def fetch_user(token: str) -> SupabaseUser:
    """Validate ``token`` with the Supabase auth server and return its user."""
    if not token:
        raise SupabaseAuthError("empty token")
    url = f"{_supabase_base_url()}/auth/v1/user"
    headers = {"Authorization": f"Bearer {token}"}
    if settings.supabase_anon_key:
        headers["apikey"] = settings.supabase_anon_key

    async with httpx.AsyncClient(timeout=settings.supabase_auth_timeout_seconds) as client:
        try:
            response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise SupabaseAuthError(f"Supabase auth request failed: {exc}") from exc

    if response.status_code != 200:
        raise SupabaseAuthError(
            f"Supabase auth rejected token (status {response.status_code})"
        )
    try:
        data = response.json()
    except ValueError as exc:
        raise SupabaseAuthError("Supabase auth returned invalid JSON") from exc

    user_id = data.get("id") if isinstance(data, dict) else None
    if not user_id:
        raise SupabaseAuthError("Supabase auth response missing user id")
    return SupabaseUser(
        id=str(user_id),
        email=data.get("email"),
        role=data.get("role"),
        claims=data,
    )


def _fetch_jwks(url: str) -> dict[str, dict[str, Any]]:
    try:
        resp = httpx.get(url, timeout=5)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise SupabaseAuthError(f"Failed to fetch JWKS: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
        raise SupabaseAuthError("JWKS response missing keys")
    return {
        entry["kid"]: entry
        for entry in data["keys"]
        if isinstance(entry, dict) and entry.get("kid")
    }


def _signing_key(url: str, kid: str) -> dict[str, Any]:
    now = time.monotonic()
    if _jwks_cache.url == url and now < _jwks_cache.expires_at:
        key = _jwks_cache.keys.get(kid)
        if key:
            return key

    # unknown kid or stale cache: keys may have been rotated
    keys = _fetch_jwks(url)
    _jwks_cache.url = url
    _jwks_cache.keys = keys
    _jwks_cache.expires_at = now + _JWKS_CACHE_SECONDS
    key = keys.get(kid)
    if not key:
        raise SupabaseAuthError("JWT kid not found in JWKS")
    return key


def verify_access_token(token: str, *, url: str, issuer: str | None = None) -> SupabaseUser:
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise SupabaseAuthError("Invalid token header") from exc

    alg = header.get("alg")
    if alg not in _SUPPORTED_ALGORITHMS:
        raise SupabaseAuthError(f"Unsupported JWT alg: {alg}")
    kid = header.get("kid")
    if not kid:
        raise SupabaseAuthError("JWT header missing kid")

    try:
        key = jwk.construct(_signing_key(url, kid), alg)
    except (JWKError, AttributeError, KeyError, TypeError, ValueError) as exc:
        raise SupabaseAuthError("JWKS signing key is malformed") from exc
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=[alg],
            issuer=issuer,
            options={"verify_aud": False},
        )
    except JWTError as exc:
        raise SupabaseAuthError("JWT verification failed") from exc

    sub = claims.get("sub")
    if not sub:
        raise SupabaseAuthError("JWT missing subject")
    return SupabaseUser(
        id=str(sub),
        email=claims.get("email"),
        role=claims.get("role"),
        claims=claims,
    )


async def resolve_user(token: str) -> SupabaseUser:
    if settings.supabase_auth_mode == "jwks":
        url = jwks_url()
        issuer = jwt_issuer()
        return await run_in_threadpool(verify_access_token, token, url=url, issuer=issuer)
    return await fetch_user(token)


__all__ = [
    "SupabaseAuthError",
    "SupabaseUser",
    "fetch_user",
    "jwks_url",
    "jwt_issuer",
    "resolve_user",
    "verify_access_token",
]
