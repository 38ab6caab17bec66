from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header

from .errors import UnauthorizedError, UpstreamError
from .logging_utils import set_user_context
from .utils.supabase_auth import SupabaseAuthError, SupabaseUser, resolve_user

logger = logging.getLogger(__name__)

_BEARER_SCHEME = "bearer"


def extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise UnauthorizedError("No authorization header")
    token = authorization.strip()
    scheme, _, rest = token.partition(" ")
    if scheme.lower() == _BEARER_SCHEME:
        token = rest.strip()
    elif token.lower() == _BEARER_SCHEME:
        token = ""
    if not token:
        raise UnauthorizedError("Unauthorized")
    return token


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> SupabaseUser:
    token = extract_bearer_token(authorization)
    try:
        user = await resolve_user(token)
    except SupabaseAuthError as exc:
        logger.info("Rejected bearer credential: %s", exc)
        raise UnauthorizedError("Unauthorized") from exc
    except Exception as exc:
        logger.exception("Identity verification failed")
        raise UpstreamError(str(exc) or exc.__class__.__name__) from exc
    set_user_context(user.id)
    return user


CurrentUser = Annotated[SupabaseUser, Depends(get_current_user)]
