"""Request dependencies: caller identity resolution.

Tokens are issued elsewhere; this module only verifies them and turns the
result into a tagged caller identity.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from ..lib.identity import ANONYMOUS, CallerIdentity, Owned, identity_for

logger = logging.getLogger(__name__)


def get_token_from_request(request: Request, cookie_name: str) -> Optional[str]:
    """Read a session token from the auth cookie or a Bearer header."""
    token = request.cookies.get(cookie_name)
    if token:
        return token

    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return None


async def get_caller_identity(request: Request) -> CallerIdentity:
    """Resolve the caller, falling back to anonymous on any token problem."""
    config = request.app.state.config
    token = get_token_from_request(request, config.auth_cookie_name)

    if not token or not config.jwt_secret:
        return ANONYMOUS

    try:
        claims = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Ignoring invalid session token: {e}")
        return ANONYMOUS

    owner_id = claims.get("id") or claims.get("sub")
    return identity_for(str(owner_id)) if owner_id else ANONYMOUS


async def require_owner(caller: CallerIdentity = Depends(get_caller_identity)) -> str:
    """Return the authenticated owner id or reject the request with 401."""
    if isinstance(caller, Owned):
        return caller.owner_id

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Access denied. Please login to continue",
        headers={"WWW-Authenticate": "Bearer"},
    )
