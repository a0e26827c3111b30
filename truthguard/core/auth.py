import os
import logging
from typing import Optional

from fastapi import Header, HTTPException

from truthguard.core.invoker import AuthIdentity


def _allowed_tokens() -> set:
    raw = os.environ.get("API_AUTH_TOKENS", "")
    return {token.strip() for token in raw.split(",") if token.strip()}


async def require_auth_identity(authorization: Optional[str] = Header(default=None)) -> AuthIdentity:
    """Extract the bearer token; token issuance and verification live elsewhere.

    When ``API_AUTH_TOKENS`` is set only the listed tokens are accepted.
    """
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail={
            "status": False,
            "message": "Authorization token is required",
            "advice": "Send 'Authorization: Bearer <token>'",
        })

    allowed = _allowed_tokens()
    if allowed and token not in allowed:
        logging.warning("유효하지 않은 토큰으로 요청 거부")
        raise HTTPException(status_code=401, detail={
            "status": False,
            "message": "Invalid authorization token",
            "advice": "Please login again",
        })
    return AuthIdentity(token=token)
