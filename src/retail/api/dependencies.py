"""FastAPI dependencies resolving the caller from the Authorization header."""

from fastapi import Depends, Header, HTTPException

from retail.auth import get_authenticator
from retail.auth.port import Principal
from retail.domain import logger
from retail.utils.logging import bind_request_context


def current_principal(authorization: str | None = Header(default=None)) -> Principal:
    if not authorization:
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Not authorized, malformed token")

    principal = get_authenticator().authenticate(token.strip())
    if principal is None:
        logger.info("Rejected unknown bearer token")
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    bind_request_context(customer_id=principal.customer_id, role=principal.role)
    return principal


def require_admin(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal
