# authcore/api/v1/deps.py
from fastapi import Depends, Header, HTTPException, Request, status

from authcore.errors import NotFoundError
from authcore.models import User
from authcore.services import AuthFlowController, SessionClaims

def get_auth_flow(request: Request) -> AuthFlowController:
    """
    FastAPI dependency returning the controller built at startup (see main.py).
    """
    flow = getattr(request.app.state, "auth_flow", None)
    if flow is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="AUTH_NOT_READY")
    return flow

async def get_current_session(
    request: Request,
    authorization: str | None = Header(default=None),
    flow: AuthFlowController = Depends(get_auth_flow),
) -> SessionClaims:
    """
    FastAPI dependency to validate the caller's session token.

    The token is taken from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Raises:
        HTTPException (401): If no token is provided (AUTH_REQUIRED)
        InvalidSessionError: If the token is malformed, expired or badly signed
            (rendered as 401 AUTH_INVALID_TOKEN by the app's error handler)
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    return flow.authenticate(token)

async def get_current_user(
    claims: SessionClaims = Depends(get_current_session),
    flow: AuthFlowController = Depends(get_auth_flow),
) -> User:
    """
    FastAPI dependency resolving the session's user record.

    Raises:
        HTTPException (401): If the user behind a valid token no longer exists (AUTH_USER_NOT_FOUND)
    """
    try:
        return await flow.get_user(claims.user_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
