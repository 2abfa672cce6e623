# authcore/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, Response

from authcore.api.v1.deps import get_auth_flow, get_current_user
from authcore.models import User
from authcore.schemas.auth import (
    AuthOut,
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginRequest,
    RegisterIn,
    ResetPasswordIn,
    UserOut,
    VerifyEmailIn,
)
from authcore.services import AuthFlowController, AuthResult

router = APIRouter(prefix="/auth", tags=["auth"])

def _user_out(u: User) -> UserOut:
    return UserOut(
        id=str(u.id),
        email=u.email,
        firstName=u.first_name,
        lastName=u.last_name,
        roles=list(u.roles),
        isEmailVerified=u.is_email_verified,
        lastLoginAt=u.last_login_at.isoformat() if u.last_login_at else None,
        createdAt=u.created_at.isoformat() if u.created_at else None,
    )

def _auth_response(result: AuthResult, response: Response) -> dict:
    response.set_cookie("accessToken", result.session_token, httponly=True, secure=False, samesite="lax")
    out = AuthOut(user=_user_out(result.user), accessToken=result.session_token)
    return {"success": True, "data": out.model_dump()}

@router.post("/register")
async def register(body: RegisterIn, response: Response, flow: AuthFlowController = Depends(get_auth_flow)):
    """
    Register a new account and sign it in.

    A verify-email token is issued and handed to the delivery collaborator.
    The session token is returned in the body and set as an HttpOnly cookie.

    Error codes:
        - VALIDATION_ERROR (422): Bad email, weak password, empty names
        - EMAIL_EXISTS (409): Email already registered
    """
    result = await flow.register(body.email, body.password, body.firstName, body.lastName)
    return _auth_response(result, response)

@router.post("/login")
async def login(payload: LoginRequest, response: Response, flow: AuthFlowController = Depends(get_auth_flow)):
    """
    Authenticate with email and password.

    Error codes:
        - AUTH_INVALID_CREDENTIALS (401): Unknown email or wrong password (not distinguished)
    """
    result = await flow.login(payload.email, payload.password)
    return _auth_response(result, response)

@router.post("/verify-email")
async def verify_email(body: VerifyEmailIn, flow: AuthFlowController = Depends(get_auth_flow)):
    """
    Redeem a verify-email token.

    Error codes:
        - INVALID_TOKEN (400): Unknown, expired or already used token
    """
    await flow.verify_email(body.token)
    return {"success": True, "data": {"ok": True}}

@router.post("/forgot-password")
async def forgot_password(body: ForgotPasswordIn, flow: AuthFlowController = Depends(get_auth_flow)):
    """
    Request a password reset token.

    Always returns the same success response to prevent email enumeration.
    """
    await flow.forgot_password(body.email)
    return {"success": True, "data": {"ok": True}}

@router.post("/reset-password")
async def reset_password(body: ResetPasswordIn, flow: AuthFlowController = Depends(get_auth_flow)):
    """
    Set a new password using a reset-password token.

    Error codes:
        - VALIDATION_ERROR (422): New password violates policy
        - INVALID_TOKEN (400): Unknown, expired or already used token
    """
    await flow.reset_password(body.token, body.newPassword)
    return {"success": True, "data": {"ok": True}}

@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """
    Get the currently authenticated user.

    Raises:
        HTTPException (401): If user is not authenticated
    """
    return {"success": True, "data": _user_out(user).model_dump()}

@router.post("/change-password")
async def change_password(
    body: ChangePasswordIn,
    user: User = Depends(get_current_user),
    flow: AuthFlowController = Depends(get_auth_flow),
):
    """
    Change the password of the signed-in user; requires the current password.

    Error codes:
        - AUTH_INVALID_CREDENTIALS (401): Current password is wrong
        - VALIDATION_ERROR (422): New password violates policy
    """
    await flow.change_password(user.id, body.currentPassword, body.newPassword)
    return {"success": True, "data": {"ok": True}}

@router.post("/logout")
async def logout(response: Response):
    """
    Clear the access token cookie.

    Session tokens are stateless: the token itself stays valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}
