# authcore/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Request models only check shape; the core validates content (email format,
password policy) and reports failures as VALIDATION_ERROR.
"""
from pydantic import BaseModel

class RegisterIn(BaseModel):
    email: str
    password: str
    firstName: str
    lastName: str

class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    """
    email: str
    password: str  # Plain text, verified server-side against the stored hash

class VerifyEmailIn(BaseModel):
    token: str

class ForgotPasswordIn(BaseModel):
    email: str

class ResetPasswordIn(BaseModel):
    token: str
    newPassword: str

class ChangePasswordIn(BaseModel):
    currentPassword: str
    newPassword: str

class UserOut(BaseModel):
    """
    User information returned in authentication responses.
    Never includes the password hash or external provider ids.
    """
    id: str
    email: str
    firstName: str
    lastName: str
    roles: list[str]
    isEmailVerified: bool = False
    lastLoginAt: str | None = None
    createdAt: str | None = None

class AuthOut(BaseModel):
    """
    Response model for successful register/login.
    Returns user information and the session token for authenticated requests.
    """
    user: UserOut
    accessToken: str
