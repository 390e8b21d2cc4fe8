from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from app.api.responses import success_response
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.serializers import serialize_user
from app.services import auth as auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value):
        return value.lower()

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value):
        # bcrypt only looks at the first 72 bytes
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password cannot exceed 72 bytes")
        return value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user, token = auth_service.register_user(db, payload.name, payload.email, payload.password)
    return success_response(
        {"user": serialize_user(user), "token": token},
        "User registered successfully",
    )


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, token = auth_service.authenticate_user(db, payload.email, payload.password)
    return success_response({"user": serialize_user(user), "token": token}, "Login successful")


@router.get("/me")
def current_user(user: User = Depends(get_current_user)):
    return success_response(serialize_user(user), "User information retrieved successfully")


@router.post("/refresh")
def refresh_token(user: User = Depends(get_current_user)):
    return success_response({"token": auth_service.create_access_token(user)}, "Token refreshed successfully")


@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    """Tokens are stateless; the client just drops its copy."""
    return success_response(
        {"message": "Session closed. Remove the token from client storage."},
        "Logout successful",
    )
