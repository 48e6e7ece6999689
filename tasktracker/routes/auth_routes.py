import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy.orm import Session

from tasktracker.auth.dependencies import get_token_service, require_user_id
from tasktracker.auth.jwt_handler import TokenService
from tasktracker.auth.passwords import MAX_PASSWORD_BYTES, hash_password, verify_password
from tasktracker.core.errors import InvalidCredentialsError, UserNotFoundError
from tasktracker.database import get_db
from tasktracker.models.user import User
from tasktracker.stores.user_store import create_user, find_user_by_email, find_user_by_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=['auth'])

MIN_PASSWORD_LENGTH = 6

# Checked when the email is unknown so both login failures cost one bcrypt verify.
_UNKNOWN_USER_HASH = hash_password('unknown-user-placeholder')


def normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, value):
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        if len(value.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be {MAX_PASSWORD_BYTES} bytes or fewer.')
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, value):
        return normalize_email(value)


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


def build_auth_response(user: User, token_service: TokenService) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=token_service.issue(user.id, user.email),
    )


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    user = create_user(data.email, hash_password(data.password), db)
    logger.info('Registered user %s', user.id)
    return build_auth_response(user, token_service)


@router.post('/login', response_model=AuthResponse)
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    user = find_user_by_email(data.email, db)
    password_hash = user.password_hash if user is not None else _UNKNOWN_USER_HASH

    if not verify_password(data.password, password_hash) or user is None:
        logger.info('Failed login attempt')
        raise InvalidCredentialsError()

    logger.info('Login: user %s', user.id)
    return build_auth_response(user, token_service)


@router.get('/me', response_model=UserResponse)
def get_user_profile(
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    user = find_user_by_id(user_id, db)
    if user is None:
        raise UserNotFoundError()
    return UserResponse.model_validate(user)
