from datetime import datetime, timedelta

from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError, field_validator

from priming.core.config import get_settings
from priming.models.user import Role

settings = get_settings()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

BEARER_PREFIX = "Bearer "


class TokenPayload(BaseModel):
    sub: str
    role: Role
    exp: datetime
    type: str

    @field_validator("sub")
    @classmethod
    def _numeric_sub(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError("sub must be a numeric user id")
        return v

    @property
    def id(self) -> int:
        return int(self.sub)


def create_access_token(
    user_id: int,
    role: Role,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token carrying the user's id and role."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "role": Role(role).value,
        "exp": datetime.utcnow() + expires_delta,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.algorithm)


def strip_bearer(token: str) -> str:
    if token.startswith(BEARER_PREFIX):
        return token[len(BEARER_PREFIX):].strip()
    return token.strip()


def verify_token(token: str) -> TokenPayload | None:
    """
    Verify a JWT and return its payload.

    Accepts the token with or without a ``Bearer `` prefix. Returns None when
    the signature is wrong, the token is malformed or expired, or the claims
    do not describe an access token.
    """
    try:
        payload = jwt.decode(
            strip_bearer(token), settings.jwt_secret, algorithms=[settings.algorithm]
        )
        if payload.get("type") != "access":
            return None
        return TokenPayload(**payload)
    except (JWTError, ValidationError):
        return None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password.strip(), hashed_password)


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password.strip())
