from datetime import datetime, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.datastructures import Headers
from app.config import Settings, get_settings
from app.errors import AuthError

security = HTTPBearer(auto_error=False)

# Use Argon2 for password hashing
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)

def create_access_token(user_id: str, email: str, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    expire = datetime.utcnow() + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    payload = {
        "sub": user_id,
        "email": email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def get_bearer_token(headers: Headers) -> str:
    """Token from `Authorization: Bearer <token>`. Raises AuthError if missing or malformed."""
    auth_header = headers.get("authorization")
    if not auth_header:
        raise AuthError("Couldn't find JWT")
    scheme, _, token = auth_header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthError("Couldn't find JWT")
    return token


def validate_jwt(token: str, secret: str, algorithm: str = "HS256") -> str:
    """Return the user id (sub) of a valid access token. Raises AuthError otherwise."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        raise AuthError("Couldn't validate JWT", e) from e
    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthError("Couldn't validate JWT")
    return str(payload["sub"])


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    if not credentials:
        raise AuthError("Not authenticated")
    return validate_jwt(credentials.credentials, settings.secret_key, settings.algorithm)
