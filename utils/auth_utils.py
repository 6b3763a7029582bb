import os, bcrypt, jwt, logging
from datetime import datetime, timedelta, timezone
from typing import Any
from fastapi import Header, HTTPException
from models.schemas_user import AuthIdentity, AuthStudent, AuthTeacher

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "dev_secret_change_me")
JWT_ALG = "HS256"
JWT_EXP_DAYS = int(os.getenv("JWT_EXP_DAYS", "7"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

def hash_password(raw: str) -> str:
    return bcrypt.hashpw(raw.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()

def verify_password(raw: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(raw.encode(), hashed.encode())
    except ValueError:
        return False

def create_token(sub: str, claims: dict[str, Any] | None = None, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(claims or {})
    to_encode.update({
        "sub": sub,
        "iat": now,
        "exp": now + (expires_delta or timedelta(days=JWT_EXP_DAYS)),
    })
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALG)

def decode_token(token: str) -> dict:
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])

def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None

def _identity_from_header(authorization: str | None) -> dict:
    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        data = decode_token(token)
    except jwt.PyJWTError as e:
        logger.warning(f"Token decode failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")
    if not data.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return {
        "id": data["sub"],
        "email": data.get("email", ""),
        "name": data.get("name"),
        "institution": data.get("institution"),
        # tokens issued before student accounts existed carry no user_type
        "user_type": data.get("user_type", "teacher"),
    }

def auth_user(authorization: str | None = Header(default=None)) -> AuthIdentity:
    identity = _identity_from_header(authorization)
    if identity["user_type"] not in ("teacher", "student"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return AuthIdentity(**identity)

def auth_teacher(authorization: str | None = Header(default=None)) -> AuthTeacher:
    identity = _identity_from_header(authorization)
    if identity["user_type"] != "teacher":
        raise HTTPException(status_code=401, detail="Invalid token or insufficient permissions")
    return AuthTeacher(**identity)

def auth_student(authorization: str | None = Header(default=None)) -> AuthStudent:
    identity = _identity_from_header(authorization)
    if identity["user_type"] != "student":
        raise HTTPException(status_code=401, detail="Invalid token or insufficient permissions")
    return AuthStudent(**identity)
