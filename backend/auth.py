# backend/auth.py
import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
from dotenv import load_dotenv
from fastapi import Header
from jose import JWTError, jwt
from errors import InvalidCredential, ServerMisconfigured, Unauthenticated

load_dotenv()

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TTL = timedelta(days=1)
BCRYPT_MAX_BYTES = 72


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        logger.error("JWT_SECRET is not defined in the environment")
        raise ServerMisconfigured("Server error: Missing JWT secret")
    return secret


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    rounds = int(os.getenv("BCRYPT_ROUNDS", "10"))
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))


def create_access_token(user_id: int) -> str:
    expire = datetime.now(timezone.utc) + TOKEN_TTL
    return jwt.encode({"sub": str(user_id), "exp": expire}, _jwt_secret(), algorithm=ALGORITHM)


def extract_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.strip():
        return None
    parts = authorization.split(" ")
    if len(parts) == 2 and parts[0] == "Bearer":
        return parts[1] or None
    return authorization


def decode_user_id(token: str) -> int:
    secret = _jwt_secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info("JWT verification failed: %s", e)
        raise InvalidCredential("Invalid or expired token")
    user_id = payload.get("sub")
    if user_id is None:
        raise InvalidCredential("Invalid token")
    try:
        return int(user_id)
    except (TypeError, ValueError):
        raise InvalidCredential("Invalid token")


async def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> int:
    """Authenticate the request and hand the caller's id to the route.

    The id embedded in the token is trusted as-is; the User table is not
    consulted here.
    """
    token = extract_token(authorization)
    if token is None:
        raise Unauthenticated("No token, authorization denied")
    return decode_user_id(token)
