from __future__ import annotations

import datetime as dt
import logging
import re
import sqlite3
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .db import connect
from .errors import AuthError, ConfigError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72

_DURATION_RE = re.compile(r"^(\d+)\s*([smhd]?)$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class Credentials(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


def parse_expires_in(value: str) -> dt.timedelta:
    """Token lifetime from "3600", "30m", "1h" or "7d"."""
    m = _DURATION_RE.match((value or "").strip().lower())
    if not m or int(m.group(1)) <= 0:
        raise ConfigError(f"invalid JWT_EXPIRES_IN={value!r}; expected e.g. 3600, 30m, 1h, 7d")
    return dt.timedelta(seconds=int(m.group(1)) * _DURATION_UNITS[m.group(2)])


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("ascii")


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
    except ValueError:
        return False


def issue_token(email: str, secret: str, expires_in: dt.timedelta) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    return jwt.encode({"email": email, "iat": now, "exp": now + expires_in}, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise AuthError("Invalid Token") from e


def create_user(db_path: str, email: str, password: str) -> bool:
    """Insert a user; False when the email is already registered."""
    now = dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
    with connect(db_path) as con:
        cur = con.execute(
            """
            INSERT INTO users (email, password_hash, created_at) VALUES (?, ?, ?)
            ON CONFLICT(email) DO NOTHING
            """,
            (email, hash_password(password), now),
        )
        con.commit()
    return cur.rowcount == 1


def get_password_hash(db_path: str, email: str) -> Optional[str]:
    with connect(db_path) as con:
        row = con.execute("SELECT password_hash FROM users WHERE email = ?", (email,)).fetchone()
    return row["password_hash"] if row else None


def verify_token(request: Request) -> Dict[str, Any]:
    """Dependency: decoded claims of the request's bearer token."""
    token = (request.headers.get("Authorization") or "").strip()
    if not token:
        raise AuthError("Access Denied. No token provided.")
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return decode_token(token, request.app.state.settings.jwt_secret)


def _normalize(body: Credentials):
    return (body.email or "").strip().lower(), body.password or ""


@router.post("/register")
def register(body: Credentials, request: Request):
    email, password = _normalize(body)
    if not email or not password:
        return JSONResponse(status_code=400, content={"message": "Email and password are required"})
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return JSONResponse(status_code=400, content={"message": f"Password must be at most {MAX_PASSWORD_BYTES} bytes"})
    try:
        created = create_user(request.app.state.settings.db_path, email, password)
    except sqlite3.Error as e:
        logger.exception("registration failed email=%s: %s", email, e)
        return JSONResponse(status_code=500, content={"message": "Server error"})
    if not created:
        return JSONResponse(status_code=400, content={"message": "User already exists"})
    logger.info("registered user email=%s", email)
    return JSONResponse(status_code=201, content={"message": "User registered successfully"})


@router.post("/login")
def login(body: Credentials, request: Request):
    email, password = _normalize(body)
    cfg = request.app.state.settings
    try:
        password_hash = get_password_hash(cfg.db_path, email) if email else None
    except sqlite3.Error as e:
        logger.exception("login failed email=%s: %s", email, e)
        return JSONResponse(status_code=500, content={"message": "Server error"})
    if password_hash is None or not check_password(password, password_hash):
        logger.info("login rejected email=%s", email)
        return JSONResponse(status_code=401, content={"message": "Invalid email or password"})

    token = issue_token(email, cfg.jwt_secret, parse_expires_in(cfg.jwt_expires_in))
    return {"message": "Login successful", "token": token, "user": {"email": email}}


@router.get("/user-profile")
def user_profile(user: Dict[str, Any] = Depends(verify_token)):
    return {"message": "User Profile Data", "user": user}
