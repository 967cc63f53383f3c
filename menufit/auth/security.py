# -*- coding: utf-8 -*-
"""Auth — password hashing, signed bearer tokens and the FastAPI user dependency."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

from ..config import settings
from .storage import get_user_by_id

_HASH_NAME = "sha256"
_HASH_ROUNDS = 200_000
_TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64e(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64d(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _derive(password: str, salt: bytes, name: str = _HASH_NAME, rounds: int = _HASH_ROUNDS) -> bytes:
    return hashlib.pbkdf2_hmac(name, password.encode("utf-8"), salt, rounds)


def hash_password(password: str) -> str:
    """Stored as `pbkdf2_<hash>$<rounds>$<salt>$<digest>`."""
    salt = secrets.token_bytes(16)
    return "$".join((f"pbkdf2_{_HASH_NAME}", str(_HASH_ROUNDS), _b64e(salt), _b64e(_derive(password, salt))))


def verify_password(password: str, stored: str) -> bool:
    parts = stored.split("$")
    if len(parts) != 4 or not parts[0].startswith("pbkdf2_"):
        return False
    scheme, rounds, salt, digest = parts
    try:
        actual = _derive(password, _b64d(salt), scheme[len("pbkdf2_"):], int(rounds))
        return hmac.compare_digest(actual, _b64d(digest))
    except (ValueError, TypeError, binascii.Error):
        return False


def _sign(message: str) -> str:
    mac = hmac.new(settings.jwt_secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256)
    return _b64e(mac.digest())


def _segment(obj: Dict[str, Any]) -> str:
    return _b64e(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def create_access_token(*, user_id: str, email: str) -> str:
    issued = datetime.now(timezone.utc)
    expires = issued + timedelta(days=int(settings.token_ttl_days))
    claims = {"sub": user_id, "email": email, "iat": int(issued.timestamp()), "exp": int(expires.timestamp())}
    unsigned = f"{_segment(_TOKEN_HEADER)}.{_segment(claims)}"
    return f"{unsigned}.{_sign(unsigned)}"


def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; any failure is a 401."""
    head, dot, signature = token.rpartition(".")
    if not dot or head.count(".") != 1 or not hmac.compare_digest(_sign(head).encode("ascii"), signature.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid token")
    try:
        claims = json.loads(_b64d(head.split(".", 1)[1]))
    except (ValueError, binascii.Error) as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc
    if not isinstance(claims, dict):
        raise HTTPException(status_code=401, detail="Invalid token")
    if int(claims.get("exp") or 0) < int(datetime.now(timezone.utc).timestamp()):
        raise HTTPException(status_code=401, detail="Token expired")
    return claims


def get_token_from_request(request: Request) -> Optional[str]:
    scheme, _, token = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_current_user_from_request(request: Request) -> Dict[str, Any]:
    # The /sync middleware may already have resolved the user for this request.
    cached = getattr(request.state, "user", None)
    if cached:
        return cached

    token = get_token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")

    user_id = str(decode_token(token).get("sub") or "")
    user = get_user_by_id(user_id) if user_id else None
    if user is None:
        raise HTTPException(status_code=401, detail="User not found" if user_id else "Invalid token")

    request.state.user = user
    return user


def get_current_user(user: Dict[str, Any] = Depends(get_current_user_from_request)) -> Dict[str, Any]:
    return user
