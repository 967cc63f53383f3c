# -*- coding: utf-8 -*-
"""Auth — API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from .models import AuthResponse, LoginRequest, SignupRequest, UserPublic
from .security import create_access_token, get_current_user, hash_password, verify_password
from .storage import DuplicateEmailError, create_user, get_user_by_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _user_public(row: dict) -> UserPublic:
    return UserPublic(id=row["id"], email=row["email"])


@router.post("/signup", response_model=AuthResponse, summary="Create an account")
def signup(request: SignupRequest):
    if get_user_by_email(request.email):
        raise HTTPException(status_code=400, detail="Email already exists")
    try:
        user = create_user(email=request.email, password_hash=hash_password(request.password))
    except DuplicateEmailError:
        # Lost a race with a concurrent signup for the same address.
        raise HTTPException(status_code=400, detail="Email already exists")

    logger.info("Created user %s", user["id"])
    token = create_access_token(user_id=user["id"], email=user["email"])
    return AuthResponse(user=_user_public(user), token=token)


@router.post("/login", response_model=AuthResponse, summary="Login")
def login(request: LoginRequest):
    user = get_user_by_email(request.email)
    if not user or not verify_password(request.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(user_id=user["id"], email=user["email"])
    return AuthResponse(user=_user_public(user), token=token)


@router.get("/me", response_model=UserPublic, summary="Get current user")
def me(user: dict = Depends(get_current_user)):
    return _user_public(user)
