# -*- coding: utf-8 -*-
"""Auth — Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class _Credentials(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)


class SignupRequest(_Credentials):
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(_Credentials):
    password: str = Field(..., min_length=1, max_length=128)


class UserPublic(BaseModel):
    """What a sync client needs to namespace its cache."""

    id: str
    email: str


class AuthResponse(BaseModel):
    user: UserPublic
    token: str
