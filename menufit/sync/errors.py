# -*- coding: utf-8 -*-
"""Sync client exceptions."""

from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    pass


class SyncTransportError(SyncError):
    """The request never completed, or the server answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(SyncTransportError):
    pass


class SessionClosedError(SyncError):
    pass


class CacheError(Exception):
    """The Local Cache could not be read or written (storage unavailable, disk full...)."""
