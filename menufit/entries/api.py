# -*- coding: utf-8 -*-
"""Synced entries — upload/download endpoints."""

from __future__ import annotations

import logging
from typing import Any, List, Type, TypeVar

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ValidationError

from ..auth.security import get_current_user
from .models import (
    AllowancesResponse,
    DayDomain,
    DayEntriesResponse,
    DayEntryWire,
    FavoriteWire,
    FavoritesResponse,
    MenuTemplateResponse,
    SyncAck,
)
from .storage import (
    get_allowances,
    get_menu_template,
    list_day_entries,
    list_favorites,
    replace_favorites,
    upsert_day_entries,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["Sync"])

_M = TypeVar("_M", bound=BaseModel)


def _parse_batch(body: Any, field: str, model: Type[_M]) -> List[_M]:
    items = body.get(field) if isinstance(body, dict) else None
    if not isinstance(items, list):
        raise HTTPException(status_code=400, detail=f"{field.capitalize()} must be an array")
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {field}: {exc.errors()[0].get('msg')}") from exc


def _day_domain(domain: str) -> DayDomain:
    try:
        return DayDomain(domain)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown sync domain: {domain}")


@router.get("/favorites", response_model=FavoritesResponse, summary="Download favorites")
def fetch_favorites(user: dict = Depends(get_current_user)):
    return FavoritesResponse(favorites=list_favorites(user["id"]))


@router.post("/favorites", response_model=SyncAck, summary="Replace favorites")
def push_favorites(body: Any = Body(...), user: dict = Depends(get_current_user)):
    favorites = _parse_batch(body, "favorites", FavoriteWire)
    results = replace_favorites(user["id"], favorites)
    logger.info("Stored %d favorites for user %s", len(results), user["id"])
    return SyncAck(upserted=len(results), inserted=sum(1 for r in results if r.was_insert))


@router.get("/menu-template", response_model=MenuTemplateResponse, summary="Foods the user may pick from")
def fetch_menu_template(user: dict = Depends(get_current_user)):
    return MenuTemplateResponse(template=get_menu_template(user["id"]))


@router.get("/allowances", response_model=AllowancesResponse, summary="Daily menu limits for the user")
def fetch_allowances(user: dict = Depends(get_current_user)):
    return AllowancesResponse(allowances=get_allowances(user["id"]))


@router.get(
    "/{domain}",
    response_model=DayEntriesResponse,
    summary="Download the full day collection for menu or workouts",
)
def fetch_day_entries(domain: str, user: dict = Depends(get_current_user)):
    return DayEntriesResponse(entries=list_day_entries(user["id"], _day_domain(domain)))


@router.post("/{domain}", response_model=SyncAck, summary="Upsert a batch of menu or workout days")
def push_day_entries(domain: str, body: Any = Body(...), user: dict = Depends(get_current_user)):
    day_domain = _day_domain(domain)
    entries = _parse_batch(body, "entries", DayEntryWire)
    results = upsert_day_entries(user["id"], day_domain, entries)
    inserted = sum(1 for r in results if r.was_insert)
    logger.info(
        "Upserted %d %s entries for user %s (%d new)", len(results), day_domain.value, user["id"], inserted
    )
    return SyncAck(upserted=len(results), inserted=inserted)
