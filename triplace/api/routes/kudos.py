"""
triplace.api.routes.kudos — Peer recognition
=============================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from triplace.api.deps import get_engine
from triplace.api.serializers import kudos_dict
from triplace.services import kudos_service

router = APIRouter(prefix="/kudos", tags=["kudos"])


class KudosCreate(BaseModel):
    giver_id: int
    receiver_id: int
    message: str | None = Field(None, max_length=1000)
    type: str = "general"
    related_id: int | None = None


@router.post("", status_code=status.HTTP_201_CREATED)
def give_kudos(body: KudosCreate, engine: Engine = Depends(get_engine)):
    try:
        kudos = kudos_service.give_kudos(
            engine,
            body.giver_id,
            body.receiver_id,
            message=body.message,
            kudos_type=body.type,
            related_id=body.related_id,
        )
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))
    if kudos is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return kudos_dict(kudos)


@router.get("/{kudos_id}")
def get_kudos(kudos_id: int, engine: Engine = Depends(get_engine)):
    kudos = kudos_service.get_kudos(engine, kudos_id)
    if kudos is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Kudos not found")
    return kudos_dict(kudos)
