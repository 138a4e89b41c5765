"""
triplace.api.routes.messages — Direct messages & resonance
===========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from triplace.api.deps import get_engine
from triplace.api.serializers import message_dict
from triplace.services import message_service

router = APIRouter(tags=["messages"])


class MessageCreate(BaseModel):
    sender_id: int
    receiver_id: int
    content: str = Field(min_length=1)


class ResonateAction(BaseModel):
    user_id: int


@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_message(body: MessageCreate, engine: Engine = Depends(get_engine)):
    if body.sender_id == body.receiver_id:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Cannot message yourself")
    message = message_service.send_message(engine, body.sender_id, body.receiver_id, body.content)
    if message is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return message_dict(message)


@router.get("/messages/conversation")
def conversation(
    user1_id: int = Query(..., alias="user1Id"),
    user2_id: int = Query(..., alias="user2Id"),
    engine: Engine = Depends(get_engine),
):
    return [message_dict(m) for m in message_service.get_conversation(engine, user1_id, user2_id)]


@router.patch("/messages/{message_id}/read")
def mark_read(message_id: int, engine: Engine = Depends(get_engine)):
    if not message_service.mark_message_as_read(engine, message_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Message not found")
    return {"success": True}


@router.post("/community-messages/{message_id}/resonate")
def resonate(message_id: int, body: ResonateAction, engine: Engine = Depends(get_engine)):
    """``resonated`` is false when the user had already resonated."""
    resonated = message_service.resonate_message(engine, message_id, body.user_id)
    if resonated is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Message or user not found")
    return {"resonated": resonated}
