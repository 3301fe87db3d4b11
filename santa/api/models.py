from __future__ import annotations

from pydantic import BaseModel, Field


class InboundMessage(BaseModel):
    text: str = Field(..., max_length=4000)


class OutgoingMessageModel(BaseModel):
    user_id: int
    text: str


class DialogueReply(BaseModel):
    # Session's dialogue state after handling the message, e.g. "run.confirm{42}".
    state: str
    messages: list[OutgoingMessageModel]
