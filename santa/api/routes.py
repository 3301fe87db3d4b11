from __future__ import annotations

import logging
from typing import Annotated

import redis
from fastapi import APIRouter, Depends, HTTPException, Path, status

from santa.api.commands import parse_command
from santa.api.deps import get_redis, get_sessions
from santa.api.models import DialogueReply, InboundMessage, OutgoingMessageModel
from santa.dialogue import DialogueEngine
from santa.models import Game, User
from santa.sessions import SessionRegistry
from santa.store import get_game, get_user
from santa.streams import Mailbox, publish_many, read_mailbox

logger = logging.getLogger(__name__)

router = APIRouter()

SessionIdPath = Annotated[int, Path(ge=-(2**63), le=2**63 - 1)]
GameIdPath = Annotated[int, Path(ge=0, le=2**64 - 1)]


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/sessions/{session_id}/messages", response_model=DialogueReply)
async def session_message_route(
    session_id: SessionIdPath,
    payload: InboundMessage,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> DialogueReply:
    engine = DialogueEngine(r=r, sessions=sessions)
    result = engine.handle_message(session_id=session_id, text=payload.text, command=parse_command(payload.text))
    reply = DialogueReply(
        state=result.state.describe(),
        messages=[OutgoingMessageModel(user_id=m.user_id, text=m.text) for m in result.messages],
    )

    # Deliver through each recipient's outbox. The dialogue step is already
    # committed, so a failed delivery hands the texts back to the caller.
    try:
        publish_many(r=r, entries=[(m.user_id, m.text) for m in result.messages])
    except redis.RedisError as e:
        logger.exception("Mailbox delivery failed for session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "delivery_failed", **reply.model_dump()},
        ) from e

    return reply


@router.get("/users/{user_id}", response_model=User)
async def get_user_route(user_id: SessionIdPath, r: redis.Redis = Depends(get_redis)) -> User:
    user = get_user(r=r, user_id=user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/games/{game_id}", response_model=Game)
async def get_game_route(game_id: GameIdPath, r: redis.Redis = Depends(get_redis)) -> Game:
    game = get_game(r=r, game_id=game_id)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


@router.get("/users/{user_id}/mailbox")
async def get_user_mailbox_route(
    user_id: SessionIdPath,
    count: int = 20,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
) -> dict[str, object]:
    """Read a user's outbox stream.

    This is what a chat transport (or a developer without redis-cli) polls to
    find the texts it has to deliver.
    """

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    mailbox = Mailbox(user_id=user_id)
    try:
        entries = read_mailbox(r=r, mailbox=mailbox, count=count, start=start, end=end)
    except redis.ResponseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    messages = [{"id": mid, "fields": fields} for mid, fields in entries]
    return {"user_id": user_id, "stream": mailbox.key, "messages": messages}
