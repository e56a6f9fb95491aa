"""Maps a visitor's opaque session token to their conversation."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.client.db.psql import session_scope
from app.core.exceptions import StorageError
from app.db.models import Conversation
from app.model.message.message_response import MessageItem
from app.service.message.store import clean_body, insert_message, messages_for, utcnow

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class Resolution:
    token: str
    conversation_id: Optional[int] = None
    messages: List[MessageItem] = field(default_factory=list)
    # True when the token was allocated by this call and still needs storing
    issued: bool = False


def new_token() -> str:
    return str(uuid.uuid4())


def resolve(sessions: sessionmaker, token: Optional[str]) -> Resolution:
    if not token:
        return Resolution(token=new_token(), issued=True)

    try:
        with session_scope(sessions) as db:
            conversation_id = db.execute(
                select(Conversation.id).where(Conversation.session_token == token)
            ).scalar_one_or_none()
            if conversation_id is None:
                # Token issued but nothing persisted yet (or history was cleared)
                return Resolution(token=token)
            return Resolution(
                token=token,
                conversation_id=conversation_id,
                messages=messages_for(db, conversation_id),
            )
    except SQLAlchemyError as exc:
        raise StorageError("failed to resolve conversation") from exc


def find_or_create(db: Session, token: str, now: datetime) -> int:
    """Return the conversation bound to ``token``, creating it if needed.

    Relies on the unique constraint on ``session_token``: the insert is a
    no-op when another request already bound the token, and the select that
    follows picks up whichever row won.
    """
    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        raise StorageError(f"unsupported database dialect: {dialect}")

    table = Conversation.__table__
    created = db.execute(
        insert(table)
        .values(session_token=token, created_at=now, last_activity=now)
        .on_conflict_do_nothing(index_elements=["session_token"])
    ).rowcount

    conversation_id = db.execute(
        select(table.c.id).where(table.c.session_token == token)
    ).scalar_one()
    if created:
        logger.info("conversation created id=%s", conversation_id)
    return conversation_id


def send(sessions: sessionmaker, token: str, body: Optional[str]) -> Tuple[int, int]:
    """Append a visitor message, creating the conversation on first contact.

    Returns ``(conversation_id, message_id)``.
    """
    text = clean_body(body)
    try:
        with session_scope(sessions) as db:
            now = utcnow()
            conversation_id = find_or_create(db, token, now)
            message_id = insert_message(db, conversation_id, text, False, now)
            return conversation_id, message_id
    except SQLAlchemyError as exc:
        raise StorageError("failed to send message") from exc
