"""Append-only message log per conversation.

Every write runs in a single ``session_scope`` unit of work: the message row
and the parent's ``last_activity`` either both land or neither does.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.client.db.psql import session_scope
from app.core.exceptions import (
    AdminAuthError,
    ConversationNotFoundError,
    StorageError,
    ValidationError,
)
from app.db.models import Conversation, Message
from app.model.conversation.conversation_response import (
    ConversationDetail,
    ConversationItem,
    ConversationSummary,
)
from app.model.message.message_response import MessageItem
from app.service.admin.auth import AdminContext


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_admin(admin: Optional[AdminContext]) -> AdminContext:
    if not isinstance(admin, AdminContext):
        raise AdminAuthError()
    return admin


def clean_body(body: Optional[str]) -> str:
    text = (body or "").strip()
    if not text:
        raise ValidationError("message body is empty")
    return text


def insert_message(
    db: Session, conversation_id: int, body: str, is_admin_reply: bool, now: datetime
) -> int:
    # Touch first so an unknown id fails before anything is inserted.
    # last_activity only moves forward; a write carrying an older clock
    # reading must not pull it behind a newer message.
    table = Conversation.__table__
    touched = db.execute(
        update(table)
        .where(table.c.id == conversation_id)
        .values(
            last_activity=case(
                (table.c.last_activity < now, now),
                else_=table.c.last_activity,
            )
        )
    )
    if touched.rowcount == 0:
        raise ConversationNotFoundError(conversation_id)

    message = Message(
        conversation_id=conversation_id,
        body=body,
        is_admin_reply=is_admin_reply,
        created_at=now,
    )
    db.add(message)
    db.flush()
    return message.id


def messages_for(db: Session, conversation_id: int) -> List[MessageItem]:
    stmt = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return [MessageItem.model_validate(m) for m in db.execute(stmt).scalars()]


def append(
    sessions: sessionmaker, conversation_id: int, body: Optional[str], is_admin_reply: bool = False
) -> int:
    text = clean_body(body)
    try:
        with session_scope(sessions) as db:
            return insert_message(db, conversation_id, text, is_admin_reply, utcnow())
    except SQLAlchemyError as exc:
        raise StorageError(
            "failed to append message", {"conversation_id": conversation_id}
        ) from exc


def list_by_conversation(sessions: sessionmaker, conversation_id: int) -> List[MessageItem]:
    try:
        with session_scope(sessions) as db:
            return messages_for(db, conversation_id)
    except SQLAlchemyError as exc:
        raise StorageError(
            "failed to list messages", {"conversation_id": conversation_id}
        ) from exc


def list_conversations_summary(
    sessions: sessionmaker, admin: AdminContext
) -> List[ConversationSummary]:
    """One row per conversation, most recently active first.

    Outer join so conversations without messages still show up with a count
    of zero and no last message time.
    """
    _ensure_admin(admin)
    stmt = (
        select(
            Conversation,
            func.count(Message.id).label("message_count"),
            func.max(Message.created_at).label("last_message_time"),
        )
        .outerjoin(Message, Message.conversation_id == Conversation.id)
        .group_by(Conversation.id)
        .order_by(Conversation.last_activity.desc(), Conversation.id.desc())
    )
    try:
        with session_scope(sessions) as db:
            return [
                ConversationSummary(
                    conversation=ConversationItem.model_validate(conversation),
                    message_count=message_count,
                    last_message_time=last_message_time,
                )
                for conversation, message_count, last_message_time in db.execute(stmt)
            ]
    except SQLAlchemyError as exc:
        raise StorageError("failed to list conversations") from exc


def get_conversation(
    sessions: sessionmaker, admin: AdminContext, conversation_id: int
) -> ConversationDetail:
    _ensure_admin(admin)
    try:
        with session_scope(sessions) as db:
            conversation = db.get(Conversation, conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            return ConversationDetail(
                conversation=ConversationItem.model_validate(conversation),
                messages=messages_for(db, conversation_id),
            )
    except SQLAlchemyError as exc:
        raise StorageError(
            "failed to load conversation", {"conversation_id": conversation_id}
        ) from exc


def reply(
    sessions: sessionmaker, admin: AdminContext, conversation_id: int, body: Optional[str]
) -> int:
    _ensure_admin(admin)
    return append(sessions, conversation_id, body, is_admin_reply=True)
