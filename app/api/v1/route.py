import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import ConversationNotFoundError, StorageError, ValidationError
from app.db.session import get_session_factory
from app.model.admin.login_request import LoginRequest, LoginStateResponse
from app.model.conversation.conversation_response import (
    ConversationDetail,
    ConversationSummaryResponse,
)
from app.model.message.message_request import ReplyRequest, SendMessageRequest
from app.model.message.message_response import HomeResponse, SendMessageResponse
from app.service.admin.auth import AdminContext, current_admin, login, logout, require_admin
from app.service.conversation.resolver import new_token, resolve, send
from app.service.message.store import (
    clean_body,
    get_conversation,
    list_conversations_summary,
    reply,
)

logger = logging.getLogger(__name__)

api_router = APIRouter()

SESSION_TOKEN_KEY = "session_token"
ADMIN_HOME_PATH = "/api/v1/admin"
ADMIN_LOGIN_PATH = "/api/v1/admin/login"


def _status_response(code: int, body: SendMessageResponse) -> JSONResponse:
    return JSONResponse(status_code=code, content=body.model_dump())


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


@api_router.get("/messages", response_model=HomeResponse)
def home(request: Request, sessions: sessionmaker = Depends(get_session_factory)):
    try:
        resolution = resolve(sessions, request.session.get(SESSION_TOKEN_KEY))
    except StorageError:
        logger.exception("failed to load visitor messages")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=HomeResponse(status="failed", messages=[]).model_dump(mode="json"),
        )
    if resolution.issued:
        request.session[SESSION_TOKEN_KEY] = resolution.token
    return HomeResponse(status="ok", messages=resolution.messages)


@api_router.post("/send-message", response_model=SendMessageResponse, status_code=201)
def send_message(
    req: SendMessageRequest,
    request: Request,
    sessions: sessionmaker = Depends(get_session_factory),
):
    try:
        clean_body(req.message)
    except ValidationError:
        return _status_response(status.HTTP_400_BAD_REQUEST, SendMessageResponse(status="empty"))

    token = request.session.get(SESSION_TOKEN_KEY)
    if not token:
        token = new_token()
        request.session[SESSION_TOKEN_KEY] = token

    try:
        _, message_id = send(sessions, token, req.message)
    except StorageError:
        logger.exception("failed to send message")
        return _status_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, SendMessageResponse(status="failed")
        )
    return SendMessageResponse(status="sent", message_id=message_id)


@api_router.get("/admin/login", response_model=LoginStateResponse)
def admin_login_page(request: Request, error: str | None = None):
    if current_admin(request.session) is not None:
        return _redirect(ADMIN_HOME_PATH)
    return LoginStateResponse(authenticated=False, error=error)


@api_router.post("/admin/login")
def admin_login(req: LoginRequest, request: Request):
    if login(request.session, req.username, req.password):
        return _redirect(ADMIN_HOME_PATH)
    return _redirect(f"{ADMIN_LOGIN_PATH}?error=invalid")


@api_router.post("/admin/logout")
def admin_logout(request: Request):
    logout(request.session)
    return _redirect(ADMIN_LOGIN_PATH)


@api_router.get("/admin", response_model=ConversationSummaryResponse)
def admin_summary(
    admin: AdminContext = Depends(require_admin),
    sessions: sessionmaker = Depends(get_session_factory),
):
    try:
        conversations = list_conversations_summary(sessions, admin)
    except StorageError:
        logger.exception("failed to load conversation summary")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ConversationSummaryResponse(status="failed", conversations=[]).model_dump(mode="json"),
        )
    return ConversationSummaryResponse(status="ok", conversations=conversations)


@api_router.get("/admin/conversation/{conversation_id}", response_model=ConversationDetail)
def admin_conversation(
    conversation_id: int,
    admin: AdminContext = Depends(require_admin),
    sessions: sessionmaker = Depends(get_session_factory),
):
    try:
        return get_conversation(sessions, admin, conversation_id)
    except ConversationNotFoundError:
        return _redirect(ADMIN_HOME_PATH)
    except StorageError:
        logger.exception("failed to load conversation id=%s", conversation_id)
        return _redirect(ADMIN_HOME_PATH)


@api_router.post(
    "/admin/reply/{conversation_id}", response_model=SendMessageResponse, status_code=201
)
def admin_reply(
    conversation_id: int,
    req: ReplyRequest,
    admin: AdminContext = Depends(require_admin),
    sessions: sessionmaker = Depends(get_session_factory),
):
    try:
        message_id = reply(sessions, admin, conversation_id, req.reply)
    except ValidationError:
        return _status_response(status.HTTP_400_BAD_REQUEST, SendMessageResponse(status="empty"))
    except ConversationNotFoundError:
        return _redirect(ADMIN_HOME_PATH)
    except StorageError:
        logger.exception("failed to send reply conversation=%s", conversation_id)
        return _status_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, SendMessageResponse(status="failed")
        )
    return SendMessageResponse(status="replied", message_id=message_id)
