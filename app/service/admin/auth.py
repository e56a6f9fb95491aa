import hmac
import logging
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional

from fastapi import Request

import app.config.config as configs
from app.core.exceptions import AdminAuthError

logger = logging.getLogger(__name__)

ADMIN_FLAG_KEY = "is_admin"
ADMIN_NAME_KEY = "admin_username"


@dataclass(frozen=True)
class AdminContext:
    username: str


def verify_credentials(username: str, password: str) -> bool:
    expected_username = configs.ADMIN_USERNAME
    expected_password = configs.ADMIN_PASSWORD
    if not expected_username or not expected_password:
        return False
    # Compare both before combining so timing does not reveal which one failed
    username_ok = hmac.compare_digest(username.encode(), expected_username.encode())
    password_ok = hmac.compare_digest(password.encode(), expected_password.encode())
    return username_ok and password_ok


def login(session: MutableMapping[str, Any], username: str, password: str) -> bool:
    if not verify_credentials(username, password):
        logger.warning("admin login rejected username=%s", username)
        return False
    session[ADMIN_FLAG_KEY] = True
    session[ADMIN_NAME_KEY] = username
    logger.info("admin login username=%s", username)
    return True


def logout(session: MutableMapping[str, Any]) -> None:
    session.clear()
    logger.info("admin logout")


def current_admin(session: MutableMapping[str, Any]) -> Optional[AdminContext]:
    if not session.get(ADMIN_FLAG_KEY):
        return None
    return AdminContext(username=session.get(ADMIN_NAME_KEY, ""))


def require_admin(request: Request) -> AdminContext:
    admin = current_admin(request.session)
    if admin is None:
        raise AdminAuthError()
    return admin
