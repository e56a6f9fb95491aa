import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

import app.config.config as configs
from app.api.v1.route import ADMIN_LOGIN_PATH, api_router as MainRouter
from app.core.exceptions import AdminAuthError
from app.db.session import Base, engine
from app.db import models  # noqa: F401

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("inbox")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")
    yield


app = FastAPI(title="anonymous_inbox", version="0.0.1", lifespan=lifespan)
app.add_middleware(
    SessionMiddleware,
    secret_key=configs.SESSION_SECRET,
    max_age=configs.SESSION_MAX_AGE,
    https_only=configs.APP_ENV == "production",
)
app.include_router(router=MainRouter, prefix="/api/v1")


@app.exception_handler(AdminAuthError)
async def admin_auth_handler(request: Request, exc: AdminAuthError):
    return RedirectResponse(url=ADMIN_LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=configs.PORT)
