from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginStateResponse(BaseModel):
    authenticated: bool
    error: str | None = None
