from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    message: str = Field(..., description="Visitor's message to the operator")


class ReplyRequest(BaseModel):
    reply: str = Field(..., description="Operator's reply to the visitor")
