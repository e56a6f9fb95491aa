from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    body: str
    is_admin_reply: bool
    created_at: datetime


class HomeResponse(BaseModel):
    status: str = Field(..., description="ok | failed")
    messages: List[MessageItem]


class SendMessageResponse(BaseModel):
    # sent | replied | empty | failed
    status: str
    message_id: Optional[int] = None
