from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.model.message.message_response import MessageItem


class ConversationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_token: str
    created_at: datetime
    last_activity: datetime


class ConversationSummary(BaseModel):
    conversation: ConversationItem
    message_count: int
    last_message_time: Optional[datetime] = None


class ConversationSummaryResponse(BaseModel):
    status: str
    conversations: List[ConversationSummary]


class ConversationDetail(BaseModel):
    conversation: ConversationItem
    messages: List[MessageItem]
