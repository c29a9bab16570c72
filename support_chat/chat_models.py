from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr


class _CamelModel(BaseModel):
    # Wire format is camelCase; Python code uses snake_case
    model_config = ConfigDict(populate_by_name=True)


class ChatMessage(_CamelModel):
    id: str
    conversation_id: str = Field(alias="conversationId")
    sender: Literal["user", "bot"]
    message: str
    timestamp: datetime
    is_read: bool = Field(False, alias="isRead")


class KeywordRule(_CamelModel):
    id: str
    keyword: str
    response: str
    category: str = "general"
    is_active: bool = Field(True, alias="isActive")
    priority: int = 0
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class Order(_CamelModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    status: str
    payment_status: str = Field("pending", alias="paymentStatus")
    total: float = 0
    created_at: datetime = Field(alias="createdAt")


@dataclass(frozen=True)
class Reply:
    """A bot response as an ordered list of lines.

    Rendering of line breaks is left to whoever displays the text; the API and
    the persisted record join the lines with a newline.
    """

    lines: Tuple[str, ...]

    @classmethod
    def of(cls, *lines: str) -> "Reply":
        return cls(tuple(lines))

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


# ============================================================
# HTTP payloads
# ============================================================
class ChatRequest(_CamelModel):
    message: StrictStr = Field(min_length=1)
    conversation_id: StrictStr = Field("default", alias="conversationId")


class ChatResponse(_CamelModel):
    response: str
    conversation_id: str = Field(alias="conversationId")
    message_id: str = Field(alias="messageId")
    source: Optional[str] = None


class HistoryResponse(_CamelModel):
    conversation: List[ChatMessage]
    conversation_id: str = Field(alias="conversationId")


class KeywordCreate(_CamelModel):
    keyword: Optional[str] = None
    response: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    priority: Optional[int] = None


class KeywordUpdate(KeywordCreate):
    id: Optional[str] = None


class MarkReadPayload(_CamelModel):
    conversation_id: Optional[str] = Field(None, alias="conversationId")


class ConversationSummary(_CamelModel):
    conversation_id: str = Field(alias="conversationId")
    last_message: ChatMessage = Field(alias="lastMessage")
    message_count: int = Field(alias="messageCount")
