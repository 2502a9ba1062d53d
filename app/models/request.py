from pydantic import BaseModel, Field, field_validator
from typing import List
from enum import Enum


class ChatMessageRole(str, Enum):
    """Chat message role enumeration"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    # Reserved for retrieved context injected by the server
    CONTEXT = "context"


class ChatMessage(BaseModel):
    """Single chat message"""
    role: ChatMessageRole
    content: str

    class Config:
        frozen = True

    def to_payload(self) -> dict:
        """Serialize for the inference API, which only knows system/user/assistant."""
        role = ChatMessageRole.SYSTEM if self.role == ChatMessageRole.CONTEXT else self.role
        return {"role": role.value, "content": self.content}


class ChatRequest(BaseModel):
    """Chat request model"""
    messages: List[ChatMessage] = Field(
        default_factory=list,
        description="Full conversation history, oldest first"
    )

    @field_validator("messages")
    @classmethod
    def validate_roles(cls, v):
        """Callers may not submit server-side context messages"""
        for message in v:
            if message.role == ChatMessageRole.CONTEXT:
                raise ValueError("Role 'context' is reserved for server-side use")
        return v

    def latest_user_message(self):
        """Return the chronologically last user message, or None"""
        for message in reversed(self.messages):
            if message.role == ChatMessageRole.USER:
                return message
        return None
