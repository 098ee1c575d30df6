from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Literal, Protocol

from pydantic import BaseModel, Field

from chat.errors import ConversationNotFoundError


TITLE_LIMIT = 50


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def make_title(first_message: str) -> str:
    if len(first_message) > TITLE_LIMIT:
        return first_message[:TITLE_LIMIT] + "..."
    return first_message


class Conversation(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    title: str
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Message(BaseModel):
    model_config = {"frozen": True}

    id: str = Field(default_factory=_new_id)
    conversation_id: str
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime = Field(default_factory=_now)


class ConversationStore(Protocol):
    """Rows owned by one authenticated user; other users' rows are invisible."""

    def create_conversation(self, user_id: str, title: str) -> Conversation: ...

    def get_conversation(self, user_id: str, conversation_id: str) -> Conversation: ...

    def list_conversations(self, user_id: str) -> List[Conversation]: ...

    def delete_conversation(self, user_id: str, conversation_id: str) -> None: ...

    def add_message(
        self, user_id: str, conversation_id: str, role: str, content: str
    ) -> Message: ...

    def list_messages(self, user_id: str, conversation_id: str) -> List[Message]: ...


class InMemoryConversationStore:
    """Process-local ConversationStore, used for local runs and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}

    def _owned(self, user_id: str, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def create_conversation(self, user_id: str, title: str) -> Conversation:
        conversation = Conversation(user_id=user_id, title=title)
        with self._lock:
            self._conversations[conversation.id] = conversation
            self._messages[conversation.id] = []
        return conversation.model_copy()

    def get_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        with self._lock:
            return self._owned(user_id, conversation_id).model_copy()

    def list_conversations(self, user_id: str) -> List[Conversation]:
        with self._lock:
            owned = [c.model_copy() for c in self._conversations.values() if c.user_id == user_id]
        return sorted(owned, key=lambda c: c.updated_at, reverse=True)

    def delete_conversation(self, user_id: str, conversation_id: str) -> None:
        with self._lock:
            self._owned(user_id, conversation_id)
            del self._conversations[conversation_id]
            self._messages.pop(conversation_id, None)

    def add_message(
        self, user_id: str, conversation_id: str, role: str, content: str
    ) -> Message:
        with self._lock:
            conversation = self._owned(user_id, conversation_id)
            message = Message(conversation_id=conversation_id, role=role, content=content)
            self._messages[conversation_id].append(message)
            conversation.updated_at = message.created_at
        return message

    def list_messages(self, user_id: str, conversation_id: str) -> List[Message]:
        with self._lock:
            self._owned(user_id, conversation_id)
            messages = list(self._messages[conversation_id])
        return sorted(messages, key=lambda m: m.created_at)
