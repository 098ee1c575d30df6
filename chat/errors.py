from __future__ import annotations


class ChatError(Exception):
    """Base class for errors raised by the chat package."""


class UpstreamError(ChatError):
    """Gemini answered with a non-success HTTP status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Gemini API returned HTTP {status}")
        self.status = status
        self.body = body


class ProxyRequestError(ChatError):
    """The chat proxy call failed, timed out or returned no reply."""


class SessionBusyError(ChatError):
    """A message is already being sent in this session."""


class ConversationNotFoundError(ChatError):
    """The conversation does not exist or belongs to another user."""
