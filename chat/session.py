from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from chat.errors import ProxyRequestError, SessionBusyError
from chat.store import Conversation, ConversationStore, Message, make_title


logger = logging.getLogger(__name__)

PROXY_TIMEOUT_SECONDS = 30.0


def to_turns(messages: List[Message]) -> List[Dict[str, Any]]:
    """Map stored messages to Gemini turns (assistant becomes model)."""
    return [
        {
            "role": "user" if m.role == "user" else "model",
            "parts": [{"text": m.content}],
        }
        for m in messages
    ]


class ProxyClient:
    """Posts chat requests to the deployed chat proxy."""

    def __init__(
        self,
        url: str,
        access_token: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: float = PROXY_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self.access_token = access_token
        self.anon_key = anon_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.anon_key:
            headers["apikey"] = self.anon_key
        return headers

    def send(self, message: str, history: List[Dict[str, Any]]) -> str:
        """Post one chat request; ``timeout`` bounds the whole exchange."""
        payload = {"message": message, "conversationHistory": history}
        deadline = time.monotonic() + self.timeout
        chunks: List[bytes] = []
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                with client.stream(
                    "POST", self.url, json=payload, headers=self._headers()
                ) as response:
                    for chunk in response.iter_bytes():
                        if time.monotonic() > deadline:
                            raise ProxyRequestError(
                                "Request timeout - chat proxy took too long"
                            )
                        chunks.append(chunk)
        except httpx.TimeoutException as exc:
            raise ProxyRequestError("Request timeout - chat proxy took too long") from exc
        except httpx.HTTPError as exc:
            raise ProxyRequestError(f"Chat proxy call failed: {exc}") from exc

        if time.monotonic() > deadline:
            raise ProxyRequestError("Request timeout - chat proxy took too long")

        content = b"".join(chunks)
        if not response.is_success:
            text = content.decode(response.encoding or "utf-8", errors="replace")
            raise ProxyRequestError(f"HTTP {response.status_code}: {text}")

        try:
            data = json.loads(content)
        except ValueError as exc:
            raise ProxyRequestError("Chat proxy returned invalid JSON") from exc

        reply = data.get("response") if isinstance(data, dict) else None
        if isinstance(reply, str) and reply:
            return reply
        if isinstance(data, dict) and data.get("error"):
            raise ProxyRequestError(f"AI error: {data['error']}")
        raise ProxyRequestError(f"No response from AI: {data!r}")


class ChatSession:
    """Client-side send-message flow for one signed-in user.

    Sending persists the user message, asks the proxy for a reply with the
    earlier transcript as history, then persists the reply. Failures are
    raised to the caller and never retried; the user message stays saved.
    """

    def __init__(self, store: ConversationStore, proxy: ProxyClient, user_id: str) -> None:
        self.store = store
        self.proxy = proxy
        self.user_id = user_id
        self.current_conversation_id: Optional[str] = None
        self.messages: List[Message] = []
        self.loading = False

    def conversations(self) -> List[Conversation]:
        return self.store.list_conversations(self.user_id)

    def new_conversation(self) -> None:
        self.current_conversation_id = None
        self.messages = []

    def switch_conversation(self, conversation_id: str) -> List[Message]:
        messages = self.store.list_messages(self.user_id, conversation_id)
        self.current_conversation_id = conversation_id
        self.messages = messages
        return messages

    def delete_conversation(self, conversation_id: str) -> None:
        self.store.delete_conversation(self.user_id, conversation_id)
        if self.current_conversation_id == conversation_id:
            self.new_conversation()

    def send_message(self, content: str) -> Message:
        if self.loading:
            raise SessionBusyError("A message is already being sent")

        self.loading = True
        try:
            if self.current_conversation_id is None:
                conversation = self.store.create_conversation(self.user_id, make_title(content))
                self.current_conversation_id = conversation.id
            conversation_id = self.current_conversation_id

            history = to_turns(self.messages)
            user_message = self.store.add_message(self.user_id, conversation_id, "user", content)
            self.messages.append(user_message)

            try:
                reply = self.proxy.send(content, history)
            except ProxyRequestError as exc:
                logger.error("Error sending message: %s", exc)
                raise

            assistant_message = self.store.add_message(
                self.user_id, conversation_id, "assistant", reply
            )
            self.messages.append(assistant_message)
            return assistant_message
        finally:
            self.loading = False
