"""Ephemeral chat transcript bound to one result."""

from __future__ import annotations

import uuid

from equitool.catalog.enums import Role
from equitool.catalog.models import EquivalencyResult
from equitool.gateway.gateway import ReasoningGateway
from equitool.query.prompts import chat_greeting
from equitool.types import ChatMessage

DEFAULT_CHAT_BRAND = "Technical"


def _brand_of(result: EquivalencyResult | None) -> str:
    if result is None:
        return DEFAULT_CHAT_BRAND
    return result.recommendation.brand or DEFAULT_CHAT_BRAND


class ChatSession:
    def __init__(self, gateway: ReasoningGateway, result: EquivalencyResult | None = None) -> None:
        self.gateway = gateway
        self.result = result
        self.brand = _brand_of(result)
        self.messages: list[ChatMessage] = []
        self._restart()

    def bind(self, result: EquivalencyResult | None) -> None:
        """Point the chat at a new result; the transcript restarts on a brand change."""
        self.result = result
        brand = _brand_of(result)
        if brand != self.brand:
            self.brand = brand
            self._restart()

    def send(self, text: str) -> ChatMessage | None:
        if not text or not text.strip():
            return None
        history = list(self.messages)
        self.messages.append(ChatMessage(id=_new_id(), role=Role.USER, text=text))
        reply = self.gateway.converse(history, self.result, text)
        message = ChatMessage(id=_new_id(), role=Role.MODEL, text=reply)
        self.messages.append(message)
        return message

    def _restart(self) -> None:
        self.messages = [ChatMessage(id=_new_id(), role=Role.MODEL, text=chat_greeting(self.brand))]


def _new_id() -> str:
    return uuid.uuid4().hex
