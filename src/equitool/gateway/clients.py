"""Reasoning-service clients behind a single substitutable interface."""

from __future__ import annotations

import base64
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from equitool.catalog.enums import Role
from equitool.gateway.errors import ServiceUnavailable
from equitool.types import ChatMessage, ContentPart, Generation, RequestPayload


class ReasoningClient(Protocol):
    """Capability the gateway needs from a hosted generative model."""

    def generate(
        self, model: str, payload: RequestPayload, schema: dict[str, Any]
    ) -> Generation:
        """Run one schema-constrained generate call against `model`."""

    def chat(
        self,
        model: str,
        system_instruction: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> str:
        """Send `message` after `history` and return the plain-text reply."""


def _create_chat_model(model: str, temperature: float) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    return ChatOpenAI(model=model, temperature=temperature)


class LangChainReasoningClient:
    """Client driving any LangChain chat model, OpenAI by default.

    `model_factory(model, temperature)` builds the chat model for one call;
    resolve calls use `temperature` and chat calls use `chat_temperature`.
    """

    def __init__(
        self,
        *,
        model_factory: Callable[[str, float], Any] | None = None,
        temperature: float = 0.0,
        chat_temperature: float = 0.3,
    ) -> None:
        self._model_factory = model_factory or _create_chat_model
        self.temperature = temperature
        self.chat_temperature = chat_temperature

    def generate(
        self, model: str, payload: RequestPayload, schema: dict[str, Any]
    ) -> Generation:
        llm = self._model_factory(model, self.temperature)
        structured = llm.with_structured_output(
            schema, method="json_schema", include_raw=True
        )
        result = structured.invoke(
            [
                SystemMessage(content=payload.system_instruction),
                HumanMessage(content=_content_blocks(payload.parts)),
            ]
        )

        raw = result.get("raw") if isinstance(result, dict) else result
        parsed = result.get("parsed") if isinstance(result, dict) else None
        if parsed is not None and hasattr(parsed, "model_dump"):
            parsed = parsed.model_dump(by_alias=True)
        return Generation(
            model=model,
            text=message_text(raw),
            payload=parsed if isinstance(parsed, dict) else None,
            sources=_annotation_sources(raw),
        )

    def chat(
        self,
        model: str,
        system_instruction: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> str:
        llm = self._model_factory(model, self.chat_temperature)
        messages: list[BaseMessage] = [SystemMessage(content=system_instruction)]
        for turn in history:
            if turn.role is Role.USER:
                messages.append(HumanMessage(content=turn.text))
            else:
                messages.append(AIMessage(content=turn.text))
        messages.append(HumanMessage(content=message))
        return message_text(llm.invoke(messages))


class GeminiReasoningClient:
    """Client for the Google GenAI SDK with optional search grounding.

    With grounding enabled the service accepts neither a response schema nor
    a JSON mime type, so the answer comes back as text and the gateway
    parses and validates it on its own.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        client: Any | None = None,
        grounding: bool = False,
        temperature: float = 0.0,
        chat_temperature: float = 0.3,
    ) -> None:
        if client is None:
            from google import genai

            client = genai.Client(api_key=api_key)
        self._client = client
        self.grounding = grounding
        self.temperature = temperature
        self.chat_temperature = chat_temperature

    def generate(
        self, model: str, payload: RequestPayload, schema: dict[str, Any]
    ) -> Generation:
        from google.genai import types

        parts = []
        for part in payload.parts:
            if part.is_inline:
                parts.append(
                    types.Part.from_bytes(
                        data=base64.b64decode(part.data or ""),
                        mime_type=part.mime_type or "application/octet-stream",
                    )
                )
            elif part.text:
                parts.append(types.Part.from_text(text=part.text))

        config_kwargs: dict[str, Any] = {
            "system_instruction": payload.system_instruction,
            "temperature": self.temperature,
        }
        if self.grounding:
            config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        else:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = schema

        response = self._client.models.generate_content(
            model=model,
            contents=[types.Content(role="user", parts=parts)],
            config=types.GenerateContentConfig(**config_kwargs),
        )
        parsed = getattr(response, "parsed", None)
        return Generation(
            model=model,
            text=response.text or "",
            payload=parsed if isinstance(parsed, dict) else None,
            sources=_grounding_sources(response),
        )

    def chat(
        self,
        model: str,
        system_instruction: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> str:
        from google.genai import types

        session = self._client.chats.create(
            model=model,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=self.chat_temperature,
            ),
            history=[
                types.Content(
                    role=turn.role.value,
                    parts=[types.Part.from_text(text=turn.text)],
                )
                for turn in history
            ],
        )
        response = session.send_message(message)
        return response.text or ""


class UnconfiguredReasoningClient:
    """Stand-in used when no API key is configured; every call fails."""

    def generate(
        self, model: str, payload: RequestPayload, schema: dict[str, Any]
    ) -> Generation:
        raise ServiceUnavailable("No reasoning backend configured", model=model)

    def chat(
        self,
        model: str,
        system_instruction: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> str:
        raise ServiceUnavailable("No reasoning backend configured", model=model)


def _content_blocks(parts: Sequence[ContentPart]) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = []
    for part in parts:
        if part.is_inline:
            mime_type = part.mime_type or "application/octet-stream"
            if mime_type.startswith("image/"):
                blocks.append(
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{mime_type};base64,{part.data}"},
                    }
                )
            else:
                blocks.append(
                    {
                        "type": "file",
                        "source_type": "base64",
                        "mime_type": mime_type,
                        "data": part.data,
                    }
                )
        elif part.text:
            blocks.append({"type": "text", "text": part.text})
    return blocks


def message_text(message: Any) -> str:
    if message is None:
        return ""
    if isinstance(message, str):
        return message
    content = getattr(message, "content", message)
    if isinstance(content, list):
        texts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if "text" in item:
                    texts.append(str(item["text"]))
            else:
                texts.append(str(item))
        return "".join(texts).strip()
    return str(content)


def _annotation_sources(message: Any) -> list[dict[str, str]]:
    content = getattr(message, "content", None)
    if not isinstance(content, list):
        return []
    sources: list[dict[str, str]] = []
    for item in content:
        if not isinstance(item, dict):
            continue
        for annotation in item.get("annotations") or []:
            if not isinstance(annotation, dict):
                continue
            uri = annotation.get("url") or annotation.get("uri")
            if uri:
                sources.append({"uri": str(uri), "title": str(annotation.get("title") or uri)})
    return sources


def _grounding_sources(response: Any) -> list[dict[str, str]]:
    sources: list[dict[str, str]] = []
    for candidate in getattr(response, "candidates", None) or []:
        metadata = getattr(candidate, "grounding_metadata", None)
        for chunk in getattr(metadata, "grounding_chunks", None) or []:
            web = getattr(chunk, "web", None)
            uri = getattr(web, "uri", None)
            if uri:
                sources.append({"uri": uri, "title": getattr(web, "title", None) or uri})
    return sources
