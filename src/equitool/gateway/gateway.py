"""Reasoning gateway: schema-constrained resolve and best-effort chat.

`resolve` is the only path from a prompt payload to an `EquivalencyResult`.
Each candidate model is tried in order; an attempt counts as failed when the
service errors, answers with nothing, or answers with JSON that does not
validate after the repair rules below. The repair rules are applied to the raw
JSON object in this order:

1. A missing `competitor` becomes a "Generic/ISO" stub whose part number is
   the raw text input (or a placeholder for binary input).
2. A text input is never answered with an "N/A" or blank competitor part
   number; the raw input is written back instead.
3. A missing `recommendation` becomes a "Contact Support" stub for the target
   brand so a partial answer is still shown.
4. Cited sources are de-duplicated by URI, first occurrence wins, and capped.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from equitool.catalog.enums import Brand, InputKind, Role
from equitool.catalog.models import EquivalencyResult
from equitool.config import ChatConfig, GatewayConfig
from equitool.gateway.clients import ReasoningClient
from equitool.gateway.errors import (
    ConversationFailure,
    InputExtractionFailure,
    ResolutionError,
    SchemaViolation,
    ServiceUnavailable,
)
from equitool.gateway.fallback import run_with_fallback
from equitool.gateway.schema import RESPONSE_SCHEMA
from equitool.obs.tracing import Timer, TraceStore, estimate_token_count
from equitool.query.prompts import CHAT_FALLBACK_REPLY, chat_instruction, chat_seed_turns
from equitool.types import ChatMessage, Generation, ModelAttempt, RequestPayload

logger = logging.getLogger(__name__)

GENERIC_BRAND = "Generic/ISO"
NOT_AVAILABLE = "N/A"
CONTACT_SUPPORT = "Contact Support"
BINARY_PLACEHOLDERS = {
    InputKind.IMAGE.value: "Extracted from Image",
    InputKind.PDF.value: "Extracted from PDF",
}

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", flags=re.DOTALL)


class ReasoningGateway:
    """Sends prompt payloads to the reasoning service and returns validated results."""

    def __init__(
        self,
        *,
        client: ReasoningClient,
        trace_store: TraceStore | None = None,
        config: GatewayConfig | None = None,
        chat_config: ChatConfig | None = None,
    ) -> None:
        self.client = client
        self.trace_store = trace_store or TraceStore()
        self.config = config or GatewayConfig()
        self.chat_config = chat_config or ChatConfig(models=self.config.models)

    def resolve(
        self,
        payload: RequestPayload,
        brand: Brand | str | None = None,
        *,
        operation: str = "resolve",
    ) -> EquivalencyResult:
        """Resolve `payload` into a validated result.

        Raises:
            InputExtractionFailure: The last model answered with nothing usable.
            SchemaViolation: The last model's answer did not validate.
            ServiceUnavailable: The last model failed for any other reason.
        """

        target = Brand(brand or payload.target_brand).value
        attempts: list[ModelAttempt] = []
        generation_box: list[Generation] = []

        def _attempt(model: str) -> EquivalencyResult:
            generation = self._generate(model, payload)
            generation_box[:] = [generation]
            return self._validate(generation, payload, target)

        with Timer() as timer:
            try:
                result = run_with_fallback(
                    self.config.models,
                    _attempt,
                    observer=attempts.append,
                    label=operation,
                )
            except ResolutionError as exc:
                self._record(operation, target, payload, attempts, timer, error=exc)
                raise

        generation = generation_box[0] if generation_box else None
        self._record(
            operation,
            target,
            payload,
            attempts,
            timer,
            output=generation.text if generation else "",
            source_count=len(result.sources),
        )
        logger.info(
            "%s: %s -> %s (confidence=%d, model=%s)",
            operation,
            result.competitor.part_number,
            result.recommendation.part_number,
            result.confidence_score,
            attempts[-1].model if attempts else "?",
        )
        return result

    def converse(
        self,
        history: Sequence[ChatMessage],
        context_result: EquivalencyResult | None,
        new_message: str,
    ) -> str:
        """Answer a follow-up question about `context_result`; never raises."""
        brand = "Technical"
        context_json = "{}"
        if context_result is not None:
            brand = context_result.recommendation.brand or brand
            context_json = json.dumps(context_result.to_wire(), ensure_ascii=False)

        seed_user, seed_model = chat_seed_turns(context_json, brand)
        turns = [
            ChatMessage(id="context", role=Role.USER, text=seed_user),
            ChatMessage(id="context-ack", role=Role.MODEL, text=seed_model),
            *history,
        ]
        instruction = chat_instruction(brand)
        attempts: list[ModelAttempt] = []

        def _attempt(model: str) -> str:
            reply = self.client.chat(model, instruction, turns, new_message)
            if not reply or not reply.strip():
                raise ConversationFailure(f"{model} returned an empty reply")
            return reply

        with Timer() as timer:
            try:
                reply = run_with_fallback(
                    self.chat_config.models,
                    _attempt,
                    observer=attempts.append,
                    label="converse",
                )
            except Exception as exc:
                logger.error("converse: all chat models failed: %s", exc)
                reply = CHAT_FALLBACK_REPLY
                outcome, error = "fallback_reply", str(exc)
            else:
                outcome, error = "ok", None

        self.trace_store.create_record(
            operation="converse",
            brand=brand,
            outcome=outcome,
            model=attempts[-1].model if attempts and attempts[-1].ok else None,
            attempts=attempts,
            input_tokens=estimate_token_count(new_message),
            output_tokens=estimate_token_count(reply),
            latency_ms=timer.elapsed_ms,
            error=error,
        )
        return reply

    def _generate(self, model: str, payload: RequestPayload) -> Generation:
        try:
            return self.client.generate(model, payload, RESPONSE_SCHEMA)
        except ResolutionError:
            raise
        except Exception as exc:
            raise ServiceUnavailable(f"{model}: {exc}", model=model) from exc

    def _validate(
        self, generation: Generation, payload: RequestPayload, brand: str
    ) -> EquivalencyResult:
        if generation.payload is not None:
            data: Any = generation.payload
        else:
            data = parse_json_object(generation.text, model=generation.model)
        if not data:
            raise InputExtractionFailure(
                f"{generation.model} identified no product", details={"model": generation.model}
            )

        repaired = repair_result(
            data,
            raw_input=payload.raw_input,
            input_kind=payload.input_kind,
            target_brand=brand,
        )
        repaired["sources"] = dedupe_sources(
            [*generation.sources, *_as_list(data.get("sources"))],
            limit=self.config.max_sources,
        )
        try:
            return EquivalencyResult.model_validate(repaired)
        except ValidationError as exc:
            raise SchemaViolation(
                f"{generation.model} answer failed validation: {exc.error_count()} errors",
                model=generation.model,
                details={"errors": exc.errors(include_url=False)},
            ) from exc

    def _record(
        self,
        operation: str,
        brand: str,
        payload: RequestPayload,
        attempts: list[ModelAttempt],
        timer: Timer,
        *,
        output: str = "",
        error: Exception | None = None,
        source_count: int = 0,
    ) -> None:
        self.trace_store.create_record(
            operation=operation,
            brand=brand,
            outcome="ok" if error is None else type(error).__name__,
            model=attempts[-1].model if attempts and attempts[-1].ok else None,
            attempts=attempts,
            input_tokens=estimate_token_count(payload.text()),
            output_tokens=estimate_token_count(output),
            latency_ms=timer.elapsed_ms,
            error=str(error) if error is not None else None,
            source_count=source_count,
            metadata={"input_kind": payload.input_kind},
        )


def parse_json_object(text: str, *, model: str = "") -> dict[str, Any]:
    """Parse a JSON object answer, tolerating a surrounding markdown fence."""
    body = (text or "").strip()
    match = _FENCE_PATTERN.match(body)
    if match:
        body = match.group("body").strip()
    if not body:
        raise InputExtractionFailure(f"{model or 'model'} returned an empty answer")
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise SchemaViolation(
            f"{model or 'model'} returned invalid JSON: {exc}", model=model
        ) from exc
    if not isinstance(data, dict):
        raise SchemaViolation(
            f"{model or 'model'} returned {type(data).__name__}, expected an object", model=model
        )
    return data


def repair_result(
    data: Mapping[str, Any],
    *,
    raw_input: str,
    input_kind: str,
    target_brand: str,
) -> dict[str, Any]:
    """Apply the documented repair rules to a raw answer; returns a new dict."""
    repaired = dict(data)
    is_text = input_kind == InputKind.TEXT.value

    competitor = repaired.get("competitor")
    if competitor is None:
        placeholder = BINARY_PLACEHOLDERS.get(input_kind, "Extracted from Input")
        repaired["competitor"] = {
            "brand": GENERIC_BRAND,
            "name": "Identified Tool",
            "partNumber": raw_input if is_text else placeholder,
            "description": "Standard Insert",
            "specs": {},
        }
    elif isinstance(competitor, Mapping):
        competitor = dict(competitor)
        part_number = competitor.get("partNumber")
        blank = part_number is None or not str(part_number).strip()
        if is_text and (blank or str(part_number).strip().upper() == NOT_AVAILABLE):
            competitor["partNumber"] = raw_input
        repaired["competitor"] = competitor

    if repaired.get("recommendation") is None:
        repaired["recommendation"] = {
            "brand": target_brand,
            "name": "Pending",
            "partNumber": CONTACT_SUPPORT,
            "description": "Analysis Incomplete",
            "specs": {},
        }
    return repaired


def dedupe_sources(
    sources: Iterable[Mapping[str, Any]], *, limit: int = 3
) -> list[dict[str, str]]:
    """Keep the first source per URI, in order, up to `limit` entries."""
    seen: set[str] = set()
    unique: list[dict[str, str]] = []
    if limit <= 0:
        return unique
    for source in sources:
        if not isinstance(source, Mapping):
            continue
        uri = str(source.get("uri") or "").strip()
        if not uri or uri in seen:
            continue
        seen.add(uri)
        unique.append({"uri": uri, "title": str(source.get("title") or uri)})
        if len(unique) >= limit:
            break
    return unique


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []
