"""FastAPI entrypoint exposing one in-memory cross-reference session."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from equitool.catalog.enums import (
    BRAND_SPECIALTIES,
    CONDITIONS_MAP,
    FAILURES_MAP,
    MACHINE_CONFIG,
    Material,
    Operation,
    sub_operations,
)
from equitool.catalog.models import SearchRequest
from equitool.config import DEFAULT_GEMINI_MODELS, DEFAULT_MODELS, ChatConfig, GatewayConfig
from equitool.gateway.clients import (
    GeminiReasoningClient,
    LangChainReasoningClient,
    ReasoningClient,
    UnconfiguredReasoningClient,
)
from equitool.gateway.errors import SessionStateError
from equitool.gateway.gateway import ReasoningGateway
from equitool.obs.tracing import TraceStore
from equitool.session.chat import ChatSession
from equitool.session.controller import SessionController, SessionSnapshot
from equitool.session.view import result_status

logger = logging.getLogger(__name__)


def _select_backend() -> str:
    provider = os.getenv("EQUITOOL_PROVIDER", "").lower()
    gemini_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if gemini_key and provider in {"", "gemini"}:
        return "gemini"
    if os.getenv("OPENAI_API_KEY") and provider in {"", "openai"}:
        return "openai"
    return "unconfigured"


def _load_configs(backend: str) -> tuple[GatewayConfig, ChatConfig]:
    models_env = os.getenv("EQUITOOL_MODELS")
    models = [name for name in models_env.split(",") if name.strip()] if models_env else []
    if not models:
        models = list(DEFAULT_GEMINI_MODELS if backend == "gemini" else DEFAULT_MODELS)
    grounding = os.getenv("EQUITOOL_GROUNDING", "").lower() in {"1", "true", "yes"}
    return GatewayConfig(models=models, grounding=grounding), ChatConfig(models=models)


def _create_client(
    backend: str, gateway_config: GatewayConfig, chat_config: ChatConfig
) -> ReasoningClient:
    if backend == "gemini":
        return GeminiReasoningClient(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
            grounding=gateway_config.grounding,
            temperature=gateway_config.temperature,
            chat_temperature=chat_config.temperature,
        )
    if backend == "openai":
        return LangChainReasoningClient(
            temperature=gateway_config.temperature,
            chat_temperature=chat_config.temperature,
        )
    logger.warning("no reasoning backend configured; every resolve call will fail")
    return UnconfiguredReasoningClient()


class RefineRequest(BaseModel):
    params: dict[str, str] = Field(min_length=1)


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


app = FastAPI(title="EquiTool Cross-Reference", version="0.1.0")

_backend = _select_backend()
_gateway_config, _chat_config = _load_configs(_backend)
_trace_store = TraceStore()
_gateway = ReasoningGateway(
    client=_create_client(_backend, _gateway_config, _chat_config),
    trace_store=_trace_store,
    config=_gateway_config,
    chat_config=_chat_config,
)
_controller = SessionController(gateway=_gateway)
_chat = ChatSession(_gateway)


def _session_payload(snapshot: SessionSnapshot) -> dict[str, Any]:
    result = snapshot.result
    return {
        "state": snapshot.state.value,
        "lastRequest": snapshot.last_request.to_wire() if snapshot.last_request else None,
        "result": result.to_wire() if result else None,
        "status": result_status(result).value if result else None,
        "error": snapshot.last_error,
        "refinedParams": snapshot.refined_params,
    }


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "backend": _backend,
        "models": _gateway.config.models,
        "state": _controller.state.value,
        "trace_count": len(_trace_store),
    }


@app.get("/catalog")
def catalog() -> dict[str, Any]:
    return {
        "brands": {brand.value: text for brand, text in BRAND_SPECIALTIES.items()},
        "materials": [material.value for material in Material],
        "operations": {
            op.value: [sub.value for sub in sub_operations(op)] for op in Operation
        },
        "conditions": {op.value: list(items) for op, items in CONDITIONS_MAP.items()},
        "failureModes": {op.value: list(items) for op, items in FAILURES_MAP.items()},
        "machine": {
            op.value: {"label": label, "placeholder": placeholder}
            for op, (label, placeholder) in MACHINE_CONFIG.items()
        },
    }


@app.get("/session")
def session() -> dict[str, Any]:
    return _session_payload(_controller.snapshot())


@app.post("/session/submit")
def submit(request: SearchRequest) -> dict[str, Any]:
    try:
        snapshot = _controller.submit(request)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    _chat.bind(snapshot.result)
    return _session_payload(snapshot)


@app.post("/session/refine")
def refine(request: RefineRequest) -> dict[str, Any]:
    try:
        snapshot = _controller.refine(request.params)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    _chat.bind(snapshot.result)
    return _session_payload(snapshot)


@app.post("/session/reset")
def reset() -> dict[str, Any]:
    snapshot = _controller.reset()
    _chat.bind(None)
    return _session_payload(snapshot)


@app.post("/session/edit")
def edit() -> dict[str, Any]:
    return _session_payload(_controller.edit())


@app.post("/chat")
def chat(request: ChatRequest) -> dict[str, Any]:
    result = _controller.result
    if result is None:
        raise HTTPException(status_code=409, detail="No analysis to discuss yet.")
    _chat.bind(result)
    reply = _chat.send(request.message)
    return {
        "reply": reply.text if reply else "",
        "messages": [
            {"id": message.id, "role": message.role.value, "text": message.text}
            for message in _chat.messages
        ],
    }


@app.get("/traces")
def traces(limit: int = 20) -> dict[str, Any]:
    records = [asdict(record) for record in _trace_store.list_recent(limit=limit)]
    return {"items": records}


@app.get("/traces/{trace_id}")
def trace_detail(trace_id: str) -> dict[str, Any]:
    try:
        record = _trace_store.get(trace_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return asdict(record)


@app.get("/metrics")
def metrics() -> dict[str, Any]:
    return _trace_store.summary()
