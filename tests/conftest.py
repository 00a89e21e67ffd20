from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from equitool.config import ChatConfig, GatewayConfig
from equitool.gateway.gateway import ReasoningGateway
from equitool.obs.tracing import TraceStore
from equitool.types import Generation

MODELS = ["model-a", "model-b", "model-c"]


def make_answer(**overrides: Any) -> dict[str, Any]:
    answer: dict[str, Any] = {
        "competitor": {
            "brand": "Sandvik",
            "name": "T-Max P",
            "partNumber": "CNMG 120408-PM 4325",
            "description": "Negative rhombic turning insert",
            "specs": {"isoCode": "CNMG 120408", "grade": "4325"},
        },
        "recommendation": {
            "brand": "Tungaloy",
            "name": "TurnTec",
            "partNumber": "CNMG120408-TM T9225",
            "description": "Steel turning insert",
            "specs": {"grade": "T9225", "coating": "CVD"},
        },
        "alternatives": [
            {
                "brand": "Tungaloy",
                "name": "TurnTec",
                "partNumber": "CNMG120408-TSF T9215",
                "description": "Finishing chipbreaker",
                "specs": {"grade": "T9215"},
            }
        ],
        "reasoning": "ISO interchangeable insert; T9225 matches P25 steel turning.",
        "confidenceScore": 92,
        "missingParams": [],
        "educationalTip": "CNMG inserts are double sided.",
        "replacementStrategy": "INSERT_ONLY",
    }
    answer.update(overrides)
    return answer


class ScriptedClient:
    """Reasoning client answering from per-model scripts.

    A script entry may be an exception (raised), a dict (structured payload),
    a string (raw text answer) or a ready `Generation`.
    """

    def __init__(
        self,
        generate: dict[str, Any] | None = None,
        chat: dict[str, Any] | None = None,
        sources: list[dict[str, str]] | None = None,
    ) -> None:
        self.generate_script = generate or {}
        self.chat_script = chat or {}
        self.sources = sources or []
        self.generate_calls: list[tuple[str, Any]] = []
        self.chat_calls: list[tuple[str, str, list[Any], str]] = []
        self.on_generate: Callable[[str], None] | None = None

    def generate(self, model: str, payload: Any, schema: dict[str, Any]) -> Generation:
        self.generate_calls.append((model, payload))
        if self.on_generate is not None:
            self.on_generate(model)
        entry = self.generate_script.get(model, RuntimeError(f"{model} unavailable"))
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, Generation):
            return entry
        if isinstance(entry, dict):
            return Generation(model=model, payload=entry, sources=list(self.sources))
        return Generation(model=model, text=str(entry), sources=list(self.sources))

    def chat(self, model: str, system_instruction: str, history: Any, message: str) -> str:
        self.chat_calls.append((model, system_instruction, list(history), message))
        entry = self.chat_script.get(model, RuntimeError(f"{model} unavailable"))
        if isinstance(entry, Exception):
            raise entry
        return str(entry)


@pytest.fixture
def answer() -> dict[str, Any]:
    return make_answer()


@pytest.fixture
def make_gateway() -> Callable[..., ReasoningGateway]:
    def _make(client: ScriptedClient, *, max_sources: int = 3) -> ReasoningGateway:
        return ReasoningGateway(
            client=client,
            trace_store=TraceStore(),
            config=GatewayConfig(models=MODELS, max_sources=max_sources),
            chat_config=ChatConfig(models=MODELS),
        )

    return _make
