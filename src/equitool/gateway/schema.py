"""JSON schema the reasoning service must answer with."""

from __future__ import annotations

from typing import Any

from equitool.catalog.enums import ReplacementStrategy

TOOL_SPECS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "isoCode": {"type": "string"},
        "grade": {"type": "string"},
        "coating": {"type": "string"},
        "material": {"type": "string"},
        "geometry": {"type": "string"},
        "application": {"type": "string"},
        "cuttingSpeed": {"type": "string"},
        "feedRate": {"type": "string"},
    },
}

PRODUCT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "brand": {"type": "string"},
        "name": {"type": "string"},
        "partNumber": {"type": "string"},
        "description": {"type": "string"},
        "specs": TOOL_SPECS_SCHEMA,
    },
    "required": ["brand", "name", "partNumber", "description", "specs"],
}

RESPONSE_SCHEMA: dict[str, Any] = {
    "title": "EquivalencyResult",
    "description": "Competitor tool identification and the target brand equivalent.",
    "type": "object",
    "properties": {
        "competitor": PRODUCT_SCHEMA,
        "recommendation": PRODUCT_SCHEMA,
        "alternatives": {"type": "array", "items": PRODUCT_SCHEMA},
        "reasoning": {"type": "string"},
        "confidenceScore": {"type": "integer", "minimum": 0, "maximum": 100},
        "missingParams": {"type": "array", "items": {"type": "string"}},
        "educationalTip": {"type": "string"},
        "replacementStrategy": {
            "type": "string",
            "enum": [strategy.value for strategy in ReplacementStrategy],
        },
    },
    "required": ["competitor", "recommendation", "reasoning", "confidenceScore"],
}
