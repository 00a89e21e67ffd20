"""Turns a search request into the prompt payload for the reasoning service.

Everything here is pure: the same inputs always render the same payload, so
the output can be asserted on directly in tests and compared across a submit
and its refinements.
"""

from __future__ import annotations

import json
from collections.abc import Mapping

from equitool.catalog.enums import Brand, InputKind
from equitool.catalog.models import DEFAULT_MIME_TYPES, ApplicationContext, SearchRequest
from equitool.query.prompts import binary_instructions, system_instruction, text_instructions
from equitool.types import ContentPart, RequestPayload

CONTEXT_HEADER = "APPLICATION CONTEXT (Use this to select the right Grade/Geometry):"
REFINED_LABEL = "REFINED DATA"

FALLBACK_STANDARD = "Standard"
FALLBACK_FAILURE_MODE = "None/General Wear"
FALLBACK_GOAL = "Performance"

# (attribute, label) for optional parameters rendered after the core lines.
_OPTIONAL_PARAMS: tuple[tuple[str, str], ...] = (
    ("fn", "Feed (fn)"),
    ("ap", "Depth of Cut (ap)"),
    ("ae", "Radial Width (ae)"),
    ("pitch", "Pitch"),
    ("overhang", "Overhang / Stickout"),
    ("workpiece_diameter", "Workpiece Diameter"),
    ("parting_diameter", "Parting Diameter"),
    ("groove_width", "Groove Width"),
    ("groove_depth", "Groove Depth"),
    ("material_hardness", "Material Hardness"),
    ("workpiece_stability", "Workpiece Stability"),
    ("coolant", "Coolant"),
)


def _label(value: object | None, fallback: str) -> str:
    if value is None:
        return fallback
    text = getattr(value, "value", value)
    text = str(text).strip()
    return text or fallback


def build_context_block(
    context: ApplicationContext,
    refined_params: Mapping[str, str] | None = None,
) -> str:
    """Render the application context with fallbacks for every absent field."""
    params = context.params
    lines = [
        CONTEXT_HEADER,
        f"- Material: {_label(context.material, FALLBACK_STANDARD)}",
        "- Operation: "
        f"{_label(context.operation_type, FALLBACK_STANDARD)} -> "
        f"{_label(context.sub_operation_type, FALLBACK_STANDARD)}",
        f"- Cutting Speed (Vc): {_label(params.vc, FALLBACK_STANDARD)}",
        f"- Failure Mode to Solve: {_label(params.failure_mode, FALLBACK_FAILURE_MODE)}",
        f"- Goal: {_label(params.expectation, FALLBACK_GOAL)}",
        f"- Machine: {_label(params.machine_power, FALLBACK_STANDARD)}",
    ]

    for attribute, label in _OPTIONAL_PARAMS:
        value = getattr(params, attribute)
        if value is not None:
            lines.append(f"- {label}: {_label(value, FALLBACK_STANDARD)}")
    for key, value in sorted(params.extras().items()):
        lines.append(f"- {key}: {value}")

    if refined_params:
        refined = {str(key): str(value) for key, value in refined_params.items()}
        lines.append(
            f"- {REFINED_LABEL}: {json.dumps(refined, ensure_ascii=False, sort_keys=True)}"
        )
    return "\n".join(lines)


def build_request(
    content: str,
    input_kind: InputKind | str,
    target_brand: Brand | str,
    context: ApplicationContext,
    mime_type: str | None = None,
    refined_params: Mapping[str, str] | None = None,
) -> RequestPayload:
    kind = InputKind(input_kind)
    brand = Brand(target_brand)
    context_block = build_context_block(context, refined_params)

    if kind is InputKind.TEXT:
        parts: tuple[ContentPart, ...] = (
            ContentPart(text=text_instructions(content, brand.value, context_block)),
        )
    else:
        media_type = mime_type or DEFAULT_MIME_TYPES[kind]
        document = "PDF document" if kind is InputKind.PDF else "image"
        parts = (
            ContentPart(data=content, mime_type=media_type),
            ContentPart(text=binary_instructions(document, brand.value, context_block)),
        )

    return RequestPayload(
        system_instruction=system_instruction(brand),
        parts=parts,
        raw_input=content,
        input_kind=kind.value,
        target_brand=brand.value,
    )


class QueryBuilder:
    """Adapter used by the session to build payloads from stored requests."""

    def build(
        self,
        request: SearchRequest,
        refined_params: Mapping[str, str] | None = None,
    ) -> RequestPayload:
        return build_request(
            request.content,
            request.input_kind,
            request.target_brand,
            request.context,
            mime_type=request.media_type,
            refined_params=refined_params,
        )
