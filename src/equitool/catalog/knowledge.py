"""Static brand knowledge injected into the reasoning prompt."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from equitool.catalog.enums import Brand

BRAND_KNOWLEDGE_BASE: Mapping[Brand, str] = MappingProxyType(
    {
        Brand.TUNGALOY: (
            "Does NOT use generic ISO names like APMT/AVMT for high-performance "
            "milling. Uses 'Tung-Tri' (TPA), 'DoFeed' (EXN), 'DoForce-Tri'. "
            "Known for 'PremiumTec' grades (AH725, AH120, T9215)."
        ),
        Brand.TOOLFLO: "Specializes in Top-Notch, Laydown threading. Uses 'Flo-Lock'.",
    }
)


def brand_knowledge(brand: Brand | str) -> str:
    """Return the knowledge snippet for `brand`, or an empty string."""
    try:
        key = Brand(brand)
    except ValueError:
        return ""
    return BRAND_KNOWLEDGE_BASE.get(key, "")
