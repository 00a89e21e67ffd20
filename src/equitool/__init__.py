"""EquiTool cutting-tool cross-reference package."""

from .config import ChatConfig, GatewayConfig

__all__ = ["ChatConfig", "GatewayConfig"]
