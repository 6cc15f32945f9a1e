"""License Registry - Search and maintain licenses, policies and regulatory updates."""

from .license_registry import register_tools

__all__ = ["register_tools"]
