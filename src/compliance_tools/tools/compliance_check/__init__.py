"""Compliance Check - AI review of a proposed product feature."""

from .compliance_check import register_tools

__all__ = ["register_tools"]
