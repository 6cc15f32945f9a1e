"""
Compliance tools - MCP tool registration.

Every tool package exposes ``register_tools(mcp, ...)``; this module wires
them to one shared registry and configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastmcp import FastMCP

from compliance_tools.config import ComplianceToolsConfig, default_config
from compliance_tools.records import ComplianceRegistry

from .compliance_check import register_tools as register_compliance_check
from .license_registry import register_tools as register_license_registry
from .risk_scorer import register_tools as register_risk_scorer

if TYPE_CHECKING:
    from compliance_tools.credentials import CredentialStoreAdapter


def register_all_tools(
    mcp: FastMCP,
    credentials: CredentialStoreAdapter | None = None,
    registry: ComplianceRegistry | None = None,
    config: ComplianceToolsConfig | None = None,
) -> ComplianceRegistry:
    """Register all compliance tools and return the registry they share."""
    config = config or default_config
    if registry is None:
        registry = ComplianceRegistry.with_sample_data(seed=config.sample_seed)

    register_risk_scorer(mcp, registry=registry)
    register_license_registry(mcp, registry=registry, config=config)
    register_compliance_check(mcp, credentials=credentials, registry=registry, config=config)
    return registry


__all__ = ["register_all_tools"]
