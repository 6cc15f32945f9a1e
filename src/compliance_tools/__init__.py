"""
Compliance Tools - licensing records and risk scoring for compliance teams.

Exposes risk scoring, a license/policy/regulatory-update registry and an AI
compliance check as MCP tools, plus a small CLI.
"""

__version__ = "0.1.0"
