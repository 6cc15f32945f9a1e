"""
Credential declarations and lookup.

A CredentialSpec describes one secret a tool needs: the environment variable
it is read from, which tools use it, and how a user obtains it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class CredentialSpec:
    env_var: str
    tools: list[str] = field(default_factory=list)
    required: bool = True
    startup_required: bool = False
    help_url: str = ""
    description: str = ""
    api_key_instructions: str = ""


class CredentialStoreAdapter:
    """Resolve credentials by name from explicit values or the environment.

    Explicit values win; otherwise the spec's ``env_var`` is read.
    """

    def __init__(
        self,
        specs: dict[str, CredentialSpec],
        values: dict[str, str] | None = None,
    ) -> None:
        self._specs = specs
        self._values = dict(values or {})

    def get(self, name: str) -> str | None:
        if self._values.get(name):
            return self._values[name]
        spec = self._specs.get(name)
        if spec is None:
            return None
        return os.getenv(spec.env_var) or None

    def missing_required(self) -> list[str]:
        """Names of startup-required credentials that are not available."""
        return [
            name
            for name, spec in self._specs.items()
            if spec.required and spec.startup_required and not self.get(name)
        ]

    def help_text(self, name: str) -> str:
        """Setup instructions for a credential, or "" for an unknown name."""
        spec = self._specs.get(name)
        if spec is None:
            return ""
        lines = [spec.api_key_instructions or f"Set {spec.env_var}."]
        if spec.help_url:
            lines.append(f"See {spec.help_url}")
        return "\n".join(lines)
