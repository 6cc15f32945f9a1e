"""Runtime configuration for the compliance tools."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_LICENSING_CONTEXT = (
    "We currently hold various money transmitter licenses (e.g., California, "
    "New York, UK FCA, Ireland CBI) and are authorized for electronic money "
    "services in the EEA."
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class ComplianceToolsConfig:
    llm_model: str = "gemini/gemini-2.0-flash"
    llm_temperature: float = 0.2
    page_size: int = 10
    renewal_window_months: int = 3
    sample_seed: int = 42
    licensing_context: str = DEFAULT_LICENSING_CONTEXT

    @classmethod
    def from_env(cls) -> ComplianceToolsConfig:
        defaults = cls()
        return cls(
            llm_model=os.getenv("COMPLIANCE_LLM_MODEL") or defaults.llm_model,
            page_size=_env_int("COMPLIANCE_PAGE_SIZE", defaults.page_size),
            renewal_window_months=_env_int(
                "COMPLIANCE_RENEWAL_WINDOW_MONTHS", defaults.renewal_window_months
            ),
            sample_seed=_env_int("COMPLIANCE_SAMPLE_SEED", defaults.sample_seed),
            licensing_context=(
                os.getenv("COMPLIANCE_LICENSING_CONTEXT") or defaults.licensing_context
            ),
        )


default_config: ComplianceToolsConfig = ComplianceToolsConfig()
