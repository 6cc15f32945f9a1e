"""Credential registry for compliance tools."""

from .base import CredentialSpec, CredentialStoreAdapter
from .llm import LLM_CREDENTIALS

CREDENTIAL_SPECS: dict[str, CredentialSpec] = {
    **LLM_CREDENTIALS,
}

__all__ = [
    "CREDENTIAL_SPECS",
    "CredentialSpec",
    "CredentialStoreAdapter",
    "LLM_CREDENTIALS",
]
