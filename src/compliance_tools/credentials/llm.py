"""
Text-generation model credentials.

Used by the AI compliance check. The key is passed to LiteLLM, so any
provider LiteLLM supports will work; when unset, LiteLLM falls back to the
provider's own environment variable (e.g. GEMINI_API_KEY).
"""

from .base import CredentialSpec

LLM_CREDENTIALS = {
    "compliance_llm": CredentialSpec(
        env_var="COMPLIANCE_LLM_API_KEY",
        tools=["compliance_check"],
        required=False,
        startup_required=False,
        help_url="https://docs.litellm.ai/docs/providers",
        description="API key for the model that writes AI compliance-check reports",
        api_key_instructions="""To configure the compliance-check model:
1. Pick a provider supported by LiteLLM (default model: gemini/gemini-2.0-flash)
2. Create an API key in that provider's console
3. Set COMPLIANCE_LLM_API_KEY to the key
4. Optionally set COMPLIANCE_LLM_MODEL to a different LiteLLM model name""",
    ),
}
