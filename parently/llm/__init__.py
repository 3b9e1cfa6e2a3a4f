"""
LLM module - Language model integration.

This module handles all LLM interactions:
- Prompt construction
- API calls to Groq (Gemini as fallback)
- Response parsing
"""
from parently.core.exceptions import LLMError
from parently.llm.client import LLMClient, TIER_MAX_TOKENS
from parently.llm.parsing import extract_json

__all__ = [
    "LLMClient",
    "LLMError",
    "TIER_MAX_TOKENS",
    "extract_json",
]
