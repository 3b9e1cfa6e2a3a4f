"""
LLM Client for Groq API integration.

This module provides a clean interface to the Groq chat-completions API
with Google Gemini as a last resort. It handles:
- Tier to model mapping (fast / smart)
- Per-request timeout
- Retry with exponential backoff
- Single Gemini fallback once Groq attempts are exhausted

Business logic never talks to a provider SDK directly; it calls
`LLMClient.generate` and receives plain text or an LLMError.
"""
import time
from typing import Optional

import google.generativeai as genai
from groq import Groq

from parently.core.config import Settings, get_settings
from parently.core.exceptions import LLMError
from parently.core.logging_config import get_logger
from parently.models.records import ModelTier

logger = get_logger(__name__)

# Max completion tokens per tier
TIER_MAX_TOKENS = {
    "fast": 1000,
    "smart": 2000,
}


class LLMClient:
    """
    Hybrid client for Groq with a Gemini fallback.

    Features:
    - Tier-based model selection
    - Fixed retry count with 2**attempt backoff
    - Gemini tried once when GOOGLE_API_KEY is configured

    Example:
        >>> client = LLMClient()
        >>> client.generate("Say hi", tier="fast")
        'Hi!'
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        groq_client: Optional[Groq] = None,
        sleep=time.sleep,
    ):
        """
        Initialize provider clients.

        Args:
            settings: Settings to use (defaults to the global settings)
            groq_client: Pre-built Groq client, mainly for tests
            sleep: Function used to wait between attempts
        """
        self.settings = settings or get_settings()

        # Retries are handled here, not inside the SDK
        self.groq_client = groq_client or Groq(
            api_key=self.settings.groq_api_key,
            timeout=self.settings.llm_timeout_seconds,
            max_retries=0,
        )

        self.fallback_enabled = bool(self.settings.google_api_key)
        if self.fallback_enabled:
            genai.configure(api_key=self.settings.google_api_key)

        self.models = {
            "fast": self.settings.llm_model_fast,
            "smart": self.settings.llm_model_smart,
        }
        self.max_retries = max(1, self.settings.llm_max_retries)
        self.backoff_seconds = self.settings.llm_backoff_seconds
        self.temperature = self.settings.llm_temperature
        self._sleep = sleep

        logger.info(
            f"LLM client initialized (Groq{' + Gemini fallback' if self.fallback_enabled else ''})"
        )

    def generate(
        self,
        prompt: str,
        tier: ModelTier = "fast",
        system_prompt: Optional[str] = None,
    ) -> str:
        """
        Generate a completion.

        Args:
            prompt: User prompt
            tier: "fast" or "smart"
            system_prompt: Optional system instruction

        Returns:
            Completion text, stripped

        Raises:
            LLMError: If every Groq attempt and the fallback fail
        """
        model = self.models[tier]
        max_tokens = TIER_MAX_TOKENS[tier]
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                return self._generate_groq(prompt, system_prompt, model, max_tokens)
            except Exception as e:
                last_error = e
                logger.warning(f"Groq attempt {attempt}/{self.max_retries} failed ({model}): {e}")

                if attempt < self.max_retries:
                    self._sleep((2 ** attempt) * self.backoff_seconds)

        if self.fallback_enabled:
            fallback_model = self.settings.llm_model_fallback
            logger.info(f"Falling back to Google ({fallback_model})...")
            try:
                return self._generate_google(prompt, system_prompt, fallback_model, max_tokens)
            except Exception as e:
                logger.error(f"Provider failed (google/{fallback_model}): {e}")
                last_error = e

        logger.error("All LLM providers failed")
        raise LLMError(f"LLM call failed after {self.max_retries} attempts: {last_error}")

    def _generate_groq(self, prompt, system_prompt, model, max_tokens) -> str:
        """Execute request using Groq."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self.groq_client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("Invalid response format from Groq API")
        return content.strip()

    def _generate_google(self, prompt, system_prompt, model, max_tokens) -> str:
        """Execute request using Google Gemini."""
        model_instance = genai.GenerativeModel(
            model_name=model,
            system_instruction=system_prompt,
        )
        response = model_instance.generate_content(
            prompt,
            generation_config=genai.types.GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=max_tokens,
            ),
            request_options={"timeout": self.settings.llm_timeout_seconds},
        )
        text = response.text
        if not text:
            raise ValueError("Empty response from Gemini")
        return text.strip()
