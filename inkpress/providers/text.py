"""Text generation provider over OpenAI and Anthropic chat APIs.

Usage:
    provider = TextProvider(ProviderCredentials.from_env())
    text = await provider.generate(prompt, model="gpt-4o-mini", temperature=0.2)
    data = await provider.generate_json(prompt, model="gpt-4o-mini")
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import anthropic
import openai

from inkpress.common.config import ProviderCredentials, Settings, settings as default_settings
from inkpress.common.errors import ProviderCallError
from inkpress.common.models import GenerationModel, LLMProvider

from .parsing import extract_json_payload

logger = logging.getLogger(__name__)

JSON_SYSTEM_HINT = "Respond with valid JSON only. Do not wrap it in prose."


def provider_for_model(model: str | GenerationModel) -> LLMProvider:
    """Resolve which API serves a model identifier."""
    if isinstance(model, GenerationModel):
        return model.provider
    return LLMProvider.ANTHROPIC if str(model).startswith("claude") else LLMProvider.OPENAI


class TextProvider:
    """Async text completions with an optional JSON-output constraint.

    Clients are created lazily per provider, so an OpenAI-only deployment
    never needs an Anthropic key and vice versa.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        settings: Settings | None = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self._openai: Optional[openai.AsyncOpenAI] = None
        self._anthropic: Optional[anthropic.AsyncAnthropic] = None

    def _openai_client(self) -> openai.AsyncOpenAI:
        if self._openai is None:
            api_key = self.credentials.require("openai_api_key")
            self._openai = openai.AsyncOpenAI(api_key=api_key)
        return self._openai

    def _anthropic_client(self) -> anthropic.AsyncAnthropic:
        if self._anthropic is None:
            api_key = self.credentials.require("anthropic_api_key")
            self._anthropic = anthropic.AsyncAnthropic(api_key=api_key)
        return self._anthropic

    async def generate(
        self,
        prompt: str,
        *,
        model: str | GenerationModel | None = None,
        temperature: float = 0.2,
        json_output: bool = False,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        stage: str = "",
    ) -> str:
        """Send one prompt and return the raw response text.

        Raises:
            ConfigurationError: The key for the selected provider is missing.
            ProviderCallError: The API call failed.
        """
        model_name = model.value if isinstance(model, GenerationModel) else (
            model or self.settings.llm.default_model
        )
        provider = provider_for_model(model_name)
        max_tokens = max_tokens or self.settings.llm.max_tokens

        logger.info(
            "Text call: stage=%s provider=%s model=%s json=%s prompt_len=%d",
            stage or "-", provider.value, model_name, json_output, len(prompt),
        )

        if provider == LLMProvider.ANTHROPIC:
            return await self._call_anthropic(
                prompt, model_name, temperature, json_output, system_prompt, max_tokens, stage
            )
        return await self._call_openai(
            prompt, model_name, temperature, json_output, system_prompt, max_tokens, stage
        )

    async def generate_json(self, prompt: str, **kwargs: Any) -> Any:
        """``generate`` with JSON output, followed by payload extraction."""
        text = await self.generate(prompt, json_output=True, **kwargs)
        return extract_json_payload(text, stage=kwargs.get("stage", ""))

    async def _call_openai(
        self,
        prompt: str,
        model: str,
        temperature: float,
        json_output: bool,
        system_prompt: str | None,
        max_tokens: int,
        stage: str,
    ) -> str:
        client = self._openai_client()
        messages = []
        system = system_prompt or ""
        if json_output:
            # JSON mode requires the word "JSON" somewhere in the messages
            system = f"{system}\n{JSON_SYSTEM_HINT}".strip()
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await client.chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            logger.error("OpenAI call failed (stage=%s): %s", stage or "-", exc)
            raise ProviderCallError(str(exc), provider="openai", stage=stage) from exc

        return response.choices[0].message.content or ""

    async def _call_anthropic(
        self,
        prompt: str,
        model: str,
        temperature: float,
        json_output: bool,
        system_prompt: str | None,
        max_tokens: int,
        stage: str,
    ) -> str:
        client = self._anthropic_client()
        system = system_prompt or ""
        if json_output:
            system = f"{system}\n{JSON_SYSTEM_HINT}".strip()

        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = await client.messages.create(**kwargs)
        except anthropic.AnthropicError as exc:
            logger.error("Anthropic call failed (stage=%s): %s", stage or "-", exc)
            raise ProviderCallError(str(exc), provider="anthropic", stage=stage) from exc

        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
