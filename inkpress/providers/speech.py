"""Text-to-speech provider (OpenAI audio.speech)."""

from __future__ import annotations

import logging
from typing import Optional

import openai

from inkpress.common.config import ProviderCredentials, Settings, settings as default_settings
from inkpress.common.errors import ProviderCallError

logger = logging.getLogger(__name__)


class SpeechProvider:
    """Synthesizes MP3 audio from a narration script."""

    def __init__(
        self,
        credentials: ProviderCredentials,
        settings: Settings | None = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self._client: Optional[openai.AsyncOpenAI] = None

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            api_key = self.credentials.require("openai_api_key")
            self._client = openai.AsyncOpenAI(api_key=api_key)
        return self._client

    async def synthesize(self, script: str, voice: str | None = None) -> bytes:
        """Return the audio bytes for ``script``.

        Raises:
            ProviderCallError: The API call failed or returned no audio.
        """
        client = self._get_client()
        cfg = self.settings.speech
        voice = voice or cfg.voice
        logger.info("Speech call: model=%s voice=%s chars=%d", cfg.model, voice, len(script))

        try:
            response = await client.audio.speech.create(
                model=cfg.model,
                voice=voice,
                input=script,
            )
        except openai.OpenAIError as exc:
            logger.error("Speech synthesis failed: %s", exc)
            raise ProviderCallError(str(exc), provider="openai", stage="audio.speech") from exc

        audio = response.content
        if not audio:
            raise ProviderCallError("Empty audio payload", provider="openai", stage="audio.speech")
        return audio
