"""Audio stage: narration script → speech → upload → save.

Strictly sequential. The first failing step aborts the chain and is named
in the result; ``audio_url`` is written to the post only after every
earlier step succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from inkpress.common.config import Settings, settings as default_settings
from inkpress.providers.speech import SpeechProvider
from inkpress.providers.text import TextProvider
from inkpress.publisher.repository import PostRepository
from inkpress.publisher.storage import SupabaseStorage

logger = logging.getLogger(__name__)

STEP_SCRIPT = "script"
STEP_SPEECH = "speech"
STEP_UPLOAD = "upload"
STEP_SAVE = "save"


@dataclass
class AudioResult:
    """Outcome of the audio chain."""

    success: bool
    audio_url: Optional[str] = None
    failed_step: Optional[str] = None
    message: str = ""
    script: str = ""


def build_voice_script_prompt(content: str, language: str, host: str) -> str:
    return f"""\
You are a charismatic radio host for "{host}".
Your listener is a busy professional who wants the key insights of this blog
post while commuting.

Task:
Convert the blog post below into a 2-3 minute radio script (approx. 400-500 words).
Do NOT include stage directions like [Sound Effect], [Intro Music] or (Laughs).
Do NOT use markdown. ONLY write the spoken text the TTS engine should read.
The tone should be professional yet conversational.

Structure:
1. Intro: greet the listener and briefly introduce the topic.
2. Body: summarize the 3-4 most important takeaways, with clear spoken transitions.
3. Outro: a brief wrap-up inviting the listener to read the full article.

Input Blog Post:
{content}

Output Script ({language}):
"""


class AudioStage:
    """Narrates a post and records the audio URL on it."""

    def __init__(
        self,
        text_provider: TextProvider,
        speech_provider: SpeechProvider,
        storage: SupabaseStorage,
        repository: PostRepository,
        settings: Settings | None = None,
    ):
        self.text_provider = text_provider
        self.speech_provider = speech_provider
        self.storage = storage
        self.repository = repository
        self.settings = settings or default_settings

    async def generate_script(self, content: str) -> str:
        prompt = build_voice_script_prompt(
            content,
            self.settings.pipeline.content_language,
            self.settings.pipeline.author_name,
        )
        script = await self.text_provider.generate(
            prompt,
            model=self.settings.llm.script_model,
            temperature=0.5,
            stage="audio.script",
        )
        script = (script or "").strip()
        if not script:
            raise ValueError("empty narration script")
        return script

    async def run(self, post_id: str, user_id: str, content: str) -> AudioResult:
        try:
            script = await self.generate_script(content)
        except Exception as exc:
            return self._abort(STEP_SCRIPT, exc)
        logger.info("Narration script ready (%d words)", len(script.split()))

        try:
            audio = await self.speech_provider.synthesize(script, self.settings.speech.voice)
        except Exception as exc:
            return self._abort(STEP_SPEECH, exc, script)

        upload = await self.storage.upload_async(
            audio, self.storage.audio_path(post_id, script), "audio/mpeg"
        )
        if not upload.success:
            return self._abort(STEP_UPLOAD, upload.error, script)

        try:
            saved = await self.repository.update(post_id, user_id, audio_url=upload.public_url)
        except Exception as exc:
            return self._abort(STEP_SAVE, exc, script)
        if not saved:
            return self._abort(STEP_SAVE, "post not found", script)

        logger.info("Audio narration saved for post %s", post_id)
        return AudioResult(
            success=True,
            audio_url=upload.public_url,
            message="Audio narration generated.",
            script=script,
        )

    @staticmethod
    def _abort(step: str, error: object, script: str = "") -> AudioResult:
        logger.error("Audio chain aborted at %s: %s", step, error)
        return AudioResult(
            success=False,
            failed_step=step,
            message=f"Audio generation failed at {step}: {error}",
            script=script,
        )
