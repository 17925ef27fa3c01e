"""Draft Generator - obtains an unrepaired composition document from an LLM."""

import json
from typing import Any, Protocol

from videogen.core.config import Settings
from videogen.models.schemas import SourceClip


class DraftGenerator(Protocol):
    """Anything that turns a script and clips into a composition draft."""

    def generate_draft(self, script: str, clips: list[SourceClip], style_prompt: str) -> dict[str, Any]:
        ...


class LLMDraftGenerator:
    """Drafts composition documents with an OpenAI chat model in JSON mode."""

    SYSTEM_PROMPT = (
        "You build JSON video compositions for a cloud renderer. "
        "Return one JSON object with width, height, output_format and an elements array. "
        "Each scene is an element of type 'composition' containing exactly one 'video' element "
        "(using a source URL from the provided clips, volume 0), one 'audio' voiceover element "
        "and one 'text' element named 'Subtitles-<n>' whose transcript_source is the audio element id."
    )

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the draft generator.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._client = None

    def _get_client(self):
        """Get or create OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            if not self.settings.openai_api_key:
                raise ValueError("OpenAI API key not configured")

            self._client = OpenAI(api_key=self.settings.openai_api_key)

        return self._client

    def build_user_prompt(self, script: str, clips: list[SourceClip], style_prompt: str) -> str:
        clip_payload = [
            {
                "id": clip.id,
                "url": clip.url,
                "title": clip.title,
                "description": clip.description,
                "tags": clip.tags,
                "duration_seconds": clip.duration_seconds,
            }
            for clip in clips
        ]
        return (
            f"Script:\n{script}\n\n"
            f"Available clips:\n{json.dumps(clip_payload, indent=2, ensure_ascii=False)}\n\n"
            f"Style directive:\n{style_prompt}\n\n"
            f"Output format: {self.settings.output_format}, "
            f"{self.settings.video_width}x{self.settings.video_height}. "
            "Every scene must use one of the available clips."
        )

    def generate_draft(self, script: str, clips: list[SourceClip], style_prompt: str) -> dict[str, Any]:
        """
        Request a composition draft.

        Args:
            script: Narration script
            clips: Source clips the draft may reference
            style_prompt: Style directive derived from the editorial profile

        Returns:
            Parsed JSON object (not yet repaired)

        Raises:
            Exception: If the LLM call fails or returns invalid JSON
        """
        self.logger.info(f"Requesting composition draft ({len(clips)} clips, model={self.settings.draft_model})")

        client = self._get_client()
        response = client.chat.completions.create(
            model=self.settings.draft_model,
            messages=[
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": self.build_user_prompt(script, clips, style_prompt)},
            ],
            response_format={"type": "json_object"},
            temperature=self.settings.draft_temperature,
        )

        content = response.choices[0].message.content or "{}"
        draft = json.loads(content)
        self.logger.debug(f"Draft received ({len(content)} characters)")
        return draft
