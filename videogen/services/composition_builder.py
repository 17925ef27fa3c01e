"""Composition Builder - script + clips + captions -> render-ready composition document."""

from typing import Any, Optional, Union

from pydantic import ValidationError

from videogen.core.config import Settings
from videogen.core.exceptions import GenerationFailure, ValidationFailure
from videogen.models.schemas import (
    CaptionConfiguration,
    CompositionDocument,
    EditorialProfile,
    PlanTier,
    SourceClip,
)
from videogen.services.draft_generator import DraftGenerator
from videogen.services.duration_validator import DurationValidator
from videogen.services.template_repair import TemplateRepairEngine

DEFAULT_STYLE_PROMPT = "Fast-paced vertical short: one clip per sentence group, captions synced to the voiceover."


def build_style_prompt(editorial_profile: Optional[EditorialProfile]) -> str:
    """
    Derive the style directive sent to the draft generator.

    Args:
        editorial_profile: Creator's editorial profile, if any

    Returns:
        Style directive text
    """
    if editorial_profile is None:
        return DEFAULT_STYLE_PROMPT

    parts = []
    if editorial_profile.persona_description:
        parts.append(f"Persona: {editorial_profile.persona_description}")
    if editorial_profile.tone_of_voice:
        parts.append(f"Tone of voice: {editorial_profile.tone_of_voice}")
    if editorial_profile.audience:
        parts.append(f"Audience: {editorial_profile.audience}")
    if editorial_profile.style_notes:
        parts.append(f"Style notes: {editorial_profile.style_notes}")

    return "\n".join(parts) if parts else DEFAULT_STYLE_PROMPT


class CompositionBuilder:
    """Produces repaired composition documents. Holds no state between builds."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        validator: DurationValidator,
        draft_generator: DraftGenerator,
        repair_engine: TemplateRepairEngine,
    ):
        """
        Initialize the builder.

        Args:
            settings: Application settings
            logger: Logger instance
            validator: Admissibility gate
            draft_generator: External draft generation collaborator
            repair_engine: Repair passes applied to every draft
        """
        self.settings = settings
        self.logger = logger
        self.validator = validator
        self.draft_generator = draft_generator
        self.repair_engine = repair_engine

    def build(
        self,
        script: str,
        clips: list[SourceClip],
        caption_config: Union[CaptionConfiguration, dict, None] = None,
        editorial_profile: Optional[EditorialProfile] = None,
        plan: Union[PlanTier, str, None] = PlanTier.FREE,
        validated: bool = False,
    ) -> CompositionDocument:
        """
        Build a render-ready composition document.

        Args:
            script: Narration script
            clips: Selected source clips
            caption_config: Caption settings (None uses defaults)
            editorial_profile: Optional editorial profile for the style directive
            plan: Active plan tier used by the admissibility gate
            validated: Skip the admissibility gate when the caller already ran it

        Returns:
            Repaired composition document

        Raises:
            ValidationFailure: If the script/clip selection is not admissible
            GenerationFailure: If drafting fails or the draft is not a composition
        """
        if not validated:
            result = self.validator.validate(script, plan, clips)
            if not result.is_valid:
                raise ValidationFailure(result.warnings)

        style_prompt = build_style_prompt(editorial_profile)

        try:
            draft = self.draft_generator.generate_draft(script, clips, style_prompt)
        except Exception as e:
            self.logger.error(f"Draft generation failed: {e}")
            raise GenerationFailure(f"Draft generation failed: {e}") from e

        document = self.parse_draft(draft)
        self.repair_engine.repair_video_fit(document)
        self.repair_engine.apply_caption_config(document, caption_config)

        self.logger.info(
            f"Composition ready: {document.width}x{document.height} {document.output_format}, "
            f"{len(document.elements)} scene(s)"
        )
        return document

    def parse_draft(self, draft: Any) -> CompositionDocument:
        """
        Normalise a raw draft and parse it into a CompositionDocument.

        Width and height are forced to the configured vertical format; a missing
        output format defaults to the configured one.

        Raises:
            GenerationFailure: If the draft is not a JSON object or does not parse
        """
        if not isinstance(draft, dict):
            raise GenerationFailure(f"Draft must be a JSON object, got {type(draft).__name__}")

        if draft.get("width") != self.settings.video_width or draft.get("height") != self.settings.video_height:
            self.logger.warning(
                f"Draft dimensions {draft.get('width')}x{draft.get('height')} overridden to "
                f"{self.settings.video_width}x{self.settings.video_height}"
            )

        normalised = {
            **draft,
            "width": self.settings.video_width,
            "height": self.settings.video_height,
            "output_format": draft.get("output_format") or self.settings.output_format,
        }

        try:
            return CompositionDocument.model_validate(normalised)
        except ValidationError as e:
            raise GenerationFailure(f"Draft is not a valid composition: {e}") from e
