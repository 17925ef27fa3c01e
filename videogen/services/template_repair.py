"""Template Repair Engine - deterministic fixes applied to drafted compositions."""

from typing import Any, Iterator, Optional, Union

from videogen.models.schemas import (
    CaptionConfiguration,
    CompositionDocument,
    SceneElement,
    TextElement,
    VideoElement,
    VideoFit,
)
from videogen.services.caption_presets import CaptionPresetRegistry

PLACEMENT_Y_ALIGNMENT = {
    "top": "10%",
    "middle": "50%",
    "center": "50%",
    "bottom": "90%",
}
DEFAULT_Y_ALIGNMENT = "90%"

SUBTITLE_X_ALIGNMENT = "50%"
SUBTITLE_WIDTH = "90%"
SUBTITLE_HEIGHT = "100%"
SUBTITLE_TRANSCRIPT_PLACEMENT = "animate"


def placement_to_y_alignment(placement: Optional[str]) -> str:
    """Map a caption placement to a vertical alignment; unknown or missing means bottom."""
    if not isinstance(placement, str):
        return DEFAULT_Y_ALIGNMENT
    return PLACEMENT_Y_ALIGNMENT.get(placement.lower(), DEFAULT_Y_ALIGNMENT)


def walk_elements(elements: Optional[list]) -> Iterator[Any]:
    """Yield every element in a nested scene tree, depth first, scenes included."""
    for element in elements or []:
        yield element
        if isinstance(element, SceneElement):
            yield from walk_elements(element.elements)


def _as_caption_config(config: Union[CaptionConfiguration, dict, None]) -> CaptionConfiguration:
    if isinstance(config, CaptionConfiguration):
        return config
    if isinstance(config, dict):
        return CaptionConfiguration.model_validate(config)
    return CaptionConfiguration()


class TemplateRepairEngine:
    """Idempotent repair passes over a composition document."""

    def __init__(self, preset_registry: CaptionPresetRegistry, logger: Any):
        """
        Initialize the repair engine.

        Args:
            preset_registry: Caption preset lookup
            logger: Logger instance
        """
        self.preset_registry = preset_registry
        self.logger = logger

    def repair_video_fit(self, document: CompositionDocument) -> CompositionDocument:
        """
        Force every video element's fit to "cover".

        Drafts are known to emit "crop", "scale" or "stretch"; "cover" is the
        one value the render service always accepts, so the overwrite is unconditional.
        """
        fixed = 0
        for element in walk_elements(document.elements):
            if isinstance(element, VideoElement):
                if element.fit != VideoFit.COVER.value:
                    self.logger.debug(f"Video element {element.id or element.name}: fit {element.fit!r} -> 'cover'")
                    fixed += 1
                element.fit = VideoFit.COVER.value

        if fixed:
            self.logger.info(f"Repaired fit on {fixed} video element(s)")
        return document

    def apply_caption_config(
        self,
        document: CompositionDocument,
        config: Union[CaptionConfiguration, dict, None] = None,
    ) -> CompositionDocument:
        """
        Merge caption styling into every subtitle text element.

        Subtitle elements are text elements whose name contains "subtitle"
        (case-insensitive). Fields bound to the transcript source and every
        non-subtitle element are left untouched. A disabled configuration
        removes the subtitle elements instead.

        Args:
            document: Composition document (mutated in place)
            config: Caption configuration; None means all defaults

        Returns:
            The same document
        """
        caption_config = _as_caption_config(config)

        if not caption_config.enabled:
            removed = self._remove_subtitles(document)
            self.logger.info(f"Captions disabled: removed {removed} subtitle element(s)")
            return document

        preset = self.preset_registry.resolve(caption_config.preset_id)
        transcript_color = caption_config.transcript_color or caption_config.highlight_color or preset.transcript_color
        transcript_effect = caption_config.transcript_effect or preset.transcript_effect
        placement = caption_config.placement or preset.default_placement.value
        y_alignment = placement_to_y_alignment(placement)

        styled = 0
        for element in walk_elements(document.elements):
            if not (isinstance(element, TextElement) and element.is_subtitle):
                continue

            element.font_family = preset.font_family
            element.font_weight = preset.font_weight
            element.font_size = preset.font_size
            element.fill_color = preset.fill_color
            element.stroke_color = preset.stroke_color
            element.stroke_width = preset.stroke_width
            element.background_color = preset.background_color
            element.background_x_padding = preset.background_x_padding
            element.background_y_padding = preset.background_y_padding
            element.background_border_radius = preset.background_border_radius
            element.transcript_effect = transcript_effect.value
            element.transcript_color = transcript_color
            element.transcript_placement = SUBTITLE_TRANSCRIPT_PLACEMENT
            element.transcript_maximum_length = preset.max_transcript_length
            element.x_alignment = SUBTITLE_X_ALIGNMENT
            element.y_alignment = y_alignment
            element.width = SUBTITLE_WIDTH
            element.height = SUBTITLE_HEIGHT
            styled += 1

        self.logger.info(f"Applied caption preset '{preset.id}' to {styled} subtitle element(s) (y={y_alignment})")
        return document

    def repair(
        self,
        document: CompositionDocument,
        config: Union[CaptionConfiguration, dict, None] = None,
    ) -> CompositionDocument:
        """Run the video fit pass then the caption pass."""
        self.repair_video_fit(document)
        return self.apply_caption_config(document, config)

    def _remove_subtitles(self, document: CompositionDocument) -> int:
        removed = 0

        def prune(elements: list) -> list:
            nonlocal removed
            kept = []
            for element in elements:
                if isinstance(element, TextElement) and element.is_subtitle:
                    removed += 1
                    continue
                if isinstance(element, SceneElement) and element.elements:
                    element.elements = prune(element.elements)
                kept.append(element)
            return kept

        document.elements = prune(document.elements)
        return removed
