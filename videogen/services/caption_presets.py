"""Caption Preset Registry - immutable lookup of caption styling presets."""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from videogen.models.schemas import CaptionPlacement, CaptionPreset, TranscriptEffect

DEFAULT_PRESET_ID = "karaoke"

_SHARED_STYLE = dict(
    font_family="Montserrat",
    font_weight="700",
    font_size_vmin=8,
    fill_color="#ffffff",
    stroke_color="#333333",
    stroke_width_vmin=1.05,
    background_color="rgba(0,0,0,0.7)",
    background_x_padding="26%",
    background_y_padding="7%",
    background_border_radius="28%",
    max_transcript_length=25,
    default_placement=CaptionPlacement.BOTTOM,
)

DEFAULT_PRESETS: tuple[CaptionPreset, ...] = (
    CaptionPreset(
        id="karaoke",
        display_name="Karaoke",
        transcript_effect=TranscriptEffect.KARAOKE,
        transcript_color="#04f827",
        **_SHARED_STYLE,
    ),
    CaptionPreset(
        id="beasty",
        display_name="Beasty",
        transcript_effect=TranscriptEffect.HIGHLIGHT,
        transcript_color="#FFFD03",
        **_SHARED_STYLE,
    ),
)


class CaptionPresetRegistry:
    """Read-only mapping from preset id to caption styling."""

    def __init__(self, presets: Iterable[CaptionPreset] = DEFAULT_PRESETS, default_id: str = DEFAULT_PRESET_ID):
        """
        Build the registry once.

        Args:
            presets: Presets to register (frozen models)
            default_id: Preset returned for unknown or missing ids

        Raises:
            ValueError: If ids are duplicated or the default is not registered
        """
        table: dict[str, CaptionPreset] = {}
        for preset in presets:
            if preset.id in table:
                raise ValueError(f"Duplicate caption preset id: {preset.id}")
            table[preset.id] = preset
        if default_id not in table:
            raise ValueError(f"Default caption preset '{default_id}' is not registered")

        self._presets: Mapping[str, CaptionPreset] = MappingProxyType(table)
        self.default_id = default_id

    def resolve(self, preset_id: Optional[str] = None) -> CaptionPreset:
        """Return the preset for an id, falling back to the default. Never raises."""
        if preset_id and preset_id in self._presets:
            return self._presets[preset_id]
        return self._presets[self.default_id]

    def ids(self) -> list[str]:
        return list(self._presets)

    def __contains__(self, preset_id: object) -> bool:
        return preset_id in self._presets

    def __len__(self) -> int:
        return len(self._presets)
