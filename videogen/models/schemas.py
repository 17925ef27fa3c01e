"""Pydantic models and schemas for the video generation pipeline."""

import copy
import json
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    PrivateAttr,
    SerializerFunctionWrapHandler,
    Tag,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_serializer,
    model_validator,
)


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================


class PlanTier(str, Enum):
    """Subscription plan supplied by the billing collaborator."""

    FREE = "free"
    CREATOR = "creator"
    PRO = "pro"


class CaptionPlacement(str, Enum):
    """Vertical placement of subtitles."""

    TOP = "top"
    MIDDLE = "middle"
    CENTER = "center"
    BOTTOM = "bottom"


class TranscriptEffect(str, Enum):
    """Word animation effect for subtitles."""

    KARAOKE = "karaoke"
    HIGHLIGHT = "highlight"
    FADE = "fade"
    BOUNCE = "bounce"
    SLIDE = "slide"
    ENLARGE = "enlarge"


class VideoFit(str, Enum):
    """Valid fit modes for video elements."""

    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"


class RenderStatus(str, Enum):
    """Lifecycle of a render job. Only forward transitions are allowed."""

    QUEUED = "queued"
    RENDERING = "rendering"
    DONE = "done"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (RenderStatus.DONE, RenderStatus.ERROR)


_STATUS_RANK = {
    RenderStatus.QUEUED: 0,
    RenderStatus.RENDERING: 1,
    RenderStatus.DONE: 2,
    RenderStatus.ERROR: 2,
}


# ============================================================================
# Validation Models
# ============================================================================


class ScriptDurationEstimate(BaseModel):
    """Word-count derived duration estimate for a script."""

    word_count: int = Field(..., ge=0, description="Number of whitespace-separated words")
    estimated_seconds: int = Field(..., ge=0, description="Estimated spoken duration in seconds")


class SourceClip(BaseModel):
    """A source clip from the user's media library (read-only)."""

    id: str = Field(..., description="Clip identifier")
    duration_seconds: float = Field(..., ge=0, description="Clip duration in seconds")
    title: str = Field(default="", description="Clip title")
    description: str = Field(default="", description="Clip description")
    tags: list[str] = Field(default_factory=list, description="Clip tags")
    url: Optional[str] = Field(default=None, description="Public URL of the uploaded clip")


class ValidationResult(BaseModel):
    """Aggregated admissibility verdict."""

    is_valid: bool
    warnings: list[str] = Field(default_factory=list)


# ============================================================================
# Caption Models
# ============================================================================


class CaptionConfiguration(BaseModel):
    """User-supplied caption settings. Every field is optional."""

    enabled: bool = Field(default=True, description="When false, subtitle elements are removed")
    preset_id: Optional[str] = Field(default=None, description="Caption preset identifier")
    placement: Optional[str] = Field(default=None, description="top, middle/center or bottom")
    highlight_color: Optional[str] = Field(
        default=None, pattern=r"^#[0-9a-fA-F]{3,8}$", description="Highlight colour for the active word"
    )
    transcript_color: Optional[str] = Field(
        default=None, description="Explicit transcript colour override (wins over highlight_color)"
    )
    transcript_effect: Optional[TranscriptEffect] = Field(
        default=None, description="Explicit transcript effect override"
    )


class CaptionPreset(BaseModel):
    """Named bundle of caption styling attributes. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    font_family: str
    font_weight: str
    font_size_vmin: float
    fill_color: str
    stroke_color: str
    stroke_width_vmin: float
    background_color: str
    background_x_padding: str
    background_y_padding: str
    background_border_radius: str
    transcript_effect: TranscriptEffect
    transcript_color: str
    max_transcript_length: int = Field(..., gt=0)
    default_placement: CaptionPlacement = CaptionPlacement.BOTTOM

    @property
    def font_size(self) -> str:
        return f"{self.font_size_vmin:g} vmin"

    @property
    def stroke_width(self) -> str:
        return f"{self.stroke_width_vmin:g} vmin"


class EditorialProfile(BaseModel):
    """Creator's editorial profile used to steer the draft generator."""

    persona_description: Optional[str] = None
    tone_of_voice: Optional[str] = None
    audience: Optional[str] = None
    style_notes: Optional[str] = None


# ============================================================================
# Composition Document Models
# ============================================================================

Dimension = Union[int, float, str]


class ElementBase(BaseModel):
    """
    Behaviour shared by every composition element.

    Unknown fields are kept. On dump, every drafted key keeps its position and
    its drafted value unless the value was changed after parsing, so elements
    the repair passes leave alone serialize exactly as they were drafted.
    """

    model_config = ConfigDict(extra="allow")

    _drafted: dict[str, Any] = PrivateAttr(default_factory=dict)
    _parsed: dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="wrap")
    @classmethod
    def _remember_draft(cls, data: Any, handler: ValidatorFunctionWrapHandler) -> "ElementBase":
        element = handler(data)
        if isinstance(data, dict):
            element._drafted = dict(data)
            element._parsed = {
                key: copy.deepcopy(element._value_of(key)) for key in data if key != "elements"
            }
        return element

    @model_serializer(mode="wrap")
    def _dump_drafted(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        dumped = handler(self)
        if not self._drafted:
            return dumped

        payload = {}
        for key, value in self._drafted.items():
            if key not in dumped:
                continue
            if key == "elements" or self._value_of(key) != self._parsed.get(key):
                payload[key] = dumped[key]
            else:
                payload[key] = value
        for key, value in dumped.items():
            payload.setdefault(key, value)
        return payload

    def _value_of(self, key: str) -> Any:
        if key in self.__dict__:
            return self.__dict__[key]
        return (self.__pydantic_extra__ or {}).get(key)

    def model_post_init(self, __context: Any) -> None:
        # The tag must survive exclude_unset dumps even when it came from a default.
        if getattr(self, "type", None) is not None:
            self.__pydantic_fields_set__.add("type")


class LayoutElement(ElementBase):
    """Identity and layout fields of the element types the repair passes read."""

    id: Optional[Union[str, int]] = None
    name: Optional[str] = None
    track: Optional[Dimension] = None
    time: Optional[Dimension] = None
    duration: Optional[Dimension] = None
    width: Optional[Dimension] = None
    height: Optional[Dimension] = None
    x_alignment: Optional[Dimension] = None
    y_alignment: Optional[Dimension] = None


class VideoElement(LayoutElement):
    type: Literal["video"] = "video"
    source: Optional[str] = None
    fit: Optional[str] = Field(default=None, description="cover, contain or fill once repaired")
    volume: Optional[Dimension] = None


class AudioElement(LayoutElement):
    type: Literal["audio"] = "audio"
    source: Optional[str] = None
    provider: Optional[str] = None
    dynamic: Optional[bool] = None
    volume: Optional[Dimension] = None


class TextElement(LayoutElement):
    type: Literal["text"] = "text"
    text: Optional[str] = None
    transcript_source: Optional[str] = None
    transcript_effect: Optional[str] = None
    transcript_placement: Optional[str] = None
    transcript_maximum_length: Optional[int] = None
    transcript_color: Optional[str] = None
    font_family: Optional[str] = None
    font_weight: Optional[Union[str, int]] = None
    font_size: Optional[Dimension] = None
    fill_color: Optional[str] = None
    stroke_color: Optional[str] = None
    stroke_width: Optional[Dimension] = None
    background_color: Optional[str] = None
    background_x_padding: Optional[Dimension] = None
    background_y_padding: Optional[Dimension] = None
    background_border_radius: Optional[Dimension] = None

    @property
    def is_subtitle(self) -> bool:
        return bool(self.name) and "subtitle" in self.name.lower()


class OtherElement(ElementBase):
    """Any element type the pipeline does not model (image, shape, ...). No field is checked."""

    type: Any = None


class SceneElement(LayoutElement):
    type: Literal["composition"] = "composition"
    elements: list["CompositionElement"] = Field(default_factory=list)

    @field_validator("elements", mode="before")
    @classmethod
    def _null_elements(cls, value: Any) -> Any:
        return [] if value is None else value


_KNOWN_ELEMENT_TYPES = {"composition", "video", "audio", "text"}


def _element_tag(value: Any) -> str:
    element_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if isinstance(element_type, str) and element_type in _KNOWN_ELEMENT_TYPES:
        return element_type
    return "other"


CompositionElement = Annotated[
    Union[
        Annotated[SceneElement, Tag("composition")],
        Annotated[VideoElement, Tag("video")],
        Annotated[AudioElement, Tag("audio")],
        Annotated[TextElement, Tag("text")],
        Annotated[OtherElement, Tag("other")],
    ],
    Discriminator(_element_tag),
]

SceneElement.model_rebuild()


class CompositionDocument(BaseModel):
    """Root composition document submitted to the render service."""

    model_config = ConfigDict(extra="allow")

    width: int
    height: int
    output_format: str = "mp4"
    elements: list[CompositionElement] = Field(default_factory=list)

    @field_validator("elements", mode="before")
    @classmethod
    def _null_elements(cls, value: Any) -> Any:
        return [] if value is None else value

    def model_post_init(self, __context: Any) -> None:
        self.__pydantic_fields_set__.update({"output_format", "elements"})

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict containing only the fields present on the document."""
        return self.model_dump(mode="json", exclude_unset=True)


# ============================================================================
# Render Job Models
# ============================================================================


class RenderMetadata(BaseModel):
    """Correlation data attached to a render submission."""

    request_id: str
    user_id: Optional[str] = None
    script_id: Optional[str] = None
    prompt: str = ""
    timestamp: datetime = Field(default_factory=utcnow)

    def to_json(self, prompt_limit: int = 100) -> str:
        return json.dumps(
            {
                "requestId": self.request_id,
                "userId": self.user_id,
                "scriptId": self.script_id,
                "prompt": self.prompt[:prompt_limit],
                "timestamp": self.timestamp.isoformat(),
            }
        )


class RenderJob(BaseModel):
    """A submitted render and its lifecycle."""

    id: str = Field(..., description="Render identifier returned by the render service")
    composition_ref: Optional[str] = Field(default=None, description="Reference to the stored composition")
    status: RenderStatus = RenderStatus.QUEUED
    progress: Optional[float] = None
    render_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def can_transition_to(self, status: RenderStatus) -> bool:
        if self.is_terminal:
            return False
        return status.rank >= self.status.rank

    def advance(self, update: "RenderJob") -> bool:
        """
        Merge a newer observation into this job.

        Backward transitions and changes after a terminal status are ignored.

        Returns:
            True if the status changed
        """
        if not self.can_transition_to(update.status):
            return False

        changed = update.status != self.status
        self.status = update.status
        if update.progress is not None:
            self.progress = update.progress
        if update.render_url:
            self.render_url = update.render_url
        if update.error_message:
            self.error_message = update.error_message
        self.updated_at = update.updated_at
        return changed


# ============================================================================
# Pipeline Request / Response Models
# ============================================================================


class GenerationRequest(BaseModel):
    """Input to the generation pipeline."""

    script: str = Field(..., min_length=1, description="Final narration script")
    clips: list[SourceClip] = Field(default_factory=list, description="Selected source clips")
    plan: str = Field(default=PlanTier.FREE.value, description="Active plan tier")
    caption_config: Optional[CaptionConfiguration] = None
    editorial_profile: Optional[EditorialProfile] = None
    prompt: str = Field(default="", description="Original user prompt, for correlation")
    user_id: Optional[str] = None
    script_id: Optional[str] = None
    request_id: Optional[str] = None


class GenerationResult(BaseModel):
    """Outcome of a pipeline run."""

    request_id: str
    render_id: Optional[str] = None
    status: RenderStatus = RenderStatus.QUEUED
    render_url: Optional[str] = None
    error_message: Optional[str] = Field(default=None, description="Render service error for status 'error'")
    error: Optional[dict[str, Any]] = Field(default=None, description="Serialized pipeline error")
