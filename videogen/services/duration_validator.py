"""Duration Validator - decides whether a script and clip selection fit a plan."""

import math
from typing import Any, Optional, Union

from videogen.core.config import Settings
from videogen.models.schemas import PlanTier, ScriptDurationEstimate, SourceClip, ValidationResult
from videogen.utils.text_utils import count_words


def round_half_up(value: float) -> int:
    """Round a non-negative number to the nearest integer, .5 going up."""
    return int(math.floor(value + 0.5))


def _plan_name(plan: Union[PlanTier, str, None]) -> Optional[str]:
    return plan.value if isinstance(plan, PlanTier) else plan


class DurationValidator:
    """Pure admissibility checks for scripts and clip sets."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the validator.

        Args:
            settings: Application settings (words factor, tolerance, plan ceilings)
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.plan_limits = {
            PlanTier.FREE.value: settings.free_plan_max_seconds,
            PlanTier.CREATOR.value: settings.creator_plan_max_seconds,
            PlanTier.PRO.value: settings.pro_plan_max_seconds,
        }

    def estimate_duration(self, script: Optional[str]) -> ScriptDurationEstimate:
        """
        Estimate the spoken duration of a script.

        Args:
            script: Script text

        Returns:
            Word count and estimated seconds
        """
        word_count = count_words(script)
        estimated_seconds = round_half_up(word_count * self.settings.seconds_per_word)
        return ScriptDurationEstimate(word_count=word_count, estimated_seconds=estimated_seconds)

    def apply_tolerance(self, seconds: float) -> int:
        """Inflate an estimate by the tolerance band (5% by default)."""
        return round_half_up(seconds * self.settings.duration_tolerance)

    def tolerant_estimate(self, script: Optional[str]) -> int:
        return self.apply_tolerance(self.estimate_duration(script).estimated_seconds)

    def plan_limit(self, plan: Union[PlanTier, str, None]) -> Optional[int]:
        """Maximum script seconds for a plan, or None when the plan is unlimited."""
        return self.plan_limits.get(_plan_name(plan))

    def is_script_duration_admissible(self, script: Optional[str], plan: Union[PlanTier, str, None]) -> bool:
        """
        Check the tolerant script estimate against the plan ceiling.

        Plans without a ceiling (including unknown plan values) are unlimited.
        """
        limit = self.plan_limit(plan)
        if limit is None:
            return True
        return self.tolerant_estimate(script) <= limit

    def is_clip_set_admissible(self, clips: list[SourceClip]) -> bool:
        """Every clip must be at least the minimum duration; one short clip fails the set."""
        return all(clip.duration_seconds >= self.settings.min_clip_duration_seconds for clip in clips)

    def validate(
        self,
        script: Optional[str],
        plan: Union[PlanTier, str, None],
        clips: list[SourceClip],
    ) -> ValidationResult:
        """
        Run every admissibility rule and collect all warnings.

        Args:
            script: Script text
            plan: Active plan tier
            clips: Selected source clips

        Returns:
            ValidationResult, valid iff no warnings were collected
        """
        warnings: list[str] = []
        min_seconds = self.settings.min_clip_duration_seconds
        tolerant_seconds = self.tolerant_estimate(script)

        if not clips:
            warnings.append("Select at least one source clip.")

        if not self.is_clip_set_admissible(clips):
            short = [clip.id for clip in clips if clip.duration_seconds < min_seconds]
            warnings.append(
                f"Every clip must be at least {min_seconds:g} seconds long (too short: {', '.join(short)})."
            )

        if not self.is_script_duration_admissible(script, plan):
            warnings.append(
                f"Script is about {tolerant_seconds}s long, over the {self.plan_limit(plan)}s limit of the {_plan_name(plan)} plan."
            )

        total_clip_seconds = sum(clip.duration_seconds for clip in clips)
        if total_clip_seconds < tolerant_seconds:
            warnings.append(
                f"Selected clips cover {total_clip_seconds:g}s but the script needs about {tolerant_seconds}s of footage."
            )

        if warnings:
            self.logger.info(f"Validation produced {len(warnings)} warning(s)")
        return ValidationResult(is_valid=not warnings, warnings=warnings)
