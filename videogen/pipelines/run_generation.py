"""CLI for the generation pipeline - script + clips -> rendered video."""

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from videogen.core.config import settings
from videogen.core.exceptions import ValidationFailure, VideoGenerationError
from videogen.core.logging_config import get_logger, setup_logging
from videogen.models.schemas import CaptionConfiguration, CaptionPlacement, GenerationRequest, SourceClip
from videogen.pipelines.generation_pipeline import create_pipeline
from videogen.services.caption_presets import DEFAULT_PRESETS
from videogen.utils.error_handler import format_error_message, get_fallback_suggestion
from videogen.utils.io_utils import read_json_file

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_VALIDATION = 2


def load_clips(path: Path) -> list[SourceClip]:
    """
    Load source clips from a JSON file.

    Args:
        path: File containing a JSON list of clip objects

    Returns:
        Parsed clips
    """
    data = read_json_file(path)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of clips")
    return [SourceClip.model_validate(item) for item in data]


def build_request(args: argparse.Namespace) -> GenerationRequest:
    if args.script_file:
        script = Path(args.script_file).read_text(encoding="utf-8")
    else:
        script = args.script

    caption_config = CaptionConfiguration(
        enabled=not args.no_captions,
        preset_id=args.preset,
        placement=args.placement,
        highlight_color=args.highlight_color,
    )
    return GenerationRequest(
        script=script,
        clips=load_clips(Path(args.clips_file)),
        plan=args.plan,
        caption_config=caption_config,
        prompt=args.prompt or "",
    )


def main():
    """Main entrypoint for the generation pipeline."""
    parser = argparse.ArgumentParser(
        description="Video generation pipeline - validate, compose, render",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    script_group = parser.add_mutually_exclusive_group(required=True)
    script_group.add_argument("--script", type=str, help="Narration script text")
    script_group.add_argument("--script-file", type=str, help="Path to a file containing the narration script")
    parser.add_argument(
        "--clips-file",
        type=str,
        required=True,
        help="JSON file with a list of clips ({id, duration_seconds, url, title, description, tags})",
    )
    parser.add_argument(
        "--plan",
        type=str,
        default="free",
        help="Subscription plan: free (30s), creator (60s), pro (120s) (default: free)",
    )
    parser.add_argument(
        "--preset",
        type=str,
        default=None,
        choices=[preset.id for preset in DEFAULT_PRESETS],
        help="Caption preset (default: karaoke)",
    )
    parser.add_argument(
        "--placement",
        type=str,
        default=None,
        choices=[placement.value for placement in CaptionPlacement],
        help="Caption placement (default: bottom)",
    )
    parser.add_argument(
        "--highlight-color",
        type=str,
        default=None,
        help="Highlight colour for the active word (e.g., '#04f827')",
    )
    parser.add_argument("--prompt", type=str, default=None, help="Original user prompt, stored with the render")
    parser.add_argument("--no-captions", action="store_true", help="Remove subtitles from the composition")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and build the composition, print it, and skip submission",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Return once the render is queued instead of tracking it to completion",
    )

    args = parser.parse_args()

    setup_logging(log_level=settings.log_level)
    logger = get_logger(__name__)

    try:
        request = build_request(args)
    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"Invalid input: {e}")
        return EXIT_FAILURE

    pipeline = create_pipeline(settings, logger)

    try:
        if args.dry_run:
            logger.info("Dry-run mode: building composition without submission")
            document = pipeline.build_document(request)
            print(json.dumps(document.to_payload(), indent=2, ensure_ascii=False))
            return EXIT_OK

        result = pipeline.run(request, wait=not args.no_wait)
        print(json.dumps(result.model_dump(mode="json"), indent=2))
        return EXIT_OK if result.error_message is None else EXIT_FAILURE

    except ValidationFailure as e:
        logger.error(format_error_message("Validation", e, suggestion=get_fallback_suggestion(e.kind, e)))
        for warning in e.warnings:
            logger.error(f"   - {warning}")
        return EXIT_VALIDATION
    except VideoGenerationError as e:
        logger.error(
            format_error_message("Generation", e, context=e.context, suggestion=get_fallback_suggestion(e.kind, e))
        )
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        pipeline.cancel()
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
