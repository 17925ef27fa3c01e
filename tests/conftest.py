"""Shared pytest fixtures and configuration."""

import pytest

from videogen.core.config import Settings
from videogen.core.logging_config import get_logger
from videogen.models.schemas import SourceClip


@pytest.fixture
def settings(tmp_path):
    """Create test settings instance with temporary storage."""
    test_settings = Settings()
    test_settings.storage_path = str(tmp_path / "storage")
    test_settings.render_api_key = "test-render-key"
    test_settings.render_template_id = "template-123"
    test_settings.webhook_base_url = "https://hooks.example.com"
    return test_settings


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def sample_clips():
    """Three clips totalling 35 seconds."""
    return [
        SourceClip(id="clip_1", duration_seconds=10, url="https://cdn.example.com/clip_1.mp4", title="Beach"),
        SourceClip(id="clip_2", duration_seconds=10, url="https://cdn.example.com/clip_2.mp4", title="City"),
        SourceClip(id="clip_3", duration_seconds=15, url="https://cdn.example.com/clip_3.mp4", title="Forest"),
    ]


@pytest.fixture
def sample_draft():
    """Unrepaired composition draft as returned by the draft generator."""
    return {
        "width": 720,
        "height": 1280,
        "output_format": "mp4",
        "elements": [
            {
                "type": "composition",
                "id": "scene-1",
                "track": 1,
                "elements": [
                    {
                        "type": "video",
                        "id": "video-1",
                        "source": "https://cdn.example.com/clip_1.mp4",
                        "fit": "crop",
                        "volume": 0,
                    },
                    {
                        "type": "audio",
                        "id": "voice-1",
                        "source": "Hello from the beach.",
                        "provider": "elevenlabs model_id=eleven_multilingual_v2",
                        "dynamic": True,
                    },
                    {
                        "type": "text",
                        "id": "subtitles-1",
                        "name": "Subtitles-1",
                        "transcript_source": "voice-1",
                        "fill_color": "#000000",
                    },
                ],
            },
            {
                "type": "image",
                "id": "logo",
                "source": "https://cdn.example.com/logo.png",
                "x_alignment": "50%",
                "custom_flag": True,
            },
        ],
    }
