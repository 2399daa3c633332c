"""Shared fixtures for resolume_converter tests."""

import pytest

from resolume_converter.cancel import CancelToken
from resolume_converter.config import ConverterSettings


@pytest.fixture
def settings():
    """Default settings without the post-open settle delay."""
    return ConverterSettings(settle_seconds=0.0)


@pytest.fixture
def cancel():
    return CancelToken()


@pytest.fixture
def asset_dirs(tmp_path):
    audio = tmp_path / "audio"
    video = tmp_path / "video"
    audio.mkdir()
    video.mkdir()
    return audio, video
