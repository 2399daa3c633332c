"""Tests for template sanitizing and per-asset template application."""

from resolume_converter.model import Clip
from resolume_converter.template import apply_asset, sanitize_template, strip_ids

from fakes import make_clip, make_template


def _has_id_key(obj):
    if isinstance(obj, dict):
        return "id" in obj or any(_has_id_key(v) for v in obj.values())
    if isinstance(obj, list):
        return any(_has_id_key(v) for v in obj)
    return False


class TestSanitizeTemplate:
    def test_zeroes_identity(self):
        clean = sanitize_template(Clip.from_json(make_template()))
        assert clean.id == 0
        assert clean.name.id == 0
        assert clean.connected.id == 0

    def test_no_id_keys_left(self):
        clean = sanitize_template(Clip.from_json(make_template()))
        assert not _has_id_key(clean.params)
        assert not _has_id_key(clean.video.effects)
        assert not _has_id_key(clean.video.extra)
        assert not _has_id_key(clean.to_json())

    def test_keeps_values(self):
        clean = sanitize_template(Clip.from_json(make_template()))
        assert clean.params["transporttype"]["value"] == "Timeline"
        assert clean.video.effects[0]["params"]["Scale"]["value"] == 100
        assert clean.connected.extra["options"][0] == "Empty"

    def test_idempotent(self):
        once = sanitize_template(Clip.from_json(make_template()))
        twice = sanitize_template(once)
        assert twice == once

    def test_does_not_touch_input(self):
        clip = Clip.from_json(make_template())
        before = clip.to_json()
        sanitize_template(clip)
        assert clip.to_json() == before
        assert clip.id == 77

    def test_none_sub_objects_pass_through(self):
        clip = Clip.from_json(make_clip(5))  # no video
        clip.params["thumbnail"] = None
        clean = sanitize_template(clip)
        assert clean.video is None
        assert clean.params["thumbnail"] is None

    def test_bare_clip(self):
        assert sanitize_template(Clip()) == Clip()

    def test_structured_param_value(self):
        data = make_clip(5)
        data["name"]["value"] = {"id": 9, "text": "intro", "parts": [{"id": 10, "text": "a"}]}
        clean = sanitize_template(Clip.from_json(data))
        assert clean.name.value == {"text": "intro", "parts": [{"text": "a"}]}
        assert data["name"]["value"]["id"] == 9


class TestStripIds:
    def test_nested(self):
        data = {"id": 1, "a": [{"id": 2, "b": {"id": 3, "c": 4}}]}
        assert strip_ids(data) == {"a": [{"b": {"c": 4}}]}

    def test_scalars(self):
        assert strip_ids(None) is None
        assert strip_ids(5) == 5


class TestApplyAsset:
    def test_sets_name_description_and_path(self):
        template = sanitize_template(Clip.from_json(make_template()))
        clip = apply_asset(template, "track1", "/media/video/track1.mov")
        assert clip.name.value == "track1"
        assert clip.video.description == "track1"
        assert clip.file_path == "/media/video/track1.mov"

    def test_clears_media_info(self):
        template = sanitize_template(Clip.from_json(make_template()))
        clip = apply_asset(template, "track1", "/media/video/track1.mov")
        assert clip.video.width == 0
        assert clip.video.height == 0
        for key in ("duration", "duration_ms", "framerate", "width", "height"):
            assert key not in clip.video.fileinfo

    def test_template_unchanged(self):
        template = sanitize_template(Clip.from_json(make_template()))
        apply_asset(template, "track1", "/x.mov")
        assert template.name.value == "Template"

    def test_blank_template(self):
        clip = apply_asset(Clip(), "a", "/v/a.mov")
        assert clip.name.valuetype == "ParamString"
        assert clip.to_json()["video"]["fileinfo"] == {"path": "/v/a.mov"}
        assert "id" not in clip.to_json()
