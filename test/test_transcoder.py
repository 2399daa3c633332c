"""Tests for the ffmpeg/ffprobe wrapper. subprocess.Popen is mocked."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from resolume_converter.cancel import CancelToken
from resolume_converter.errors import AudioTitleNotFoundError, CancelledError, TranscodeError
from resolume_converter.transcoder import Transcoder

POPEN = "resolume_converter.transcoder.subprocess.Popen"


def _proc(stdout=b"", stderr=b"", returncode=0):
    proc = MagicMock()
    proc.communicate.return_value = (stdout, stderr)
    proc.returncode = returncode
    return proc


def _ffprobe_output(tags):
    fmt = {"filename": "x.m4a"}
    if tags is not None:
        fmt["tags"] = tags
    return json.dumps({"streams": [], "format": fmt}).encode()


class TestExtractAudioTitle:
    def test_reads_title_tag(self):
        with patch(POPEN, return_value=_proc(_ffprobe_output({"title": "Artist - Song"}))) as popen:
            assert Transcoder().extract_audio_title("a.m4a") == "Artist - Song"
        cmd = popen.call_args[0][0]
        assert cmd[0] == "ffprobe"
        assert cmd[-2:] == ["-i", "a.m4a"]

    def test_upper_case_tag(self):
        with patch(POPEN, return_value=_proc(_ffprobe_output({"TITLE": "Song"}))):
            assert Transcoder().extract_audio_title("a.m4a") == "Song"

    def test_no_tags(self):
        with patch(POPEN, return_value=_proc(_ffprobe_output(None))):
            with pytest.raises(AudioTitleNotFoundError):
                Transcoder().extract_audio_title("a.m4a")

    def test_blank_title(self):
        with patch(POPEN, return_value=_proc(_ffprobe_output({"title": "  "}))):
            with pytest.raises(AudioTitleNotFoundError):
                Transcoder().extract_audio_title("a.m4a")

    def test_ffprobe_failure(self):
        with patch(POPEN, return_value=_proc(stderr=b"a.m4a: No such file or directory", returncode=1)):
            with pytest.raises(TranscodeError) as exc:
                Transcoder().extract_audio_title("a.m4a")
        assert "No such file" in exc.value.message

    def test_missing_binary(self):
        with patch(POPEN, side_effect=FileNotFoundError("ffprobe")):
            with pytest.raises(TranscodeError):
                Transcoder().get_metadata("a.m4a")


class TestTranscode:
    def test_audio_command(self, tmp_path):
        with patch(POPEN, return_value=_proc()) as popen:
            out = Transcoder().transcode_to_audio(tmp_path / "in" / "song.mp4", tmp_path)
        assert out == tmp_path / "song.m4a"
        cmd = popen.call_args[0][0]
        assert cmd[cmd.index("-vn") + 1:cmd.index("-vn") + 3] == ["-acodec", "copy"]
        assert cmd[-1] == str(tmp_path / "song.m4a")

    def test_strip_audio_command(self, tmp_path):
        with patch(POPEN, return_value=_proc()) as popen:
            out = Transcoder().transcode_strip_audio(tmp_path / "song.mp4", tmp_path / "v")
        assert out == tmp_path / "v" / "song.mov"
        cmd = popen.call_args[0][0]
        assert "-an" in cmd
        assert cmd[cmd.index("-vcodec") + 1] == "copy"

    def test_existing_output_is_skipped(self, tmp_path):
        (tmp_path / "song.m4a").write_bytes(b"done")
        with patch(POPEN) as popen:
            Transcoder().transcode_to_audio(tmp_path / "song.mp4", tmp_path)
        popen.assert_not_called()

    def test_empty_output_is_redone(self, tmp_path):
        (tmp_path / "song.m4a").write_bytes(b"")
        with patch(POPEN, return_value=_proc()) as popen:
            Transcoder().transcode_to_audio(tmp_path / "song.mp4", tmp_path)
        popen.assert_called_once()


class TestCancel:
    def test_cancelled_before_start(self):
        token = CancelToken()
        token.cancel()
        with patch(POPEN) as popen:
            with pytest.raises(CancelledError):
                Transcoder(cancel=token).get_metadata("a.m4a")
        popen.assert_not_called()

    def test_kills_running_process(self):
        token = CancelToken()
        proc = MagicMock()
        proc.returncode = -9

        def communicate(timeout=None):
            if timeout is not None:
                token.cancel()
                raise subprocess.TimeoutExpired("ffmpeg", timeout)
            return b"", b""

        proc.communicate.side_effect = communicate
        with patch(POPEN, return_value=proc):
            with pytest.raises(CancelledError):
                Transcoder(cancel=token).get_metadata("a.m4a")
        proc.kill.assert_called_once()
