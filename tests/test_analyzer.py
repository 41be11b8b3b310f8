"""
Media Analyzer Tests
====================
Tests for ffprobe output parsing and soft failure of analysis.
"""

import json
import subprocess

import pytest

from reconciler.errors import AnalyzerNotFoundError
from reconciler.scanner.analyzer import FFprobeMediaAnalyzer, Metadata, parse_ffprobe_output
from reconciler.storage.models import ChapterId


def ffprobe_json(tags: dict, duration: str = "61.5") -> str:
    return json.dumps({"format": {"filename": "x.mp3", "duration": duration, "tags": tags}})


class TestParseFFprobeOutput:
    """Tests for parse_ffprobe_output()."""

    def test_reads_tags(self):
        metadata = parse_ffprobe_output(
            ffprobe_json({"artist": "Jane Doe", "album": "The Book", "title": "Chapter 1"})
        )
        assert metadata == Metadata(
            duration_ms=61_500, author="Jane Doe", book_name="The Book", chapter_name="Chapter 1"
        )

    def test_tag_names_are_case_insensitive(self):
        metadata = parse_ffprobe_output(ffprobe_json({"ARTIST": "Jane Doe", "Album": "The Book"}))
        assert metadata.author == "Jane Doe"
        assert metadata.book_name == "The Book"

    def test_author_fallbacks(self):
        metadata = parse_ffprobe_output(ffprobe_json({"composer": "C", "album_artist": "AA"}))
        assert metadata.author == "AA"

    def test_blank_tags_are_missing(self):
        metadata = parse_ffprobe_output(ffprobe_json({"artist": "  ", "album": ""}))
        assert metadata.author is None
        assert metadata.book_name is None

    def test_no_tags(self):
        metadata = parse_ffprobe_output(json.dumps({"format": {}}))
        assert metadata == Metadata(duration_ms=0)


class TestFFprobeMediaAnalyzer:
    """Tests for FFprobeMediaAnalyzer with a mocked binary."""

    @pytest.fixture
    def analyzer(self, mocker):
        mocker.patch("reconciler.scanner.analyzer.shutil.which", return_value="/usr/bin/ffprobe")
        return FFprobeMediaAnalyzer(timeout=5.0)

    def test_missing_binary_is_reported_on_check(self, mocker):
        mocker.patch("reconciler.scanner.analyzer.shutil.which", return_value=None)
        analyzer = FFprobeMediaAnalyzer("definitely-not-ffprobe")
        with pytest.raises(AnalyzerNotFoundError):
            analyzer._check_ffprobe()

    @pytest.mark.asyncio
    async def test_missing_binary_is_none(self, mocker):
        mocker.patch("reconciler.scanner.analyzer.shutil.which", return_value=None)
        run = mocker.patch("reconciler.scanner.analyzer.subprocess.run")

        analyzer = FFprobeMediaAnalyzer("definitely-not-ffprobe")

        assert await analyzer.analyze(ChapterId("file:///x.mp3")) is None
        run.assert_not_called()

    @pytest.mark.asyncio
    async def test_analyze(self, analyzer, mocker):
        run = mocker.patch(
            "reconciler.scanner.analyzer.subprocess.run",
            return_value=subprocess.CompletedProcess(
                args=[], returncode=0, stdout=ffprobe_json({"artist": "Jane Doe"}), stderr=""
            ),
        )

        metadata = await analyzer.analyze(ChapterId("file:///books/Book%201/ch1.mp3"))

        assert metadata.author == "Jane Doe"
        cmd = run.call_args.args[0]
        assert cmd[0] == "ffprobe"
        assert cmd[-1] == "/books/Book 1/ch1.mp3"
        assert run.call_args.kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_content_uri_passed_through(self, analyzer, mocker):
        run = mocker.patch(
            "reconciler.scanner.analyzer.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="{}", stderr=""),
        )
        await analyzer.analyze(ChapterId("content://provider/document/x"))
        assert run.call_args.args[0][-1] == "content://provider/document/x"

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_none(self, analyzer, mocker):
        mocker.patch(
            "reconciler.scanner.analyzer.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="bad"),
        )
        assert await analyzer.analyze(ChapterId("file:///x.mp3")) is None

    @pytest.mark.asyncio
    async def test_timeout_is_none(self, analyzer, mocker):
        mocker.patch(
            "reconciler.scanner.analyzer.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ffprobe", timeout=5.0),
        )
        assert await analyzer.analyze(ChapterId("file:///x.mp3")) is None

    @pytest.mark.asyncio
    async def test_garbage_output_is_none(self, analyzer, mocker):
        mocker.patch(
            "reconciler.scanner.analyzer.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="not json", stderr=""),
        )
        assert await analyzer.analyze(ChapterId("file:///x.mp3")) is None

    @pytest.mark.asyncio
    async def test_non_scalar_duration_is_none(self, analyzer, mocker):
        output = json.dumps({"format": {"duration": [1, 2], "tags": {"artist": "Jane Doe"}}})
        mocker.patch(
            "reconciler.scanner.analyzer.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout=output, stderr=""),
        )
        assert await analyzer.analyze(ChapterId("file:///x.mp3")) is None
