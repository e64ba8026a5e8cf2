"""Tests for report files and remote naming."""

from datetime import datetime

from field_report_sync.file_handler import (
    MAX_SEGMENT_LENGTH,
    ReportFile,
    build_target_file_name,
    dedupe_files,
    sanitize_segment,
)

STAMP = datetime(2024, 3, 5, 14, 7, 9)


class TestSanitizeSegment:
    """Tests for sanitize_segment."""

    def test_collapses_unsafe_runs(self):
        assert sanitize_segment("  Oak Ridge / North ") == "Oak-Ridge-North"
        assert sanitize_segment("IMG_0042 (1)") == "IMG-0042-1"

    def test_caps_length(self):
        assert sanitize_segment("a" * 100) == "a" * MAX_SEGMENT_LENGTH

    def test_nothing_left(self):
        assert sanitize_segment("!!!") == ""
        assert sanitize_segment(None) == ""


class TestBuildTargetFileName:
    """Tests for build_target_file_name."""

    def test_tag_and_base(self):
        assert build_target_file_name("IMG_0042.JPG", "Oak Ridge", STAMP) == \
            "20240305140709_Oak-Ridge_IMG-0042.jpg"

    def test_without_tag(self):
        assert build_target_file_name("IMG_0042.JPG", "", STAMP) == "20240305140709_IMG-0042.jpg"

    def test_empty_segments_become_upload(self):
        assert build_target_file_name("!!!.PNG", "  ", STAMP) == "20240305140709_upload.png"

    def test_no_extension(self):
        assert build_target_file_name("README", "", STAMP) == "20240305140709_README"

    def test_only_last_dot_splits(self):
        assert build_target_file_name("site.photo.Jpeg", "", STAMP) == "20240305140709_site-photo.jpeg"

    def test_repeated_name_in_same_second_gets_suffix(self):
        taken = set()

        names = [build_target_file_name("IMG_1.jpg", "", STAMP, taken) for _ in range(3)]

        assert names == [
            "20240305140709_IMG-1.jpg",
            "20240305140709_IMG-1-2.jpg",
            "20240305140709_IMG-1-3.jpg",
        ]

    def test_suffix_check_ignores_case(self):
        taken = {"20240305140709_img-1.jpg"}

        assert build_target_file_name("IMG_1.JPG", "", STAMP, taken) == "20240305140709_IMG-1-2.jpg"


class TestReportFile:
    """Tests for ReportFile and de-duplication."""

    def test_from_path(self, tmp_path):
        path = tmp_path / "roof.jpg"
        path.write_bytes(b"jpeg-bytes")

        report_file = ReportFile.from_path(str(path))

        assert report_file.name == "roof.jpg"
        assert report_file.size == 10
        assert report_file.last_modified is not None

    def test_dedupe_keeps_first_pick(self):
        first = ReportFile("a.jpg", b"aaa", last_modified=1.0)
        again = ReportFile("a.jpg", b"aaa", last_modified=1.0)
        other = ReportFile("a.jpg", b"aaa", last_modified=2.0)

        assert dedupe_files([first, again, other]) == [first, other]
