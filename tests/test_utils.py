"""Unit tests for engine helper functions."""

from datetime import datetime, timedelta, timezone

import pytest

from drive.exceptions import ErrorKind, InvalidArgumentError
from drive.utils import (
    chunk_label,
    coerce_id,
    coerce_id_list,
    coerce_optional_id,
    format_timestamp,
    get_file_extension,
    parse_timestamp,
    validate_upload,
)


class TestTimestamps:
    def test_naive_timestamp_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000000+00:00"

    def test_offset_timestamp_normalized_to_utc(self):
        moment = datetime(2024, 1, 1, 2, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(moment) == "2024-01-01T00:30:00.000000+00:00"

    def test_formatted_timestamps_sort_chronologically(self):
        earlier = datetime(2024, 1, 1, 23, 59, 59, 999999, tzinfo=timezone.utc)
        later = datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert format_timestamp(earlier) < format_timestamp(later)

    def test_parse_timestamp(self):
        moment = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(moment)) == moment


class TestCoerceIdList:
    def test_list_passes_through(self):
        assert coerce_id_list([1, 2, 3], "file_ids") == [1, 2, 3]

    def test_tuple_becomes_list(self):
        assert coerce_id_list((4, 5), "file_ids") == [4, 5]

    @pytest.mark.parametrize("value", [None, "1,2,3", 7, {"id": 1}])
    def test_non_list_is_empty_selection(self, value):
        assert coerce_id_list(value, "folder_ids") == []


class TestCoerceId:
    @pytest.mark.parametrize("value, expected", [(7, 7), ("7", 7), (" 3 ", 3), ("-2", -2)])
    def test_converts_to_int(self, value, expected):
        assert coerce_id(value, "folder_id") == expected

    @pytest.mark.parametrize("value", [True, False, None, "abc", "1.5", "", [1]])
    def test_rejects_non_integer_ids(self, value):
        with pytest.raises(InvalidArgumentError) as exc_info:
            coerce_id(value, "folder_id")
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_optional_keeps_root(self):
        assert coerce_optional_id(None, "target_folder_id") is None
        assert coerce_optional_id("12", "target_folder_id") == 12


class TestChunkLabel:
    def test_multi_part_label(self):
        assert chunk_label("movie.mp4", 2, 12) == "movie.mp4.part002"

    def test_single_part_keeps_name(self):
        assert chunk_label("notes.txt", 0, 1) == "notes.txt"

    def test_unknown_total_keeps_name(self):
        assert chunk_label("notes.txt", 3, None) == "notes.txt"


class TestValidateUpload:
    def test_valid_upload(self):
        validate_upload("report.pdf", 1024)

    def test_file_without_extension(self):
        validate_upload("Makefile", 10)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, name):
        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_upload(name, 10)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_negative_size_rejected(self):
        with pytest.raises(InvalidArgumentError, match="negative"):
            validate_upload("a.txt", -1)

    def test_oversize_rejected(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_upload("a.txt", 11, max_size=10)
        assert exc_info.value.context["max_size"] == 10

    def test_size_at_limit_accepted(self):
        validate_upload("a.txt", 10, max_size=10)

    @pytest.mark.parametrize("name", ["setup.exe", "RUN.BAT", "payload.scr"])
    def test_blocked_extension_rejected(self, name):
        with pytest.raises(InvalidArgumentError, match="not allowed"):
            validate_upload(name, 10)

    def test_custom_blocked_extensions(self):
        validate_upload("setup.exe", 10, blocked_extensions=())
        with pytest.raises(InvalidArgumentError):
            validate_upload("script.sh", 10, blocked_extensions=(".sh",))

    def test_get_file_extension(self):
        assert get_file_extension("archive.tar.gz") == ".gz"
        assert get_file_extension("README") == ""
