"""Tests for imagegen.collaborators.metadata — exiftool reader/writer.

``ExifToolHelper`` is patched so no exiftool binary is needed.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from exiftool.exceptions import ExifToolExecuteError

from imagegen.collaborators.metadata import READ_TAGS, ExifToolMetadata
from imagegen.core.errors import MetadataError


def _mock_helper(et: MagicMock) -> MagicMock:
    """Return a class mock whose context manager yields ``et``."""
    helper_cls = MagicMock()
    helper_cls.return_value.__enter__.return_value = et
    helper_cls.return_value.__exit__.return_value = False
    return helper_cls


class TestRead:
    def test_strips_group_prefixes(self):
        et = MagicMock()
        et.get_tags.return_value = [
            {
                "SourceFile": "/imgs/a.png",
                "File:MIMEType": "image/png",
                "PNG:ImageWidth": 1024,
                "PNG:ImageHeight": 768,
                "IPTC:Keywords": ["sunset", "beach"],
            }
        ]

        with patch("imagegen.collaborators.metadata.ExifToolHelper", _mock_helper(et)):
            tags = ExifToolMetadata().read("/imgs/a.png")

        et.get_tags.assert_called_once_with(files=["/imgs/a.png"], tags=READ_TAGS)
        assert tags == {
            "MIMEType": "image/png",
            "ImageWidth": 1024,
            "ImageHeight": 768,
            "Keywords": ["sunset", "beach"],
        }

    def test_single_keyword_becomes_list(self):
        et = MagicMock()
        et.get_tags.return_value = [{"SourceFile": "a.jpg", "IPTC:Keywords": "solo"}]

        with patch("imagegen.collaborators.metadata.ExifToolHelper", _mock_helper(et)):
            tags = ExifToolMetadata().read("a.jpg")

        assert tags["Keywords"] == ["solo"]

    def test_xmp_subject_used_when_keywords_missing(self):
        et = MagicMock()
        et.get_tags.return_value = [{"SourceFile": "a.webp", "XMP:Subject": ["fog", "castle"]}]

        with patch("imagegen.collaborators.metadata.ExifToolHelper", _mock_helper(et)):
            tags = ExifToolMetadata().read("a.webp")

        assert tags == {"Keywords": ["fog", "castle"]}

    def test_missing_tags_are_absent(self):
        et = MagicMock()
        et.get_tags.return_value = [{"SourceFile": "a.jpg"}]

        with patch("imagegen.collaborators.metadata.ExifToolHelper", _mock_helper(et)):
            assert ExifToolMetadata().read("a.jpg") == {}

    def test_exiftool_error_raises_metadata_error(self):
        et = MagicMock()
        et.get_tags.side_effect = ExifToolExecuteError(1, "cmd", "", "File not found")

        with patch("imagegen.collaborators.metadata.ExifToolHelper", _mock_helper(et)):
            with pytest.raises(MetadataError, match="a.jpg"):
                ExifToolMetadata().read("a.jpg")

    def test_missing_binary_raises_metadata_error(self):
        helper_cls = MagicMock(side_effect=FileNotFoundError("exiftool"))

        with patch("imagegen.collaborators.metadata.ExifToolHelper", helper_cls):
            with pytest.raises(MetadataError):
                ExifToolMetadata().read("a.jpg")


class TestWrite:
    def test_overwrites_original(self):
        et = MagicMock()

        with patch("imagegen.collaborators.metadata.ExifToolHelper", _mock_helper(et)):
            ExifToolMetadata().write("a.png", {"Keywords": ["k"], "ImageDescription": "d"})

        et.set_tags.assert_called_once_with(
            files=["a.png"],
            tags={"Keywords": ["k"], "ImageDescription": "d"},
            params=["-overwrite_original"],
        )

    def test_empty_tags_skip_exiftool(self):
        helper_cls = MagicMock()
        with patch("imagegen.collaborators.metadata.ExifToolHelper", helper_cls):
            ExifToolMetadata().write("a.png", {})
        helper_cls.assert_not_called()

    def test_write_failure_raises_metadata_error(self):
        et = MagicMock()
        et.set_tags.side_effect = ExifToolExecuteError(1, "cmd", "", "read-only")

        with patch("imagegen.collaborators.metadata.ExifToolHelper", _mock_helper(et)):
            with pytest.raises(MetadataError):
                ExifToolMetadata().write("a.png", {"ImageDescription": "d"})

    def test_custom_executable(self):
        helper_cls = _mock_helper(MagicMock())
        with patch("imagegen.collaborators.metadata.ExifToolHelper", helper_cls):
            ExifToolMetadata(executable="/opt/exiftool").write("a.png", {"ImageDescription": "d"})
        helper_cls.assert_called_once_with(executable="/opt/exiftool")


class TestSession:
    def test_calls_share_one_process(self):
        et = MagicMock()
        et.get_tags.return_value = [{"SourceFile": "a.png", "IPTC:Keywords": ["k"]}]
        helper_cls = MagicMock(return_value=et)
        metadata = ExifToolMetadata()

        with patch("imagegen.collaborators.metadata.ExifToolHelper", helper_cls):
            with metadata.session():
                metadata.read("a.png")
                metadata.read("b.png")
                metadata.write("a.png", {"ImageDescription": "d"})

        helper_cls.assert_called_once_with()
        et.run.assert_called_once_with()
        et.terminate.assert_called_once_with()
        assert et.get_tags.call_count == 2
        et.set_tags.assert_called_once()

    def test_nested_session_reuses_process(self):
        et = MagicMock()
        helper_cls = MagicMock(return_value=et)
        metadata = ExifToolMetadata()

        with patch("imagegen.collaborators.metadata.ExifToolHelper", helper_cls):
            with metadata.session():
                with metadata.session():
                    pass
                et.terminate.assert_not_called()

        helper_cls.assert_called_once_with()
        et.terminate.assert_called_once_with()

    def test_read_error_inside_session_keeps_process(self):
        et = MagicMock()
        et.get_tags.side_effect = ExifToolExecuteError(1, "cmd", "", "File not found")
        helper_cls = MagicMock(return_value=et)
        metadata = ExifToolMetadata()

        with patch("imagegen.collaborators.metadata.ExifToolHelper", helper_cls):
            with metadata.session():
                with pytest.raises(MetadataError):
                    metadata.read("missing.jpg")
                et.terminate.assert_not_called()

        et.terminate.assert_called_once_with()

    def test_start_failure_raises_metadata_error(self):
        et = MagicMock()
        et.run.side_effect = FileNotFoundError("exiftool")

        with patch("imagegen.collaborators.metadata.ExifToolHelper", MagicMock(return_value=et)):
            with pytest.raises(MetadataError, match="start exiftool"):
                with ExifToolMetadata().session():
                    pass

    def test_calls_after_session_start_their_own_process(self):
        et = MagicMock()
        et.get_tags.return_value = [{"SourceFile": "a.png"}]
        helper_cls = _mock_helper(et)
        metadata = ExifToolMetadata()

        with patch("imagegen.collaborators.metadata.ExifToolHelper", helper_cls):
            with metadata.session():
                pass
            metadata.read("a.png")

        assert helper_cls.call_count == 2
        helper_cls.return_value.__enter__.assert_called_once()
