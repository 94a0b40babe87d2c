"""
Tests for the literal in-place text patcher.
"""

import os

import pytest

from wpstack.core.services.text_patch import PatchOutcome, patch, patch_file


@pytest.fixture
def conf(tmp_path):
    path = tmp_path / "php.ini"
    path.write_text("memory_limit = 128M\nupload_max_filesize = 2M\npost_max_size = 8M\n")
    return path


class TestPatch:
    def test_replaces_every_occurrence(self, tmp_path):
        path = tmp_path / "a.conf"
        path.write_text("x=1\nx=1\ny=2\n")
        result = patch_file("x=1", "x=3", path)
        assert result.outcome is PatchOutcome.REPLACED
        assert result.count == 2
        assert path.read_text() == "x=3\nx=3\ny=2\n"

    def test_round_trip_is_byte_identical(self, conf):
        original = conf.read_bytes()
        patch("upload_max_filesize = 2M", "upload_max_filesize = 64M", conf)
        patch("upload_max_filesize = 64M", "upload_max_filesize = 2M", conf)
        assert conf.read_bytes() == original

    def test_search_is_literal(self, tmp_path):
        path = tmp_path / "main.cf"
        path.write_text("relayhost = \nrelayhostXX\n")
        patch_file("relayhost = ", "relayhost = [smtp.mailgun.org]:587", path)
        assert path.read_text() == "relayhost = [smtp.mailgun.org]:587\nrelayhostXX\n"

    def test_replacement_is_verbatim(self, tmp_path):
        path = tmp_path / "x.conf"
        path.write_text("permalink = old\n")
        patch_file("old", r"/%postname%/\1\g<0>", path)
        assert path.read_text() == "permalink = /%postname%/\\1\\g<0>\n"

    def test_crlf_preserved(self, tmp_path):
        path = tmp_path / "win.ini"
        path.write_bytes(b"a=1\r\nb=2\r\n")
        patch_file("a=1", "a=9", path)
        assert path.read_bytes() == b"a=9\r\nb=2\r\n"

    def test_whole_line_leaves_comments_and_longer_lines(self, tmp_path):
        path = tmp_path / "sshd_config"
        path.write_bytes(
            b"#PermitRootLogin yes\nPermitRootLogin yes\r\nPermitRootLogin yes-please\n"
        )
        result = patch_file("PermitRootLogin yes", "PermitRootLogin no", path, whole_line=True)
        assert result.count == 1
        assert path.read_bytes() == (
            b"#PermitRootLogin yes\nPermitRootLogin no\r\nPermitRootLogin yes-please\n"
        )

    def test_non_utf8_bytes_pass_through(self, tmp_path):
        path = tmp_path / "php.ini"
        path.write_bytes(b"; caf\xe9\nmemory_limit = 128M\n")
        result = patch_file("128M", "256M", path)
        assert result.replaced
        assert path.read_bytes() == b"; caf\xe9\nmemory_limit = 256M\n"
        patch_file("256M", "128M", path)
        assert path.read_bytes() == b"; caf\xe9\nmemory_limit = 128M\n"

    def test_mode_preserved(self, conf):
        os.chmod(conf, 0o640)
        patch_file("128M", "256M", conf)
        assert (conf.stat().st_mode & 0o777) == 0o640


class TestWarnings:
    def test_missing_file_creates_nothing(self, tmp_path):
        path = tmp_path / "absent.conf"
        result = patch_file("a", "b", path)
        assert result.outcome is PatchOutcome.WARN_MISSING_FILE
        assert result.is_warning
        assert not path.exists()
        assert "does not exist" in result.describe("a")

    def test_anchor_not_found_leaves_file_alone(self, conf):
        before = conf.read_text()
        result = patch_file("display_errors = On", "display_errors = Off", conf)
        assert result.outcome is PatchOutcome.WARN_NOT_FOUND
        assert conf.read_text() == before
        assert "not found" in result.describe("display_errors = On")

    def test_each_path_is_independent(self, tmp_path, conf):
        other = tmp_path / "other.ini"
        other.write_text("memory_limit = 128M\n")
        results = patch("memory_limit = 128M", "memory_limit = 256M", tmp_path / "nope", conf, other)
        assert [r.outcome for r in results] == [
            PatchOutcome.WARN_MISSING_FILE,
            PatchOutcome.REPLACED,
            PatchOutcome.REPLACED,
        ]
        assert other.read_text() == "memory_limit = 256M\n"

    def test_empty_search_rejected(self, conf):
        with pytest.raises(ValueError):
            patch_file("", "x", conf)


class TestDryRun:
    def test_counts_without_writing(self, conf):
        before = conf.read_text()
        result = patch_file("M\n", "MB\n", conf, dry_run=True)
        assert result.replaced
        assert result.count == 3
        assert conf.read_text() == before
