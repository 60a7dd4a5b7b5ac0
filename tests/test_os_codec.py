"""Unit tests for remediation/os_codec.py.

Covers: current_os_family, windows_encode, unix_encode, os_parameter_encoder.
"""

import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from remediation import os_codec
from remediation.os_codec import (
    POSIX,
    WINDOWS,
    current_os_family,
    os_parameter_encoder,
    unix_encode,
    windows_encode,
)


class TestCurrentOsFamily:
    def test_windows(self):
        with patch.object(os_codec.os, "name", "nt"):
            assert current_os_family() == WINDOWS

    def test_posix(self):
        with patch.object(os_codec.os, "name", "posix"):
            assert current_os_family() == POSIX

    def test_unknown(self):
        with patch.object(os_codec.os, "name", "java"):
            assert current_os_family() is None


class TestUnixEncode:
    def test_metacharacters_escaped(self):
        assert unix_encode("a b;rm -rf /") == "a\\ b\\;rm\\ -rf\\ \\/"

    def test_substitution(self):
        assert unix_encode("$(id)`x`") == "\\$\\(id\\)\\`x\\`"

    def test_alphanumerics_and_dash_kept(self):
        assert unix_encode("abc-XYZ-019") == "abc-XYZ-019"

    def test_non_ascii_escaped(self):
        assert unix_encode("é") == "\\é"

    def test_custom_immune(self):
        assert unix_encode("a.b-c", immune=".") == "a.b\\-c"


class TestWindowsEncode:
    def test_metacharacters_escaped(self):
        assert windows_encode("a&b|c") == "a^&b^|c"

    def test_redirection(self):
        assert windows_encode("x>y<z") == "x^>y^<z"

    def test_caret_itself(self):
        assert windows_encode("^") == "^^"

    def test_alphanumerics_and_dash_kept(self):
        assert windows_encode("abc-XYZ-019") == "abc-XYZ-019"


class TestOsParameterEncoder:
    def test_explicit_posix(self):
        assert os_parameter_encoder("x y", os_family=POSIX) == "x\\ y"

    def test_explicit_windows(self):
        assert os_parameter_encoder("x y", os_family=WINDOWS) == "x^ y"

    def test_non_string_params(self):
        assert os_parameter_encoder(123, os_family=POSIX) == "123"

    def test_detected_family_used(self):
        with patch.object(os_codec, "current_os_family", return_value=WINDOWS):
            assert os_parameter_encoder("a&b") == "a^&b"
        with patch.object(os_codec, "current_os_family", return_value=POSIX):
            assert os_parameter_encoder("a&b") == "a\\&b"

    def test_unknown_family_unsupported(self):
        with pytest.raises(NotImplementedError):
            os_parameter_encoder("x", os_family="vms")

    def test_undetectable_host_unsupported(self):
        with patch.object(os_codec, "current_os_family", return_value=None):
            with pytest.raises(NotImplementedError):
                os_parameter_encoder("x")

    def test_none_rejected_before_platform_check(self):
        with patch.object(os_codec, "current_os_family", return_value=None):
            with pytest.raises(ValueError):
                os_parameter_encoder(None)

    def test_safe_input_unchanged(self):
        for family in (WINDOWS, POSIX):
            assert os_parameter_encoder("report-2024", os_family=family) == "report-2024"
