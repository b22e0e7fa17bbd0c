"""
Tests for toolkit.helpers.
"""

import pytest

from toolkit.helpers import get_initials, mask_email, parse_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
)
EDGE_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36 Edg/124.0.2478.51"
)
FIREFOX_ANDROID = "Mozilla/5.0 (Android 14; Mobile; rv:125.0) Gecko/125.0 Firefox/125.0"


class TestGetInitials:
    @pytest.mark.parametrize(
        "name,email,expected",
        [
            ("Ana Maria Souza", None, "AS"),
            ("ana", None, "AN"),
            ("  ", "john.doe@example.com", "JD"),
            ("", "bruno@example.com", "B"),
            (None, None, "?"),
        ],
    )
    def test_initials(self, name, email, expected):
        assert get_initials(name, email) == expected


class TestMaskEmail:
    def test_masks_local_part(self):
        assert mask_email("john.doe@example.com") == "j***@example.com"

    def test_single_character_local_part(self):
        assert mask_email("a@example.com") == "***@example.com"

    @pytest.mark.parametrize("value", ["", "not-an-email"])
    def test_invalid(self, value):
        assert mask_email(value) == "***"


class TestParseUserAgent:
    def test_empty(self):
        assert parse_user_agent("") == {
            "device_type": "unknown",
            "browser": "unknown",
            "os": "unknown",
            "raw": "",
        }

    @pytest.mark.parametrize(
        "user_agent,device_type,browser,os",
        [
            (CHROME_WINDOWS, "desktop", "Chrome", "Windows"),
            (SAFARI_IPHONE, "mobile", "Safari", "iOS"),
            (EDGE_WINDOWS, "desktop", "Edge", "Windows"),
            (FIREFOX_ANDROID, "mobile", "Firefox", "Android"),
        ],
    )
    def test_known_agents(self, user_agent, device_type, browser, os):
        info = parse_user_agent(user_agent)

        assert info["device_type"] == device_type
        assert info["browser"] == browser
        assert info["os"] == os
        assert info["raw"] == user_agent
