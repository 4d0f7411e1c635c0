from __future__ import annotations

import pytest

from summary_worker.core.constants import Platform
from summary_worker.services.platform import detect_platform, resolve_platform


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.instagram.com/reel/abc/", Platform.INSTAGRAM),
        ("https://www.TikTok.com/@chef/video/1", Platform.TIKTOK),
        ("https://fb.watch/xyz/", Platform.FACEBOOK),
        ("https://m.facebook.com/watch?v=1", Platform.FACEBOOK),
        ("https://youtu.be/dQw4w9WgXcQ", Platform.YOUTUBE),
        ("HTTPS://WWW.YOUTUBE.COM/shorts/abc", Platform.YOUTUBE),
        ("https://vimeo.com/123", Platform.UNKNOWN),
        ("", Platform.UNKNOWN),
        (None, Platform.UNKNOWN),
    ],
)
def test_detect_platform(url: str, expected: Platform) -> None:
    assert detect_platform(url) == expected


def test_resolve_platform_prefers_url_over_hint() -> None:
    assert resolve_platform("https://youtu.be/abc", "tiktok") == Platform.YOUTUBE


def test_resolve_platform_uses_hint_for_unrecognised_url() -> None:
    assert resolve_platform("https://cdn.example.com/v.mp4", " TikTok ") == Platform.TIKTOK
    assert resolve_platform("https://cdn.example.com/v.mp4", "myspace") == Platform.UNKNOWN
