"""Classify video URLs into source platforms."""

from __future__ import annotations

from typing import Optional

from summary_worker.core.constants import Platform

# Checked in order; the first matching host pattern wins.
HOST_PATTERNS: tuple[tuple[Platform, tuple[str, ...]], ...] = (
    (Platform.INSTAGRAM, ("instagram.com",)),
    (Platform.TIKTOK, ("tiktok.com",)),
    (Platform.FACEBOOK, ("facebook.com", "fb.watch", "fb.com")),
    (Platform.YOUTUBE, ("youtube.com", "youtu.be")),
)


def detect_platform(url: Optional[str]) -> Platform:
    lowered = (url or "").lower()
    for platform, patterns in HOST_PATTERNS:
        if any(pattern in lowered for pattern in patterns):
            return platform
    return Platform.UNKNOWN


def resolve_platform(url: Optional[str], hint: Optional[str] = None) -> Platform:
    """Detect the platform from ``url``, using ``hint`` only when the URL is not recognised."""
    detected = detect_platform(url)
    if detected != Platform.UNKNOWN:
        return detected
    raw = str(hint or "").strip().lower()
    for platform in Platform:
        if platform.value == raw:
            return platform
    return Platform.UNKNOWN
