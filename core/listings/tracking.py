"""
User-agent classification for listing analytics.
"""
from __future__ import annotations

EVENT_TYPES = ("view", "click", "contact", "share", "impression")


def device_type(user_agent: str | None) -> str:
    ua = (user_agent or "").lower()
    if "tablet" in ua or "ipad" in ua:
        return "tablet"
    if "mobile" in ua:
        return "mobile"
    return "desktop"


def browser_name(user_agent: str | None) -> str:
    ua = (user_agent or "").lower()
    # Order matters: Edge and Chrome both claim "chrome"/"safari" in their UA strings.
    if "edg" in ua:
        return "edge"
    if "chrome" in ua or "crios" in ua:
        return "chrome"
    if "firefox" in ua or "fxios" in ua:
        return "firefox"
    if "safari" in ua:
        return "safari"
    return "unknown"


__all__ = ["EVENT_TYPES", "device_type", "browser_name"]
