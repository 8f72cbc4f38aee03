import base64
import re
from dataclasses import dataclass

from user_agents import parse

TABLET_PATTERN = re.compile(r"tablet|ipad|playbook|silk", re.IGNORECASE)
MOBILE_PATTERN = re.compile(r"mobile|iphone|ipod|android|blackberry|opera mini|iemobile", re.IGNORECASE)


@dataclass(frozen=True)
class ClientInfo:
    device_type: str
    os: str
    browser: str
    browser_version: str = "Unknown"
    platform: str = "Unknown"


def parse_device_type(user_agent: str) -> str:
    # tablet tokens win over mobile ones: Android tablets also carry "android"
    if TABLET_PATTERN.search(user_agent):
        return "tablet"
    if MOBILE_PATTERN.search(user_agent):
        return "mobile"
    return "desktop"


def parse_os(user_agent: str) -> str:
    ua = user_agent.lower()
    if "iphone" in ua or "ipad" in ua:
        return "iOS"
    if "android" in ua:
        return "Android"
    if "windows" in ua:
        return "Windows"
    if "mac" in ua:
        return "macOS"
    if "linux" in ua:
        return "Linux"
    return "Unknown"


def parse_browser(user_agent: str) -> str:
    ua = user_agent.lower()
    if "chrome" in ua and "edg" not in ua:
        return "Chrome"
    if "safari" in ua and "chrome" not in ua:
        return "Safari"
    if "firefox" in ua:
        return "Firefox"
    if "edg" in ua:
        return "Edge"
    if "opera" in ua or "opr" in ua:
        return "Opera"
    return "Unknown"


def classify(user_agent: str | None) -> ClientInfo:
    """Derive device/OS/browser categories from a raw User-Agent header.

    Never raises: anything unrecognised falls back to desktop / Unknown.
    """
    user_agent = user_agent or ""

    ua = parse(user_agent)
    browser_version = ua.browser.version_string or "Unknown"
    os_family = ua.os.family or "Unknown"
    platform = f"{os_family} {ua.os.version_string or ''}".strip()

    return ClientInfo(
        device_type=parse_device_type(user_agent),
        os=parse_os(user_agent),
        browser=parse_browser(user_agent),
        browser_version=browser_version,
        platform=platform,
    )


def visitor_fingerprint(ip: str, user_agent: str) -> str:
    """Coarse same-visitor marker. Not a security token."""
    raw = f"{ip}:{user_agent}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")[:32]
