"""
User-Agent Classification

Best-effort mapping of a User-Agent header to a (browser, operating system)
pair for visit analytics, built on the user-agents library (ua-parser rules).

Design Decisions:
- Never raises: anything unrecognised is reported as "Unknown"
- Only the family name is kept, versions are dropped so buckets stay small
- Mobile variants are folded into their desktop family ("Mobile Safari" is
  counted as "Safari"), crawlers are counted as "Bot"
"""

import logging
from typing import NamedTuple, Optional

from user_agents import parse

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
BOT = "Bot"

MAX_USER_AGENT_LENGTH = 1024

# ua-parser reports these for unrecognised input
_UNRECOGNISED = {"", "Other"}

BROWSER_ALIASES = {
    "Mobile Safari": "Safari",
    "Mobile Safari UI/WKWebView": "Safari",
    "Chrome Mobile": "Chrome",
    "Chrome Mobile iOS": "Chrome",
    "Chrome Mobile WebView": "Chrome",
    "Firefox Mobile": "Firefox",
    "Firefox iOS": "Firefox",
    "Edge Mobile": "Edge",
    "Opera Mobile": "Opera",
    "IE": "Internet Explorer",
}

OS_ALIASES = {
    "Mac OS X": "macOS",
}


class UserAgentInfo(NamedTuple):
    """Browser and operating system names derived from a User-Agent."""
    browser_name: str
    os_name: str


def _family(family: Optional[str], aliases: dict[str, str]) -> str:
    if not family or family in _UNRECOGNISED:
        return UNKNOWN
    return aliases.get(family, family)


def classify_user_agent(user_agent: Optional[str]) -> UserAgentInfo:
    """
    Classify a User-Agent string.

    Args:
        user_agent: Raw User-Agent header value (may be None or garbage)

    Returns:
        UserAgentInfo with browser and OS family names, "Unknown" where
        the header does not identify them
    """
    if not user_agent or not isinstance(user_agent, str):
        return UserAgentInfo(UNKNOWN, UNKNOWN)

    user_agent = user_agent.strip()[:MAX_USER_AGENT_LENGTH]
    if not user_agent:
        return UserAgentInfo(UNKNOWN, UNKNOWN)

    try:
        parsed = parse(user_agent)
    except Exception as e:
        logger.debug(f"Unparseable User-Agent {user_agent[:64]!r}: {e}")
        return UserAgentInfo(UNKNOWN, UNKNOWN)

    browser_name = BOT if parsed.is_bot else _family(parsed.browser.family, BROWSER_ALIASES)
    return UserAgentInfo(
        browser_name=browser_name,
        os_name=_family(parsed.os.family, OS_ALIASES),
    )
