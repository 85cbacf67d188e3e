"""User-agent inspection: bot filtering and coarse device/browser/OS classification.

Both functions are pure substring matchers over the lower-cased user-agent.
Order matters in the browser and OS tables: Chromium browsers also carry a
``safari`` token, and Edge carries ``chrome``, so the first match wins.
"""

from typing import NamedTuple

BOT_PATTERNS: tuple[str, ...] = (
    # Search engines
    "googlebot", "bingbot", "slurp", "duckduckbot", "baiduspider",
    "yandexbot", "sogou", "exabot",
    # Link unfurlers and archivers
    "facebot", "facebookexternalhit", "ia_archiver", "linkedinbot",
    "twitterbot", "pinterest",
    # SEO and AI crawlers
    "semrushbot", "ahrefsbot", "mj12bot", "dotbot", "petalbot",
    "bytespider", "gptbot", "claudebot", "anthropic",
    # Generic tokens and automation tooling
    "crawler", "spider", "bot",
    "headless", "phantom", "selenium", "puppeteer", "playwright",
)

MOBILE_PATTERNS: tuple[str, ...] = (
    "mobile", "android", "iphone", "ipad", "ipod", "blackberry", "windows phone",
)
TABLET_PATTERNS: tuple[str, ...] = ("ipad", "tablet")

BROWSER_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Firefox", ("firefox",)),
    ("Edge", ("edg",)),
    ("Chrome", ("chrome",)),
    ("Safari", ("safari",)),
    ("Opera", ("opera", "opr")),
)

OS_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Windows", ("windows",)),
    ("macOS", ("mac",)),
    ("Linux", ("linux",)),
    ("Android", ("android",)),
    ("iOS", ("iphone", "ipad")),
)

UNKNOWN = "Unknown"


class UserAgentInfo(NamedTuple):
    device: str
    browser: str
    os: str


def is_bot(user_agent: str) -> bool:
    """Return True if the user-agent matches any known bot token."""
    ua = user_agent.lower()
    return any(pattern in ua for pattern in BOT_PATTERNS)


def _first_match(ua: str, table: tuple[tuple[str, tuple[str, ...]], ...]) -> str:
    for label, tokens in table:
        if any(token in ua for token in tokens):
            return label
    return UNKNOWN


def classify(user_agent: str) -> UserAgentInfo:
    """Extract (device, browser, os) from a user-agent string.

    Device defaults to ``desktop``; any mobile token makes it ``mobile``
    unless a tablet token is also present.
    """
    ua = user_agent.lower()

    device = "desktop"
    if any(token in ua for token in MOBILE_PATTERNS):
        device = "tablet" if any(token in ua for token in TABLET_PATTERNS) else "mobile"

    return UserAgentInfo(
        device=device,
        browser=_first_match(ua, BROWSER_PATTERNS),
        os=_first_match(ua, OS_PATTERNS),
    )
