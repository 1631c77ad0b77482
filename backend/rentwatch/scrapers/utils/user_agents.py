"""Browser-like request headers for portal page fetches."""

from typing import Dict

DESKTOP_CHROME_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

# Sent on every page request; portals block obviously scripted clients
DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": DESKTOP_CHROME_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "ja,en-US;q=0.7,en;q=0.3",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
}


def get_browser_headers(user_agent: str = DESKTOP_CHROME_USER_AGENT) -> Dict[str, str]:
    """Return a fresh copy of the default header set.

    Args:
        user_agent: User-Agent to send instead of the default desktop Chrome

    Returns:
        Header dictionary safe to mutate
    """
    headers = dict(DEFAULT_HEADERS)
    headers["User-Agent"] = user_agent
    return headers
