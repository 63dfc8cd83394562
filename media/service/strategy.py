"""
Source URL checks.

Decides whether a URL is something the download commands accept.
"""

from urllib.parse import urlparse

from media.service.config import get_allowed_hosts


def is_supported_url(url):
    """
    Determine whether a URL points at a supported video host.

    Args:
        url: The source URL as typed by the user

    Returns:
        bool: True for http(s) URLs whose host is an allowed host or a subdomain of one
    """
    if not url:
        return False

    parsed = urlparse(url.strip())
    if parsed.scheme not in ('http', 'https'):
        return False

    host = (parsed.hostname or '').lower()
    if not host:
        return False

    for allowed in get_allowed_hosts():
        allowed = allowed.lower()
        if host == allowed or host.endswith(f'.{allowed}'):
            return True

    return False
