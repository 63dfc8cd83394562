import os
import re
from datetime import datetime

TITLE_MAX_CHARS = 100

# Filesystems cap names at 255 bytes; leave room for the extension and
# download markers such as ".mp4.part-Frag123"
TITLE_MAX_BYTES = 200


def sanitize_title(title, max_chars=TITLE_MAX_CHARS):
    """
    Turn a human-readable title into a cache key usable as a filename.

    Characters outside word/space/hyphen are dropped, whitespace runs become
    underscores and the result is truncated to max_chars, then to
    TITLE_MAX_BYTES once encoded as UTF-8.

    Args:
        title: The raw title (usually from remote metadata)
        max_chars: Maximum number of characters

    Returns:
        A filename-safe string, never empty

    Example:
        >>> sanitize_title('My Clip!!')
        'My_Clip'
    """
    title = title or ''

    # Drop anything that is not a word character, whitespace or hyphen
    cleaned = re.sub(r'[^\w\s-]', '', title)

    # Collapse whitespace to underscores
    cleaned = re.sub(r'\s+', '_', cleaned.strip())

    cleaned = cleaned[:max_chars]
    cleaned = cleaned.encode('utf-8')[:TITLE_MAX_BYTES].decode('utf-8', 'ignore')

    return cleaned or 'video'


def format_size_mb(size_bytes, digits=1):
    """Format a byte count as megabytes, e.g. '3.4'"""
    return f'{size_bytes / 1024 / 1024:.{digits}f}'


def format_duration(seconds):
    """Format a duration as H:MM:SS or M:SS"""
    if seconds is None:
        return 'N/A'
    seconds = int(seconds)
    hours, remainder = divmod(seconds, 3600)
    mins, secs = divmod(remainder, 60)
    if hours:
        return f'{hours}:{mins:02d}:{secs:02d}'
    return f'{mins}:{secs:02d}'


def write_log(log_path, message):
    """Append message to log file"""
    if log_path:
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)
        with open(log_path, 'a') as f:
            timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
            f.write(f'[{timestamp}] {message}\n')
