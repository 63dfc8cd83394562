"""
Configuration adapter for media processing settings.

Centralizes access to Django settings and environment variables,
ensuring consistent configuration across the CLI and the chat bot.
"""

from pathlib import Path

from django.conf import settings

from media.service.constants import MediaKind


def get_cache_dir(kind):
    """
    Get the cache directory for a media kind.

    Args:
        kind: MediaKind or 'audio'/'video'

    Returns:
        Path: directory holding artifacts of that kind
    """
    kind = MediaKind(kind)
    if kind == MediaKind.AUDIO:
        return Path(settings.CHATCAST_AUDIO_DIR)
    return Path(settings.CHATCAST_VIDEO_DIR)


def get_ffmpeg_args_for_type(kind):
    """
    Get ffmpeg arguments for the specified media kind.

    Args:
        kind: 'audio' or 'video'

    Returns:
        str: ffmpeg command-line arguments
    """
    if kind == MediaKind.AUDIO:
        return settings.CHATCAST_FFMPEG_ARGS_AUDIO
    elif kind == MediaKind.VIDEO:
        return settings.CHATCAST_FFMPEG_ARGS_VIDEO
    else:
        return ''


def get_ffmpeg_timeout():
    """Seconds before a running ffmpeg is considered stalled"""
    return settings.CHATCAST_FFMPEG_TIMEOUT


def get_max_height():
    """Resolution cap used when selecting download formats"""
    return settings.CHATCAST_MAX_HEIGHT


def get_max_send_bytes():
    """
    Largest file that is sent directly to a chat.

    Bigger files are uploaded to the file host and sent as a link.
    """
    return int(settings.CHATCAST_MAX_SEND_MB * 1024 * 1024)


def parse_extractor_args(args_string):
    """
    Parse yt-dlp extractor arguments into the dict form used by the Python API.

    Args:
        args_string: String in yt-dlp CLI form, e.g. 'youtube:player_client=android'.
            Several extractors can be separated with whitespace, several
            arguments for one extractor with ';'.

    Returns:
        dict: e.g. {'youtube': {'player_client': ['android']}}

    Example:
        >>> parse_extractor_args('youtube:player_client=android,web')
        {'youtube': {'player_client': ['android', 'web']}}
    """
    result = {}
    if not args_string:
        return result

    for chunk in args_string.split():
        if ':' not in chunk:
            continue
        extractor, _, params = chunk.partition(':')
        extractor_opts = result.setdefault(extractor.strip().lower(), {})
        for param in params.split(';'):
            if '=' not in param:
                continue
            key, _, values = param.partition('=')
            extractor_opts[key.strip()] = [v.strip() for v in values.split(',') if v.strip()]

    return result


def get_ytdlp_base_opts():
    """
    Get yt-dlp options shared by downloads, metadata lookups and searches.

    Returns:
        dict: yt-dlp options
    """
    opts = {
        'socket_timeout': settings.CHATCAST_YTDLP_SOCKET_TIMEOUT,
        'retries': settings.CHATCAST_YTDLP_RETRIES,
        'fragment_retries': settings.CHATCAST_YTDLP_RETRIES,
        'noplaylist': True,
    }

    extractor_args = parse_extractor_args(settings.CHATCAST_YTDLP_EXTRACTOR_ARGS)
    if extractor_args:
        opts['extractor_args'] = extractor_args

    # Proxy is needed on cloud VMs where YouTube blocks requests
    if settings.CHATCAST_YTDLP_PROXY:
        opts['proxy'] = settings.CHATCAST_YTDLP_PROXY

    return opts


def get_allowed_hosts():
    """Hosts accepted by the download commands"""
    return list(settings.CHATCAST_ALLOWED_HOSTS)


def get_search_results_limit():
    """Number of results returned by a keyword search"""
    return settings.CHATCAST_SEARCH_RESULTS
