"""
Download service for media files.

Wraps yt-dlp for downloads, metadata lookups and keyword searches.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import yt_dlp

from media.service.config import get_max_height, get_ytdlp_base_opts, get_search_results_limit
from media.service.errors import AcquireError


@dataclass
class MediaMetadata:
    """Metadata returned by a lookup, without downloading"""

    title: Optional[str] = None
    duration_seconds: Optional[int] = None
    uploader: Optional[str] = None
    webpage_url: Optional[str] = None


@dataclass
class SearchResult:
    """A single keyword search hit"""

    title: str
    url: str
    channel: Optional[str] = None
    duration_seconds: Optional[int] = None
    is_live: bool = False


def select_quality_profile(has_transcoder, max_height=None):
    """
    Choose the yt-dlp format selector for a download.

    With a transcoder available, separate best video and audio streams are
    requested and muxed afterwards. Without one, only pre-muxed streams are
    usable since nothing can merge them.

    Args:
        has_transcoder: Whether ffmpeg is available
        max_height: Resolution cap (default from settings)

    Returns:
        str: yt-dlp format selector
    """
    if max_height is None:
        max_height = get_max_height()

    if has_transcoder:
        return f'bv[height<=?{max_height}]+ba/b[height<=?{max_height}]'
    return f'b[height<=?{max_height}]'


class YtDlpAcquirer:
    """Fetches raw media files with yt-dlp."""

    def __init__(self, logger=None, ffmpeg_location=None):
        """
        Args:
            logger: Optional callable(str) for logging
            ffmpeg_location: Path to ffmpeg, passed to yt-dlp for stream merging
        """
        self.logger = logger
        self.ffmpeg_location = ffmpeg_location

    def log(self, message):
        if self.logger:
            self.logger(message)

    def _progress_hook(self):
        # Progress is advisory: log it in 10% steps and nothing else
        last_bucket = {'value': -1}

        def hook(d):
            if d.get('status') == 'finished':
                self.log(f'Download finished: {Path(d.get("filename", "")).name}')
                return
            if d.get('status') != 'downloading':
                return
            total = d.get('total_bytes') or d.get('total_bytes_estimate')
            downloaded = d.get('downloaded_bytes')
            if not total or downloaded is None:
                return
            percent = int(downloaded * 100 / total)
            bucket = percent // 10
            if bucket != last_bucket['value']:
                last_bucket['value'] = bucket
                self.log(f'Download progress: {percent}%')

        return hook

    def fetch(self, url, output_base, quality_profile):
        """
        Download a media file.

        Args:
            url: Source URL
            output_base: Output path without extension; yt-dlp appends the
                extension of whatever it produces
            quality_profile: yt-dlp format selector (see select_quality_profile)

        Raises:
            AcquireError: If the URL is invalid, the extractor fails or no stream matches
        """
        output_base = Path(output_base)
        output_base.parent.mkdir(parents=True, exist_ok=True)

        ydl_opts = get_ytdlp_base_opts()
        ydl_opts.update({
            'format': quality_profile,
            'outtmpl': f'{output_base}.%(ext)s',
            'progress_hooks': [self._progress_hook()],
            'quiet': True,
            'no_warnings': True,
        })
        if self.ffmpeg_location:
            ydl_opts['ffmpeg_location'] = str(self.ffmpeg_location)

        self.log(f'Downloading with yt-dlp: {url}')
        self.log(f'Format: {quality_profile}')

        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                ydl.download([url.strip()])
        except Exception as e:
            self.log(f'yt-dlp error: {e}')
            raise AcquireError(f'Download failed: {e}') from e

        self.log('Download completed')


def fetch_metadata(url, logger=None):
    """
    Look up metadata for a URL without downloading it.

    Args:
        url: Source URL
        logger: Optional callable(str) for logging

    Returns:
        MediaMetadata

    Raises:
        AcquireError: If the lookup fails
    """

    def log(message):
        if logger:
            logger(message)

    ydl_opts = get_ytdlp_base_opts()
    ydl_opts.update({'quiet': True, 'no_warnings': True, 'skip_download': True})

    log(f'Fetching metadata: {url}')

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(url.strip(), download=False)
    except Exception as e:
        log(f'Metadata lookup failed: {e}')
        raise AcquireError(f'Failed to get video information: {e}') from e

    if not info:
        raise AcquireError('Failed to get video information: no info returned')

    duration = info.get('duration')
    metadata = MediaMetadata(
        title=info.get('title'),
        duration_seconds=int(duration) if duration is not None else None,
        uploader=info.get('uploader') or info.get('channel'),
        webpage_url=info.get('webpage_url') or url,
    )
    log(f'Title: {metadata.title}')
    return metadata


def search_videos(query, limit=None, logger=None) -> List[SearchResult]:
    """
    Search the video host by keyword.

    Args:
        query: Search terms
        limit: Maximum number of results (default from settings)
        logger: Optional callable(str) for logging

    Returns:
        list of SearchResult, possibly empty

    Raises:
        AcquireError: If the search itself fails
    """

    def log(message):
        if logger:
            logger(message)

    if limit is None:
        limit = get_search_results_limit()

    ydl_opts = get_ytdlp_base_opts()
    ydl_opts.update({
        'quiet': True,
        'no_warnings': True,
        'skip_download': True,
        'extract_flat': 'in_playlist',
    })
    # A search is a playlist of results
    ydl_opts.pop('noplaylist', None)

    log(f'Searching: {query}')

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(f'ytsearch{limit}:{query}', download=False)
    except Exception as e:
        raise AcquireError(f'Search failed: {e}') from e

    results = []
    for entry in (info or {}).get('entries') or []:
        if not entry:
            continue
        video_id = entry.get('id')
        url = entry.get('webpage_url') or entry.get('url')
        if video_id and not (url or '').startswith('http'):
            url = f'https://www.youtube.com/watch?v={video_id}'
        if not url:
            continue
        duration = entry.get('duration')
        results.append(
            SearchResult(
                title=entry.get('title') or 'No title',
                url=url,
                channel=entry.get('channel') or entry.get('uploader'),
                duration_seconds=int(duration) if duration is not None else None,
                is_live=entry.get('live_status') == 'is_live',
            )
        )

    log(f'Search returned {len(results)} results')
    return results
