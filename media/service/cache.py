"""
Cache and transcode manager.

Keeps one directory per media kind, holding at most one finished file per
sanitized title. A request is served from that directory when possible;
otherwise the source is downloaded, converted and stored under its canonical
name. The directory listing is the only index.

Concurrent requests for the same title are serialized by a per-title lock
within one process. Separate processes sharing a cache directory are not
coordinated and may both download the same title.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from asgiref.sync import sync_to_async

from media.service.config import get_cache_dir
from media.service.constants import MediaKind, is_partial_name
from media.service.download import YtDlpAcquirer, select_quality_profile
from media.service.errors import EmptyFileError, NotFoundError, TranscodeError
from media.service.process import FfmpegTranscoder, find_ffmpeg, needs_transcode
from media.utils import sanitize_title


@dataclass
class Artifact:
    """A completed, valid cached media file"""

    title: str
    kind: MediaKind
    path: Path
    size_bytes: int
    modified: float = 0.0


def _file_size(path):
    try:
        return path.stat().st_size
    except FileNotFoundError:
        return None


class MediaCache:
    """Serves media files from the cache, downloading and converting on a miss."""

    def __init__(self, video_dir, audio_dir, acquirer, transcoder=None, logger=None):
        """
        Args:
            video_dir: Directory for VIDEO artifacts
            audio_dir: Directory for AUDIO artifacts
            acquirer: Object with fetch(url, output_base, quality_profile)
            transcoder: Object with convert(input_path, output_path, kind), or
                None when no transcoder is available
            logger: Optional callable(str) for logging
        """
        self.dirs = {
            MediaKind.VIDEO: Path(video_dir),
            MediaKind.AUDIO: Path(audio_dir),
        }
        self.acquirer = acquirer
        self.transcoder = transcoder
        self.logger = logger
        # (kind, title) -> [lock, number of requests holding or awaiting it]
        self._locks = {}

    def log(self, message):
        if self.logger:
            self.logger(message)

    @property
    def has_transcoder(self):
        return self.transcoder is not None

    def cache_dir(self, kind):
        directory = self.dirs[MediaKind(kind)]
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def artifact_path(self, raw_title, kind):
        kind = MediaKind(kind)
        return self.cache_dir(kind) / f'{sanitize_title(raw_title)}{kind.extension}'

    def is_cached(self, raw_title, kind):
        """Return True if a valid artifact exists for the title"""
        size = _file_size(self.artifact_path(raw_title, kind))
        return bool(size)

    def _title_files(self, title, kind):
        """Files in the kind's directory that belong to a title"""
        prefix = f'{title}.'
        return [
            f for f in self.cache_dir(kind).iterdir()
            if f.is_file() and f.name.startswith(prefix)
        ]

    def cleanup_partials(self, title, kind):
        """
        Delete partial downloads for a title.

        Args:
            title: Sanitized title
            kind: Media kind

        Returns:
            list of deleted paths
        """
        removed = []
        for f in self._title_files(title, kind):
            if is_partial_name(f.name):
                f.unlink(missing_ok=True)
                self.log(f'Cleaned up partial file: {f.name}')
                removed.append(f)
        return removed

    def list_artifacts(self, kind) -> List[Artifact]:
        """
        List valid artifacts of a kind, newest first.

        Args:
            kind: Media kind

        Returns:
            list of Artifact
        """
        kind = MediaKind(kind)
        artifacts = []
        for f in self.cache_dir(kind).iterdir():
            if not f.is_file() or f.suffix.lower() != kind.extension or is_partial_name(f.name):
                continue
            stat = f.stat()
            if stat.st_size == 0:
                continue
            artifacts.append(
                Artifact(
                    title=f.stem,
                    kind=kind,
                    path=f,
                    size_bytes=stat.st_size,
                    modified=stat.st_mtime,
                )
            )
        artifacts.sort(key=lambda a: a.modified, reverse=True)
        return artifacts

    def get_artifact(self, kind, number):
        """
        Get an artifact by its 1-based position in list_artifacts.

        Raises:
            IndexError: If number is out of range
        """
        artifacts = self.list_artifacts(kind)
        if number is None or number < 1 or number > len(artifacts):
            raise IndexError(f'Invalid number. Valid range: 1-{len(artifacts)}')
        return artifacts[number - 1]

    def sweep(self, kind, dry_run=False):
        """
        Delete every partial and zero-byte file in a kind's directory.

        Args:
            kind: Media kind
            dry_run: If True, only report what would be deleted

        Returns:
            list of paths deleted (or that would be deleted)
        """
        doomed = []
        for f in self.cache_dir(kind).iterdir():
            if not f.is_file():
                continue
            if is_partial_name(f.name) or f.stat().st_size == 0:
                doomed.append(f)

        if not dry_run:
            for f in doomed:
                f.unlink(missing_ok=True)
                self.log(f'Removed: {f.name}')

        return doomed

    @asynccontextmanager
    async def _title_lock(self, title, kind):
        key = (kind, title)
        entry = self._locks.setdefault(key, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    async def _convert(self, source, target, kind):
        await sync_to_async(self.transcoder.convert, thread_sensitive=False)(source, target, kind)
        # The converted file supersedes the download it was made from
        if source != target:
            source.unlink(missing_ok=True)
        return target

    async def resolve(self, source_url, raw_title, kind):
        """
        Return a local file for the source, downloading and converting if needed.

        Args:
            source_url: Fetchable media URL
            raw_title: Human-readable title, usually from metadata
            kind: MediaKind or 'audio'/'video'

        Returns:
            Path: the canonical artifact, or the unconverted download when
            conversion is impossible

        Raises:
            AcquireError: If the download fails
            NotFoundError: If the download produced no file
            EmptyFileError: If the download produced an empty file
            TranscodeError: If conversion failed and no usable file is left
        """
        kind = MediaKind(kind)
        title = sanitize_title(raw_title)

        async with self._title_lock(title, kind):
            return await self._resolve(source_url, title, kind)

    async def _resolve(self, source_url, title, kind):
        target_dir = self.cache_dir(kind)
        target = target_dir / f'{title}{kind.extension}'

        # Already converted
        size = _file_size(target)
        if size:
            self.log(f'Found cached {kind.extension.lstrip(".").upper()}: {target} ({size} bytes)')
            return target
        if size == 0:
            self.log(f'Removing empty cached file: {target.name}')
            target.unlink(missing_ok=True)

        # Original from an earlier run that was never converted
        originals = [
            f for f in self._title_files(title, kind)
            if not is_partial_name(f.name) and needs_transcode(f, kind)
        ]
        for original in originals:
            size = _file_size(original)
            if size is None:
                continue
            if size == 0:
                self.log(f'Removing empty cached original: {original.name}')
                original.unlink(missing_ok=True)
                continue

            self.log(f'Found cached original: {original}')
            if not self.has_transcoder:
                return original
            try:
                return await self._convert(original, target, kind)
            except TranscodeError as e:
                self.log(f'Conversion failed: {e}')
                return original

        # Leftovers from a crashed attempt
        self.cleanup_partials(title, kind)

        self.log(f'Starting download for: {title}')
        try:
            profile = select_quality_profile(self.has_transcoder)
            self.log(f'Using format: {profile} (transcoder: {"yes" if self.has_transcoder else "no"})')

            await sync_to_async(self.acquirer.fetch, thread_sensitive=False)(
                source_url, target_dir / title, profile
            )

            downloaded = self._newest_download(title, kind)
            self.log(f'Downloaded file: {downloaded.name}')

            if not needs_transcode(downloaded, kind):
                if downloaded != target:
                    downloaded.replace(target)
                return target

            if not self.has_transcoder:
                self.log('No transcoder available, keeping original format')
                return downloaded

            try:
                return await self._convert(downloaded, target, kind)
            except TranscodeError as e:
                if _file_size(downloaded):
                    self.log(f'Conversion failed, using original: {e}')
                    return downloaded
                raise
        finally:
            self.cleanup_partials(title, kind)

    def _newest_download(self, title, kind):
        candidates = [
            f for f in self._title_files(title, kind)
            if not is_partial_name(f.name)
        ]
        if not candidates:
            raise NotFoundError(f'File not created for {title}')

        newest = max(candidates, key=lambda f: f.stat().st_mtime)
        size = newest.stat().st_size
        self.log(f'File size: {size} bytes')
        if size == 0:
            raise EmptyFileError(f'Downloaded file is empty: {newest.name}')
        return newest


def build_media_cache(logger=None, transcoder_path=None) -> MediaCache:
    """
    Assemble a MediaCache from settings.

    Probes for ffmpeg once; when it is missing the cache is built without a
    transcoder and serves downloads in their original format.

    Args:
        logger: Optional callable(str) for logging
        transcoder_path: Use this ffmpeg instead of probing

    Returns:
        MediaCache
    """
    ffmpeg_path: Optional[str] = transcoder_path or find_ffmpeg()

    if ffmpeg_path:
        if logger:
            logger(f'FFmpeg found at: {ffmpeg_path}')
        transcoder = FfmpegTranscoder(ffmpeg_path, logger=logger)
    else:
        if logger:
            logger('FFmpeg not found, downloads will keep their original format')
        transcoder = None

    return MediaCache(
        video_dir=get_cache_dir(MediaKind.VIDEO),
        audio_dir=get_cache_dir(MediaKind.AUDIO),
        acquirer=YtDlpAcquirer(logger=logger, ffmpeg_location=ffmpeg_path),
        transcoder=transcoder,
        logger=logger,
    )
