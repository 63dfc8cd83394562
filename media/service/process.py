"""
Media processing and transcoding service.

Finds the ffmpeg binary and converts downloaded files into the canonical
format for their kind.
"""

import shutil
import subprocess
from pathlib import Path

from django.conf import settings

from media.service.config import get_ffmpeg_args_for_type, get_ffmpeg_timeout
from media.service.constants import MediaKind
from media.service.errors import TranscodeError

# How much of ffmpeg's stderr is kept on failure
STDERR_TAIL_CHARS = 500

FFMPEG_CANDIDATES = [
    '/usr/local/bin/ffmpeg',
    '/usr/bin/ffmpeg',
    '/opt/homebrew/bin/ffmpeg',
]


def find_ffmpeg():
    """
    Locate the ffmpeg binary.

    Checks the configured path first, then well-known install locations,
    then PATH.

    Returns:
        str | None: path to ffmpeg, or None if it is not installed
    """
    configured = settings.CHATCAST_FFMPEG_PATH
    if configured:
        if Path(configured).exists():
            return str(configured)
        found = shutil.which(configured)
        if found:
            return found

    for candidate in FFMPEG_CANDIDATES:
        if Path(candidate).exists():
            return candidate

    return shutil.which('ffmpeg')


def needs_transcode(file_path, kind):
    """
    Determine if a file needs transcoding.

    Args:
        file_path: Path to the downloaded file
        kind: 'audio' or 'video'

    Returns:
        bool: True if the extension differs from the kind's target extension
    """
    return Path(file_path).suffix.lower() != MediaKind(kind).extension


def temp_output_path(output_path):
    """Path ffmpeg writes to before the result is moved into place"""
    output_path = Path(output_path)
    return output_path.with_name(f'{output_path.stem}.temp{output_path.suffix}')


class FfmpegTranscoder:
    """Converts media files with ffmpeg."""

    def __init__(self, ffmpeg_path='ffmpeg', logger=None, timeout=None):
        """
        Args:
            ffmpeg_path: ffmpeg binary to run
            logger: Optional callable(str) for logging
            timeout: Seconds before ffmpeg is killed (default from settings)
        """
        self.ffmpeg_path = ffmpeg_path
        self.logger = logger
        self.timeout = timeout if timeout is not None else get_ffmpeg_timeout()

    def log(self, message):
        if self.logger:
            self.logger(message)

    def convert(self, input_path, output_path, kind):
        """
        Transcode a media file to the canonical format for its kind.

        VIDEO: H.264 + AAC with the moov atom first for progressive playback.
        AUDIO: video dropped, MP3 at 192 kbps / 44.1 kHz.

        Args:
            input_path: Path to input file
            output_path: Path for output file
            kind: 'audio' or 'video'

        Returns:
            Path: output_path

        Raises:
            TranscodeError: If ffmpeg cannot be run, times out or exits non-zero
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        working_path = temp_output_path(output_path)

        args_list = get_ffmpeg_args_for_type(kind).split()

        cmd = [
            self.ffmpeg_path,
            '-i', str(input_path),
        ] + args_list + [
            '-y',  # Overwrite output file
            str(working_path),
        ]

        self.log(f'Converting {input_path.name} to {output_path.suffix.lstrip(".").upper()}...')
        self.log(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            working_path.unlink(missing_ok=True)
            raise TranscodeError(f'ffmpeg timed out after {self.timeout}s') from e
        except OSError as e:
            working_path.unlink(missing_ok=True)
            raise TranscodeError(f'ffmpeg error: {e}') from e

        if result.returncode != 0:
            working_path.unlink(missing_ok=True)
            stderr_tail = (result.stderr or '')[-STDERR_TAIL_CHARS:]
            self.log(f'ffmpeg stderr: {stderr_tail}')
            raise TranscodeError(
                f'ffmpeg exited with code {result.returncode}: {stderr_tail}',
                returncode=result.returncode,
                stderr_tail=stderr_tail,
            )

        if not working_path.exists():
            raise TranscodeError(f'ffmpeg reported success but wrote no file: {working_path.name}')

        working_path.replace(output_path)

        file_size = output_path.stat().st_size
        self.log(f'Converted to {output_path.name} ({file_size} bytes)')

        return output_path
