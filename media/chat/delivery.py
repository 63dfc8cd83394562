"""
Reply delivery for media files.

Small files are sent through the channel; files over the size limit are
uploaded to the file host and sent as a link.
"""

import asyncio
from pathlib import Path

from asgiref.sync import sync_to_async

from media.chat.channel import ChannelClosed
from media.service.config import get_max_send_bytes
from media.service.constants import MIME_TYPES
from media.service.errors import UploadError
from media.service.upload import upload_to_gofile
from media.utils import format_size_mb

SEND_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 2


def guess_mime_type(path, default='application/octet-stream'):
    return MIME_TYPES.get(Path(path).suffix.lower(), default)


async def send_with_retry(channel, path, mime_type, filename, attempts=SEND_ATTEMPTS,
                          delay=RETRY_DELAY_SECONDS, logger=None):
    """
    Send a file, retrying with a growing delay.

    ChannelClosed is re-raised at once since the session will not recover.
    The last failure is re-raised when all attempts fail.
    """

    def log(message):
        if logger:
            logger(message)

    for attempt in range(1, attempts + 1):
        try:
            log(f'Sending media attempt {attempt}/{attempts}...')
            await channel.send_file(path, mime_type, filename)
            return
        except ChannelClosed:
            log('Channel closed, not retrying')
            raise
        except Exception as e:
            log(f'Send attempt {attempt} failed: {e}')
            if attempt == attempts:
                raise
            wait = delay * attempt
            log(f'Waiting {wait}s before retry...')
            await asyncio.sleep(wait)


async def deliver_file(channel, path, label, cached=False, kind_hint=None, logger=None,
                       retry_hint=None):
    """
    Send a media file, or a file-host link when it is too large.

    Args:
        channel: Channel to reply to
        path: Local file to deliver
        label: Human-readable name used in the messages
        cached: Whether the file came from the cache (only changes wording)
        kind_hint: MediaKind used for the default MIME type
        logger: Optional callable(str) for logging
        retry_hint: Extra text appended when the upload fails

    Returns:
        bool: True if the file or a link was delivered
    """
    path = Path(path)
    size = path.stat().st_size
    size_mb = format_size_mb(size)
    origin = 'From cache' if cached else 'Download complete'

    if size > get_max_send_bytes():
        await channel.send_text(
            f'✅ {origin}! ({size_mb} MB)\n'
            f'📤 File is large - uploading to Gofile...\n⏳ This may take a moment.'
        )
        try:
            link = await sync_to_async(upload_to_gofile, thread_sensitive=False)(
                path, path.name, logger=logger
            )
        except UploadError as e:
            message = f'❌ Upload failed: {e}\n\n📁 File is saved locally at:\n{path}'
            if retry_hint:
                message += f'\n{retry_hint}'
            await channel.send_text(message)
            return False

        await channel.send_text(
            f'✅ *Upload complete!*\n\n'
            f'📁 {label}\n'
            f'📊 Size: {size_mb} MB\n\n'
            f'🔗 Download: {link}\n\n'
            f'💡 Link expires after some time of inactivity.'
        )
        return True

    await channel.send_text(f'✅ {origin}! ({format_size_mb(size, 2)} MB)\n📤 Sending {path.name}...')

    default_mime = kind_hint.mime_type if kind_hint else 'application/octet-stream'
    await send_with_retry(
        channel, path, guess_mime_type(path, default_mime), path.name, logger=logger
    )
    return True
