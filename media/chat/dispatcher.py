"""
Command dispatcher.

Maps each parsed command variant to an async handler that replies on a channel.
"""

from asgiref.sync import sync_to_async

from media.chat.channel import ChannelClosed
from media.chat.delivery import deliver_file, send_with_retry, guess_mime_type
from media.chat.parser import (
    Download,
    Help,
    ListCache,
    Ping,
    Search,
    SendCached,
    parse_command,
)
from media.service.config import get_max_send_bytes
from media.service.constants import MediaKind
from media.service.download import fetch_metadata, search_videos
from media.service.errors import MediaError
from media.service.strategy import is_supported_url
from media.utils import format_duration, format_size_mb

HELP_TEXT = """🤖 *Bot Commands*

*YouTube*
!yt <query> - Search YouTube
!ytdl4 <url> - Download video as MP4
!ytdl3 <url> - Download audio as MP3

*Cache*
!cache4 - List cached MP4 videos
!cache3 - List cached MP3 files
!dl4 <#> - Send a cached video
!dl3 <#> - Send a cached MP3

*Other*
!ping - Check if bot is online
!help - Show this help message"""

# Per-kind wording: (emoji, noun, list command, send command)
KIND_LABELS = {
    MediaKind.VIDEO: ('📹', 'Video', '!cache4', '!dl4'),
    MediaKind.AUDIO: ('🎵', 'MP3', '!cache3', '!dl3'),
}

CRASH_HINT = '❌ Error: the chat session closed while sending the file.'

NAME_DISPLAY_CHARS = 40


class Dispatcher:
    """Parses chat messages and runs the matching handler."""

    def __init__(self, cache, logger=None):
        """
        Args:
            cache: MediaCache used for downloads and cache listings
            logger: Optional callable(str) for logging
        """
        self.cache = cache
        self.logger = logger
        self.handlers = {
            Ping: self.handle_ping,
            Help: self.handle_help,
            Search: self.handle_search,
            Download: self.handle_download,
            ListCache: self.handle_list_cache,
            SendCached: self.handle_send_cached,
        }

    def log(self, message):
        if self.logger:
            self.logger(message)

    async def dispatch(self, text, channel):
        """
        Handle one chat message.

        Args:
            text: Raw message body
            channel: Channel to reply to

        Returns:
            bool: True if the message was a known command
        """
        command = parse_command(text)
        handler = self.handlers.get(type(command))
        if handler is None:
            return False

        self.log(f'Command: {type(command).__name__} {command}')
        await handler(command, channel)
        return True

    async def handle_ping(self, command, channel):
        await channel.send_text('pong')
        await channel.send_text('Search terms: ' + ' '.join(command.args))

    async def handle_help(self, command, channel):
        await channel.send_text(HELP_TEXT)

    async def handle_search(self, command, channel):
        if not command.query:
            await channel.send_text('❌ Usage: !yt <search terms>')
            return

        try:
            results = await sync_to_async(search_videos, thread_sensitive=False)(
                command.query, logger=self.logger
            )
        except MediaError as e:
            await channel.send_text(f'❌ Error: {e}')
            return

        lines = []
        for index, result in enumerate(results, start=1):
            live = ' (Live)' if result.is_live else ''
            lines.append(f'Channel: {result.channel or "Unknown channel"}')
            lines.append(f'{index}. {result.title}{live}')
            lines.append(f'Length: {format_duration(result.duration_seconds)}')
            lines.append(f'URL: {result.url}')
            lines.append('')

        body = '\n'.join(lines) if lines else 'No results found.'
        await channel.send_text(f'YouTube Search Results for: {command.query}\n\n{body}')

    async def handle_download(self, command, channel):
        emoji, noun, list_command, send_command = KIND_LABELS[command.kind]
        url = (command.url or '').strip()

        if not is_supported_url(url):
            await channel.send_text(
                '❌ Please provide a valid YouTube URL.\n'
                f'Usage: !ytdl{"4" if command.kind == MediaKind.VIDEO else "3"} <youtube_url>'
            )
            return

        try:
            await channel.send_text('⏳ Fetching video information...')
            metadata = await sync_to_async(fetch_metadata, thread_sensitive=False)(
                url, logger=self.logger
            )
            raw_title = metadata.title or 'video'

            cached = self.cache.is_cached(raw_title, command.kind)
            if cached:
                await channel.send_text(f'{emoji} Found in cache: {raw_title}\n⚡ Sending immediately...')
            else:
                await channel.send_text(f'{emoji} Downloading: {raw_title}\n⏱️ This may take a while...')

            path = await self.cache.resolve(url, raw_title, command.kind)
            self.log(f'Download complete: {path}')

            sent_directly = path.stat().st_size <= get_max_send_bytes()
            delivered = await deliver_file(
                channel,
                path,
                raw_title,
                cached=cached,
                kind_hint=command.kind,
                logger=self.logger,
                retry_hint=f'Use {list_command} then {send_command} to retry.',
            )
            if delivered and sent_directly:
                await channel.send_text(f'✅ {noun} sent successfully!')
        except ChannelClosed:
            self.log('Channel closed while delivering')
            await _try_send(channel, f'{CRASH_HINT}\n💡 File was saved - use {list_command} then {send_command} to retry')
        except MediaError as e:
            self.log(f'Error downloading {url}: {e}')
            await channel.send_text(f'❌ Error: {e}')

    async def handle_list_cache(self, command, channel):
        emoji, noun, list_command, send_command = KIND_LABELS[command.kind]
        extension = command.kind.extension.lstrip('.').upper()
        artifacts = self.cache.list_artifacts(command.kind)

        if not artifacts:
            await channel.send_text(f'📁 {extension} cache is empty. Nothing downloaded yet.')
            return

        lines = [f'{emoji} *Cached {extension} Files*', '']
        for index, artifact in enumerate(artifacts, start=1):
            name = artifact.title[:NAME_DISPLAY_CHARS]
            ellipsis = '...' if len(artifact.title) > NAME_DISPLAY_CHARS else ''
            lines.append(f'*#{index}* - {name}{ellipsis} ({format_size_mb(artifact.size_bytes)} MB)')
        lines.append('')
        lines.append(f'💡 Use {send_command} <#> to send a cached file')

        await channel.send_text('\n'.join(lines))

    async def handle_send_cached(self, command, channel):
        emoji, noun, list_command, send_command = KIND_LABELS[command.kind]

        if command.number is None:
            await channel.send_text(
                f'❌ Please provide a valid number.\nUsage: {send_command} #1 or {send_command} 1'
            )
            return

        try:
            artifact = self.cache.get_artifact(command.kind, command.number)
        except IndexError:
            count = len(self.cache.list_artifacts(command.kind))
            await channel.send_text(
                f'❌ Invalid number. Use {list_command} to see available files (1-{count}).'
            )
            return

        try:
            if artifact.size_bytes > get_max_send_bytes():
                await deliver_file(
                    channel,
                    artifact.path,
                    artifact.path.name,
                    cached=True,
                    kind_hint=command.kind,
                    logger=self.logger,
                )
                return

            await channel.send_text(
                f'📤 Sending: {artifact.path.name} ({format_size_mb(artifact.size_bytes)} MB)...'
            )
            await send_with_retry(
                channel,
                artifact.path,
                guess_mime_type(artifact.path, command.kind.mime_type),
                artifact.path.name,
                logger=self.logger,
            )
            await channel.send_text(f'✅ {noun} sent successfully!')
        except ChannelClosed:
            await _try_send(channel, CRASH_HINT)


async def _try_send(channel, text):
    try:
        await channel.send_text(text)
    except ChannelClosed:
        pass
