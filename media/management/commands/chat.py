"""
Django management command that runs the bot against the terminal.

Each input line is treated as a chat message. Commands run concurrently, so
a long download does not hold up a '!ping' typed after it.
"""

import asyncio
import sys
from pathlib import Path

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.management.base import BaseCommand

from media.chat.channel import Channel
from media.chat.dispatcher import Dispatcher
from media.service.cache import build_media_cache
from media.utils import write_log


class ConsoleChannel(Channel):
    """Writes replies to a management command's output stream."""

    def __init__(self, stdout):
        self.stdout = stdout

    async def send_text(self, text):
        self.stdout.write(text)
        self.stdout.write('')

    async def send_file(self, path, mime_type, filename):
        size = Path(path).stat().st_size
        self.stdout.write(f'📎 {filename} ({mime_type}, {size:,} bytes): {path}')
        self.stdout.write('')


class Command(BaseCommand):
    help = 'Run the chat bot on stdin/stdout (one command per line, e.g. "!ytdl4 <url>")'
    stealth_options = ('stdin',)

    def add_arguments(self, parser):
        parser.add_argument('--verbose', action='store_true', help='Echo log lines to stderr')

    def handle(self, *args, **options):
        self.stdin = options.get('stdin', sys.stdin)
        verbose = options['verbose']
        log_path = settings.CHATCAST_LOG_PATH

        def logger(message):
            write_log(log_path, message)
            if verbose:
                self.stderr.write(message)

        cache = build_media_cache(logger=logger)
        dispatcher = Dispatcher(cache, logger=logger)
        channel = ConsoleChannel(self.stdout)

        logger('Bot is ready!')
        asyncio.run(self.run(dispatcher, channel, logger))

    async def run(self, dispatcher, channel, logger):
        pending = set()

        while True:
            line = await sync_to_async(self.stdin.readline, thread_sensitive=False)()
            if not line:
                break
            line = line.strip()
            if not line:
                continue

            task = asyncio.create_task(self.handle_message(dispatcher, channel, line, logger))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if pending:
            await asyncio.gather(*pending)

    async def handle_message(self, dispatcher, channel, text, logger):
        try:
            handled = await dispatcher.dispatch(text, channel)
        except Exception as e:
            logger(f'Error handling {text!r}: {e}')
            await channel.send_text(f'❌ Error: {e}')
            return

        if not handled:
            logger(f'Ignored message: {text}')
