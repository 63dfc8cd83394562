"""
Django management command for fetching media into the cache.

Looks up the title of a URL, then downloads and converts it to MP4 (video)
or MP3 (audio) unless a finished file for that title is already cached.
"""

import json

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from media.service.cache import build_media_cache
from media.service.constants import MediaKind
from media.service.download import fetch_metadata
from media.service.errors import MediaError


class Command(BaseCommand):
    help = 'Fetch media from a URL into the cache and print the path of the result'

    def add_arguments(self, parser):
        parser.add_argument('url', type=str, help='URL of the media to fetch')
        parser.add_argument(
            '--type',
            type=str,
            default=MediaKind.VIDEO.value,
            choices=[k.value for k in MediaKind],
            help='Output kind (default: video)',
        )
        parser.add_argument(
            '--title',
            type=str,
            default=None,
            help='Use this title instead of looking it up',
        )
        parser.add_argument('--verbose', action='store_true', help='Enable verbose output')
        parser.add_argument('--json', action='store_true', help='Output result as JSON')

    def handle(self, *args, **options):
        url = options['url']
        kind = MediaKind(options['type'])
        verbose = options['verbose']
        output_json = options['json']

        def logger(message):
            if verbose:
                self.stderr.write(message)

        cache = build_media_cache(logger=logger)

        try:
            title = options['title']
            if not title:
                metadata = fetch_metadata(url, logger=logger)
                title = metadata.title or 'video'

            cached = cache.is_cached(title, kind)
            path = async_to_sync(cache.resolve)(url, title, kind)
        except MediaError as e:
            if output_json:
                self.stdout.write(json.dumps({'success': False, 'error': str(e)}, indent=2))
                return
            raise CommandError(f'Fetch failed: {e}')

        output = {
            'success': True,
            'url': url,
            'title': title,
            'type': kind.value,
            'path': str(path),
            'file_size': path.stat().st_size,
            'cached': cached,
            'converted': path.suffix.lower() == kind.extension,
        }

        if output_json:
            self.stdout.write(json.dumps(output, indent=2))
            return

        self.stdout.write(self.style.SUCCESS('✓ Fetch complete'))
        self.stdout.write(f'  URL: {url}')
        self.stdout.write(f'  Title: {title}')
        self.stdout.write(f'  Type: {kind.value}')
        self.stdout.write(f'  Output: {path}')
        self.stdout.write(f'  Size: {output["file_size"]:,} bytes')
        self.stdout.write(f'  From cache: {"Yes" if cached else "No"}')
        if not output['converted']:
            self.stdout.write(self.style.WARNING(f'  Kept original format: {path.suffix}'))
