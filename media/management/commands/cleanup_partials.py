"""
Management command to clean up abandoned partial downloads.

Finds and removes partial files (yt-dlp fragments, .part files, unfinished
transcoder output) and zero-byte files left in the cache directories by
crashed downloads or conversions.
"""
from django.core.management.base import BaseCommand

from media.service.cache import MediaCache
from media.service.config import get_cache_dir
from media.service.constants import MediaKind


class Command(BaseCommand):
    help = 'Clean up partial and empty files left in the media cache by failed downloads'

    def add_arguments(self, parser):
        parser.add_argument(
            '--type',
            type=str,
            default='all',
            choices=['all'] + [k.value for k in MediaKind],
            help='Which cache directory to clean (default: all)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without actually deleting'
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Delete files without confirmation'
        )

    def handle(self, *args, **options):
        """Find and clean up partial files"""
        dry_run = options['dry_run']
        force = options['force']

        if options['type'] == 'all':
            kinds = list(MediaKind)
        else:
            kinds = [MediaKind(options['type'])]

        # Sweeping does not download anything, so no acquirer is needed
        cache = MediaCache(
            video_dir=get_cache_dir(MediaKind.VIDEO),
            audio_dir=get_cache_dir(MediaKind.AUDIO),
            acquirer=None,
        )

        found = []
        for kind in kinds:
            found.extend((path, kind) for path in cache.sweep(kind, dry_run=True))

        if not found:
            self.stdout.write(self.style.SUCCESS("No partial files found"))
            return

        # Display findings
        self.stdout.write(f"\nFound {len(found)} partial file{'s' if len(found) != 1 else ''}:")
        self.stdout.write(f"{'=' * 80}")

        total_size = 0
        for path, kind in found:
            size = path.stat().st_size
            total_size += size
            self.stdout.write(f"{kind.value:5} | {path.name:60} | {size / (1024 * 1024):6.1f} MB")

        self.stdout.write(f"{'=' * 80}")
        self.stdout.write(f"Total size: {total_size / (1024 * 1024):.1f} MB\n")

        # Handle deletion
        if dry_run:
            self.stdout.write(self.style.WARNING(
                f"\nDRY RUN: Would delete {len(found)} file{'s' if len(found) != 1 else ''}"
            ))
            self.stdout.write("Run without --dry-run to actually delete")
            return

        # Confirm deletion
        if not force:
            response = input(f"\nDelete these {len(found)} file{'s' if len(found) != 1 else ''}? [y/N]: ")
            if response.lower() != 'y':
                self.stdout.write("Cancelled")
                return

        deleted = []
        for kind in kinds:
            deleted.extend(cache.sweep(kind))

        for path in deleted:
            self.stdout.write(self.style.SUCCESS(f"✓ Deleted: {path.name}"))

        self.stdout.write(self.style.SUCCESS(
            f"\n✓ Deleted {len(deleted)} file{'s' if len(deleted) != 1 else ''}"
        ))
