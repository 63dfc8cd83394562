"""
Tests for service/config.py
"""

from pathlib import Path

from django.test import SimpleTestCase, override_settings

from media.service.config import (
    get_allowed_hosts,
    get_cache_dir,
    get_ffmpeg_args_for_type,
    get_max_send_bytes,
    get_ytdlp_base_opts,
    parse_extractor_args,
)
from media.service.constants import MediaKind


class ConfigServiceTest(SimpleTestCase):
    """Tests for configuration adapter"""

    def test_get_ffmpeg_args_audio(self):
        """Test getting ffmpeg args for audio"""
        args = get_ffmpeg_args_for_type('audio')
        self.assertIsInstance(args, str)
        self.assertIn('libmp3lame', args)

    def test_get_ffmpeg_args_video(self):
        """Test getting ffmpeg args for video"""
        args = get_ffmpeg_args_for_type(MediaKind.VIDEO)
        self.assertIn('libx264', args)
        self.assertIn('+faststart', args)

    def test_get_ffmpeg_args_invalid(self):
        """Test getting ffmpeg args for invalid type"""
        self.assertEqual(get_ffmpeg_args_for_type('invalid'), '')

    @override_settings(CHATCAST_VIDEO_DIR='/srv/v', CHATCAST_AUDIO_DIR='/srv/a')
    def test_get_cache_dir(self):
        """Test one directory per kind"""
        self.assertEqual(get_cache_dir('video'), Path('/srv/v'))
        self.assertEqual(get_cache_dir(MediaKind.AUDIO), Path('/srv/a'))

    @override_settings(CHATCAST_MAX_SEND_MB=1.5)
    def test_get_max_send_bytes(self):
        """Test megabyte setting is converted to bytes"""
        self.assertEqual(get_max_send_bytes(), 1572864)

    @override_settings(CHATCAST_ALLOWED_HOSTS=('youtube.com',))
    def test_get_allowed_hosts(self):
        self.assertEqual(get_allowed_hosts(), ['youtube.com'])


class ExtractorArgsTest(SimpleTestCase):
    """Tests for parse_extractor_args"""

    def test_empty(self):
        self.assertEqual(parse_extractor_args(''), {})
        self.assertEqual(parse_extractor_args(None), {})

    def test_single_value(self):
        self.assertEqual(
            parse_extractor_args('youtube:player_client=android'),
            {'youtube': {'player_client': ['android']}},
        )

    def test_multiple_values(self):
        self.assertEqual(
            parse_extractor_args('youtube:player_client=android,web'),
            {'youtube': {'player_client': ['android', 'web']}},
        )

    def test_multiple_params_and_extractors(self):
        """Test ';' between params and whitespace between extractors"""
        result = parse_extractor_args('youtube:player_client=android;skip=dash vimeo:api=1')
        self.assertEqual(result['youtube'], {'player_client': ['android'], 'skip': ['dash']})
        self.assertEqual(result['vimeo'], {'api': ['1']})

    def test_malformed_chunks_ignored(self):
        self.assertEqual(parse_extractor_args('garbage youtube:novalue'), {'youtube': {}})


class YtdlpOptsTest(SimpleTestCase):
    @override_settings(
        CHATCAST_YTDLP_PROXY='',
        CHATCAST_YTDLP_EXTRACTOR_ARGS='youtube:player_client=android',
        CHATCAST_YTDLP_SOCKET_TIMEOUT=30,
        CHATCAST_YTDLP_RETRIES=10,
    )
    def test_base_opts(self):
        opts = get_ytdlp_base_opts()
        self.assertEqual(opts['socket_timeout'], 30)
        self.assertEqual(opts['retries'], 10)
        self.assertEqual(opts['fragment_retries'], 10)
        self.assertTrue(opts['noplaylist'])
        self.assertEqual(opts['extractor_args'], {'youtube': {'player_client': ['android']}})
        self.assertNotIn('proxy', opts)

    @override_settings(CHATCAST_YTDLP_PROXY='socks5://127.0.0.1:1080', CHATCAST_YTDLP_EXTRACTOR_ARGS='')
    def test_proxy_and_no_extractor_args(self):
        opts = get_ytdlp_base_opts()
        self.assertEqual(opts['proxy'], 'socks5://127.0.0.1:1080')
        self.assertNotIn('extractor_args', opts)


class DatabaseSettingsTest(SimpleTestCase):
    def test_no_database_configured(self):
        """Test that the project runs on the dummy backend since it has no models"""
        from django.db import connections

        self.assertEqual(connections['default'].settings_dict['ENGINE'], 'django.db.backends.dummy')
