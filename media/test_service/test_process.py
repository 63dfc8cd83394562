"""
Tests for service/process.py
"""
import subprocess
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase, override_settings

from media.service.constants import MediaKind
from media.service.errors import TranscodeError
from media.service.process import (
    FfmpegTranscoder,
    find_ffmpeg,
    needs_transcode,
    temp_output_path,
)


class ProcessServiceTest(SimpleTestCase):
    """Tests for media processing and transcoding"""

    def test_needs_transcode_audio_mp3_false(self):
        """Test that MP3 audio doesn't need transcoding"""
        self.assertFalse(needs_transcode('/tmp/song.mp3', 'audio'))

    def test_needs_transcode_audio_m4a_true(self):
        """Test that M4A audio is converted to MP3"""
        self.assertTrue(needs_transcode('/tmp/song.m4a', 'audio'))

    def test_needs_transcode_video_mp4_false(self):
        """Test that MP4 video doesn't need transcoding"""
        self.assertFalse(needs_transcode('/tmp/clip.MP4', MediaKind.VIDEO))

    def test_needs_transcode_video_webm_true(self):
        """Test that WebM video needs transcoding"""
        self.assertTrue(needs_transcode('/tmp/clip.webm', MediaKind.VIDEO))

    def test_temp_output_path(self):
        """Test the in-progress name used while ffmpeg runs"""
        self.assertEqual(temp_output_path('/tmp/My_Clip.mp4'), Path('/tmp/My_Clip.temp.mp4'))


class FindFfmpegTest(SimpleTestCase):
    @override_settings(CHATCAST_FFMPEG_PATH='')
    @patch('media.service.process.shutil.which', return_value='/somewhere/ffmpeg')
    @patch('media.service.process.FFMPEG_CANDIDATES', [])
    def test_falls_back_to_path(self, mock_which):
        """Test PATH lookup when no candidate exists"""
        self.assertEqual(find_ffmpeg(), '/somewhere/ffmpeg')
        mock_which.assert_called_with('ffmpeg')

    @override_settings(CHATCAST_FFMPEG_PATH='')
    @patch('media.service.process.shutil.which', return_value=None)
    @patch('media.service.process.FFMPEG_CANDIDATES', [])
    def test_not_installed(self, mock_which):
        """Test None when ffmpeg is nowhere to be found"""
        self.assertIsNone(find_ffmpeg())

    def test_configured_path_wins(self):
        """Test that an existing configured binary is used first"""
        with tempfile.NamedTemporaryFile() as f:
            with override_settings(CHATCAST_FFMPEG_PATH=f.name):
                self.assertEqual(find_ffmpeg(), f.name)

    @patch('media.service.process.shutil.which', return_value='/usr/bin/ffmpeg')
    @patch('media.service.process.FFMPEG_CANDIDATES', [])
    def test_configured_missing_path_skipped(self, mock_which):
        """Test that a configured path that does not exist falls through"""
        with override_settings(CHATCAST_FFMPEG_PATH='/does/not/exist/ffmpeg'):
            self.assertEqual(find_ffmpeg(), '/usr/bin/ffmpeg')


class FfmpegTranscoderTest(SimpleTestCase):
    """Tests for FfmpegTranscoder with subprocess mocked out"""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.input = self.tmp / 'Song.webm'
        self.input.write_bytes(b'webm data')
        self.output = self.tmp / 'Song.mp4'

    @patch('media.service.process.subprocess.run')
    def test_convert_video_success(self, mock_run):
        """Test that the temp output is renamed to the final path"""

        def fake_run(cmd, **kwargs):
            Path(cmd[-1]).write_bytes(b'mp4 data')
            return MagicMock(returncode=0, stderr='')

        mock_run.side_effect = fake_run
        transcoder = FfmpegTranscoder('/usr/bin/ffmpeg', timeout=10)

        result = transcoder.convert(self.input, self.output, MediaKind.VIDEO)

        self.assertEqual(result, self.output)
        self.assertEqual(self.output.read_bytes(), b'mp4 data')
        self.assertFalse((self.tmp / 'Song.temp.mp4').exists())

        cmd = mock_run.call_args[0][0]
        self.assertEqual(cmd[:3], ['/usr/bin/ffmpeg', '-i', str(self.input)])
        self.assertIn('libx264', cmd)
        self.assertIn('+faststart', cmd)
        self.assertEqual(cmd[-2:], ['-y', str(self.tmp / 'Song.temp.mp4')])
        self.assertEqual(mock_run.call_args[1]['timeout'], 10)

    @patch('media.service.process.subprocess.run')
    def test_convert_audio_args(self, mock_run):
        """Test that audio conversion drops video and encodes MP3"""

        def fake_run(cmd, **kwargs):
            Path(cmd[-1]).write_bytes(b'mp3 data')
            return MagicMock(returncode=0, stderr='')

        mock_run.side_effect = fake_run
        output = self.tmp / 'Song.mp3'

        FfmpegTranscoder(timeout=10).convert(self.input, output, MediaKind.AUDIO)

        cmd = mock_run.call_args[0][0]
        self.assertIn('-vn', cmd)
        self.assertIn('libmp3lame', cmd)
        self.assertIn('192k', cmd)
        self.assertIn('44100', cmd)
        self.assertTrue(output.exists())

    @patch('media.service.process.subprocess.run')
    def test_convert_nonzero_exit(self, mock_run):
        """Test that a failed ffmpeg run raises with a bounded stderr tail"""

        def fake_run(cmd, **kwargs):
            Path(cmd[-1]).write_bytes(b'half written')
            return MagicMock(returncode=1, stderr='x' * 2000 + 'Invalid data found')

        mock_run.side_effect = fake_run

        with self.assertRaises(TranscodeError) as ctx:
            FfmpegTranscoder(timeout=10).convert(self.input, self.output, MediaKind.VIDEO)

        self.assertEqual(ctx.exception.returncode, 1)
        self.assertEqual(len(ctx.exception.stderr_tail), 500)
        self.assertTrue(ctx.exception.stderr_tail.endswith('Invalid data found'))
        self.assertFalse(self.output.exists())
        self.assertFalse((self.tmp / 'Song.temp.mp4').exists())
        self.assertTrue(self.input.exists())

    @patch('media.service.process.subprocess.run')
    def test_convert_timeout(self, mock_run):
        """Test that a stalled ffmpeg is reported as a TranscodeError"""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd='ffmpeg', timeout=10)

        with self.assertRaises(TranscodeError) as ctx:
            FfmpegTranscoder(timeout=10).convert(self.input, self.output, MediaKind.VIDEO)

        self.assertIn('timed out', str(ctx.exception))
        self.assertFalse(self.output.exists())

    @patch('media.service.process.subprocess.run')
    def test_convert_binary_missing(self, mock_run):
        """Test that an unrunnable binary is reported as a TranscodeError"""
        mock_run.side_effect = FileNotFoundError('ffmpeg')

        with self.assertRaises(TranscodeError):
            FfmpegTranscoder('/nope/ffmpeg', timeout=10).convert(self.input, self.output, MediaKind.VIDEO)

    @patch('media.service.process.subprocess.run')
    def test_convert_no_output_written(self, mock_run):
        """Test that a zero exit without an output file is still a failure"""
        mock_run.return_value = MagicMock(returncode=0, stderr='')

        with self.assertRaises(TranscodeError):
            FfmpegTranscoder(timeout=10).convert(self.input, self.output, MediaKind.VIDEO)

    @override_settings(CHATCAST_FFMPEG_TIMEOUT=42)
    def test_timeout_from_settings(self):
        """Test default timeout comes from settings"""
        self.assertEqual(FfmpegTranscoder().timeout, 42)
