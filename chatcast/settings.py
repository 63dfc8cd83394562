"""
Django settings for chatcast project.

Every setting can be overridden with an environment variable of the same name.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return [item.strip() for item in value.split(',') if item.strip()]


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'chatcast-insecure-dev-key')

DEBUG = env_bool('DJANGO_DEBUG', False)

ALLOWED_HOSTS = env_list('DJANGO_ALLOWED_HOSTS', ['localhost', '127.0.0.1'])

INSTALLED_APPS = [
    'media',
]

USE_TZ = True
TIME_ZONE = os.environ.get('TZ', 'UTC')

# Media cache
# One flat directory per kind; the directory listing is the cache index
CHATCAST_MEDIA_DIR = os.environ.get('CHATCAST_MEDIA_DIR', str(BASE_DIR / 'temp'))
CHATCAST_VIDEO_DIR = os.environ.get(
    'CHATCAST_VIDEO_DIR', os.path.join(CHATCAST_MEDIA_DIR, 'mp4')
)
CHATCAST_AUDIO_DIR = os.environ.get(
    'CHATCAST_AUDIO_DIR', os.path.join(CHATCAST_MEDIA_DIR, 'mp3')
)

# yt-dlp
CHATCAST_MAX_HEIGHT = int(os.environ.get('CHATCAST_MAX_HEIGHT', '720'))
# Android player client avoids SABR streaming issues on YouTube
CHATCAST_YTDLP_EXTRACTOR_ARGS = os.environ.get(
    'CHATCAST_YTDLP_EXTRACTOR_ARGS', 'youtube:player_client=android'
)
CHATCAST_YTDLP_PROXY = os.environ.get('CHATCAST_YTDLP_PROXY', '')
CHATCAST_YTDLP_SOCKET_TIMEOUT = int(os.environ.get('CHATCAST_YTDLP_SOCKET_TIMEOUT', '30'))
CHATCAST_YTDLP_RETRIES = int(os.environ.get('CHATCAST_YTDLP_RETRIES', '10'))
CHATCAST_SEARCH_RESULTS = int(os.environ.get('CHATCAST_SEARCH_RESULTS', '15'))
CHATCAST_ALLOWED_HOSTS = env_list(
    'CHATCAST_ALLOWED_HOSTS', ['youtube.com', 'youtu.be']
)

# ffmpeg
CHATCAST_FFMPEG_PATH = os.environ.get('CHATCAST_FFMPEG_PATH', '')
CHATCAST_FFMPEG_ARGS_VIDEO = os.environ.get(
    'CHATCAST_FFMPEG_ARGS_VIDEO',
    '-c:v libx264 -c:a aac -preset fast -crf 23 -movflags +faststart',
)
CHATCAST_FFMPEG_ARGS_AUDIO = os.environ.get(
    'CHATCAST_FFMPEG_ARGS_AUDIO',
    '-vn -acodec libmp3lame -ab 192k -ar 44100',
)
CHATCAST_FFMPEG_TIMEOUT = int(os.environ.get('CHATCAST_FFMPEG_TIMEOUT', '1800'))

# Delivery
# Files larger than this are uploaded to Gofile and sent as a link
CHATCAST_MAX_SEND_MB = float(os.environ.get('CHATCAST_MAX_SEND_MB', '1'))
CHATCAST_GOFILE_API = os.environ.get('CHATCAST_GOFILE_API', 'https://api.gofile.io')
CHATCAST_UPLOAD_TIMEOUT = int(os.environ.get('CHATCAST_UPLOAD_TIMEOUT', '300'))

# Bot log file; empty disables file logging
CHATCAST_LOG_PATH = os.environ.get(
    'CHATCAST_LOG_PATH', os.path.join(CHATCAST_MEDIA_DIR, 'bot.log')
)
