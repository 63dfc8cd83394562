"""
Media format constants.

Centralized definitions of output kinds, file extensions and partial-download markers.
"""

import re
from enum import Enum


class MediaKind(str, Enum):
    """Requested output category"""

    VIDEO = 'video'
    AUDIO = 'audio'

    @property
    def extension(self):
        return TARGET_EXTENSIONS[self]

    @property
    def mime_type(self):
        return MIME_TYPES[self.extension]


TARGET_EXTENSIONS = {
    MediaKind.VIDEO: '.mp4',
    MediaKind.AUDIO: '.mp3',
}

# MIME types used when sending files to a chat
MIME_TYPES = {
    '.mp4': 'video/mp4',
    '.webm': 'video/webm',
    '.mkv': 'video/x-matroska',
    '.avi': 'video/x-msvideo',
    '.mov': 'video/quicktime',
    '.mp3': 'audio/mpeg',
    '.m4a': 'audio/mp4',
    '.ogg': 'audio/ogg',
    '.opus': 'audio/opus',
}

# yt-dlp and the transcoder leave these behind while a file is in progress:
#   title.f137.mp4           format fragment before merging
#   title.mp4.part           download in progress
#   title.mp4.part-Frag12    fragmented download in progress
#   title.mp4.ytdl           resume state
#   title.temp.mp4           transcoder output in progress
PARTIAL_PATTERN = re.compile(r'\.f\d+\.|\.part(-Frag\d+)?$|\.ytdl$|\.temp(\.|$)')


def is_partial_name(filename):
    """Return True if the filename carries a download-in-progress marker."""
    return bool(PARTIAL_PATTERN.search(filename))
