"""
Reply channel interface.

A channel is whatever the bot writes replies to. The protocol behind it
(a messaging service, a terminal) is not this package's concern.
"""

from abc import ABC, abstractmethod


class ChannelClosed(Exception):
    """Raised by a channel whose session is gone; sending again will not help"""

    pass


class Channel(ABC):
    """Destination for bot replies."""

    @abstractmethod
    async def send_text(self, text):
        """Send a text message"""

    @abstractmethod
    async def send_file(self, path, mime_type, filename):
        """Send a local file as a document"""
