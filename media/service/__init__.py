"""
Service layer for media processing.

This module contains reusable functions for downloading, caching and
transcoding media, independent of the chat channel. These functions are used by:
- The chat command dispatcher (media/chat/dispatcher.py)
- The CLI management commands (management/commands/fetch.py, cleanup_partials.py)
"""
