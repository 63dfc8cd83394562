"""
Command tokenizer and parser.

Turns a chat message into one of the ChatCommand variants.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from media.service.constants import MediaKind


@dataclass(frozen=True)
class Ping:
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Search:
    query: str


@dataclass(frozen=True)
class Download:
    url: Optional[str]
    kind: MediaKind


@dataclass(frozen=True)
class ListCache:
    kind: MediaKind


@dataclass(frozen=True)
class SendCached:
    kind: MediaKind
    number: Optional[int]


@dataclass(frozen=True)
class Unknown:
    command: str


ChatCommand = Union[Ping, Help, Search, Download, ListCache, SendCached, Unknown]

# Suffix of the command name selects the kind: 4 for MP4, 3 for MP3
KIND_SUFFIXES = {
    '4': MediaKind.VIDEO,
    '3': MediaKind.AUDIO,
}


def tokenize(text):
    """
    Split a message into a command and its arguments.

    Args:
        text: Raw message body

    Returns:
        tuple: (command, list of non-empty argument tokens)
    """
    tokens = (text or '').split(' ')
    command = tokens[0]
    args = [t.strip() for t in tokens[1:] if t.strip()]
    return command, args


def _parse_number(token):
    if token is None:
        return None
    try:
        return int(token.lstrip('#'))
    except ValueError:
        return None


def parse_command(text):
    """
    Parse a chat message.

    Args:
        text: Raw message body

    Returns:
        ChatCommand: the parsed variant; Unknown when the message is not a command
    """
    command, args = tokenize(text)
    name = command.lower()

    if name == '!ping':
        return Ping(tuple(args))
    if name == '!help':
        return Help()
    if name == '!yt':
        return Search(' '.join(args))

    for prefix, variant in (('!ytdl', 'download'), ('!cache', 'list'), ('!dl', 'send')):
        suffix = name[len(prefix):]
        if name.startswith(prefix) and suffix in KIND_SUFFIXES:
            kind = KIND_SUFFIXES[suffix]
            if variant == 'download':
                return Download(args[0] if args else None, kind)
            if variant == 'list':
                return ListCache(kind)
            return SendCached(kind, _parse_number(args[0] if args else None))

    return Unknown(command)
