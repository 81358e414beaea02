"""
Playlist output formats.

A plain playlist is one playable URL per line. The extended format precedes
every URL with a marker line carrying the item's metadata as JSON:

    #EXTDLNA:{"id": "7", "url": "http://x/7.mp3", "title": "Song"}
    http://x/7.mp3
"""

import json
from typing import Iterable, Iterator, List

from .models import PlaybackItem

RECORD_MARKER = "#EXTDLNA:"


def format_record(item: PlaybackItem) -> str:
    """Return the marker line for ``item``, without a trailing newline."""
    record = {"id": item.id, "url": item.url, "title": item.title}
    return RECORD_MARKER + json.dumps(record, ensure_ascii=False)


def parse_record(line: str) -> PlaybackItem:
    """Parse a marker line produced by format_record."""
    if not line.startswith(RECORD_MARKER):
        raise ValueError(f"Not an extended playlist record: {line[:40]!r}")
    record = json.loads(line[len(RECORD_MARKER):])
    return PlaybackItem(id=str(record["id"]), url=record["url"], title=record["title"])


def playlist_lines(item: PlaybackItem, extended: bool = False) -> List[str]:
    lines = [format_record(item)] if extended else []
    lines.append(item.url)
    return lines


def read_playlist(lines: Iterable[str]) -> Iterator[PlaybackItem]:
    """Yield the items of a plain or extended playlist.

    URL lines following a record line belong to that record; bare URL lines
    become items whose id and title are the URL itself.
    """
    pending = None
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if line.startswith(RECORD_MARKER):
            pending = parse_record(line)
            continue
        if line.startswith("#"):
            continue
        if pending is not None:
            yield PlaybackItem(id=pending.id, url=line, title=pending.title)
            pending = None
        else:
            yield PlaybackItem(id=line, url=line, title=line)
