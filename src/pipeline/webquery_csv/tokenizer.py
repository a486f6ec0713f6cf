"""Streaming HTML tokenizer producing structural events.

``WebQueryTokenizer`` wraps the push-style ``html.parser.HTMLParser``: markup
is fed in arbitrary chunks as it arrives and every element start, element
end and text run is pushed, in document order, to a callback (normally
``TableExtractor.handle``). Nothing is buffered beyond what the parser needs
to finish an incomplete tag at a chunk boundary.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from html.parser import HTMLParser

from .events import EndDocument, EndElement, StartElement, StructuralEvent, Text

EventCallback = Callable[[StructuralEvent], None]

MARKUP_CHUNK_SIZE = 4096


class WebQueryTokenizer(HTMLParser):
    """Translate fed markup into structural events.

    Parameters
    ----------
    on_event : Callable[[StructuralEvent], None]
        Receives each event as soon as it is recognised.

    Examples
    --------
    >>> events = []
    >>> tokenizer = WebQueryTokenizer(events.append)
    >>> tokenizer.feed("<td>1 &amp; 2</td>")
    >>> tokenizer.close()
    >>> [type(e).__name__ for e in events]
    ['StartElement', 'Text', 'EndElement', 'EndDocument']
    """

    def __init__(self, on_event: EventCallback) -> None:
        super().__init__(convert_charrefs=True)
        self._on_event = on_event
        self._closed = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._on_event(StartElement(tag, dict(attrs)))

    def handle_endtag(self, tag: str) -> None:
        self._on_event(EndElement(tag))

    def handle_data(self, data: str) -> None:
        if data:
            self._on_event(Text(data))

    def close(self) -> None:
        """Flush buffered markup and emit the terminal ``EndDocument`` event."""
        if self._closed:
            return
        super().close()
        self._closed = True
        self._on_event(EndDocument())


def iter_events(
    source: str | Iterable[str], chunk_size: int = MARKUP_CHUNK_SIZE
) -> Iterator[StructuralEvent]:
    """Yield the structural events of a markup string or a stream of chunks.

    Markup is fed to the tokenizer one chunk at a time and the events of
    each chunk are yielded before the next chunk is read, so only one
    chunk's worth of events is pending at any time.

    Parameters
    ----------
    source : str | Iterable[str]
        A whole HTML document, or an iterable of text chunks (e.g. read from
        a file) that together form one.
    chunk_size : int, optional
        Number of characters fed per step when ``source`` is a string.

    Yields
    ------
    StructuralEvent
        Events in document order, ending with ``EndDocument``.
    """
    if isinstance(source, str):
        chunks: Iterable[str] = (
            source[start : start + chunk_size]
            for start in range(0, len(source), chunk_size)
        )
    else:
        chunks = source
    pending: list[StructuralEvent] = []
    tokenizer = WebQueryTokenizer(pending.append)
    for chunk in chunks:
        tokenizer.feed(chunk)
        yield from pending
        pending.clear()
    tokenizer.close()
    yield from pending


__all__ = ["EventCallback", "MARKUP_CHUNK_SIZE", "WebQueryTokenizer", "iter_events"]
