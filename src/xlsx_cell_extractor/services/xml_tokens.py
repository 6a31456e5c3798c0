"""Token-level streaming over SpreadsheetML members.

``iter_tokens`` turns a binary stream into a flat sequence of
``StartElement``, ``Text`` and ``EndElement`` tokens with namespace-free
local names. Finished elements are detached from their parent as soon as
their end token is produced, so memory stays proportional to nesting depth
rather than document size.
"""

from __future__ import annotations

import zipfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import IO
from xml.etree.ElementTree import Element, ParseError, XMLPullParser

from xlsx_cell_extractor.utils.exceptions import ContainerError, MalformedXMLError

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StartElement:
    name: str
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EndElement:
    name: str


@dataclass(frozen=True)
class Text:
    content: str


XMLToken = StartElement | EndElement | Text


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from a tag or attribute name."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _local_attrs(element: Element) -> dict[str, str]:
    return {local_name(key): value for key, value in element.attrib.items()}


def iter_tokens(
    stream: IO[bytes],
    *,
    member_name: str | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[XMLToken]:
    """Yield tokens for the XML document read from ``stream``.

    An element's own text is reported as a single ``Text`` token right
    before its ``EndElement``. Tail text between elements is not reported;
    SpreadsheetML keeps all values inside leaf elements.

    Raises:
        MalformedXMLError: On invalid XML or a document truncated before
            its root element closes.
        ContainerError: If the compressed member data cannot be read.
    """
    parser = XMLPullParser(events=("start", "end"))
    open_elements: list[Element] = []
    saw_root = False

    def drain() -> Iterator[XMLToken]:
        nonlocal saw_root
        for event, element in parser.read_events():
            if event == "start":
                saw_root = True
                open_elements.append(element)
                yield StartElement(local_name(element.tag), _local_attrs(element))
                continue
            name = local_name(element.tag)
            if element.text:
                yield Text(element.text)
            yield EndElement(name)
            open_elements.pop()
            if open_elements:
                open_elements[-1].remove(element)
            element.clear()

    try:
        while True:
            try:
                chunk = stream.read(chunk_size)
            except (zipfile.BadZipFile, zlib.error, EOFError, OSError) as exc:
                raise ContainerError(
                    f"Cannot read member {member_name}: {exc}"
                ) from exc
            if not chunk:
                break
            parser.feed(chunk)
            yield from drain()
        parser.close()
        yield from drain()
    except ParseError as exc:
        raise MalformedXMLError(str(exc), member_name=member_name) from exc

    if not saw_root or open_elements:
        raise MalformedXMLError(
            "document ended before the root element closed",
            member_name=member_name,
        )
