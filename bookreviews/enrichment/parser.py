"""
Open Library Books API payload parsing
--------------------------------------
Turns the JSON answer of ``/api/books?jscmd=data`` into a ``Book``.

Every field degrades on its own: a missing or oddly shaped value falls back to
a default instead of failing the whole record. Only a payload without any
record for the requested ISBN, or whose record names no title, author or
publisher, is rejected.
"""

import json
import math
from typing import Any, Mapping, Optional

from bookreviews.db.models import NOT_AVAILABLE, Book
from bookreviews.errors import MetadataParseError


def bibliographic_key(isbn: str) -> str:
    return f"ISBN:{isbn}"


def _strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace or bracket, outside strings."""
    out = []
    in_string = False
    escaped = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
            out.append(ch)
        elif ch == ",":
            j = i + 1
            while j < n and text[j] in " \t\r\n":
                j += 1
            if j >= n or text[j] not in "}]":
                out.append(ch)
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def loads_lenient(text: str | bytes) -> Any:
    """
    Decode JSON, tolerating trailing commas in objects and arrays.

    Raises:
        MetadataParseError: if the text is not UTF-8 JSON even after cleanup
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise MetadataParseError(f"Response is not UTF-8: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(_strip_trailing_commas(text))
    except json.JSONDecodeError as e:
        raise MetadataParseError(f"Response is not valid JSON: {e}") from e


def _text(value: Any) -> Optional[str]:
    # Open Library sends free text either as a string or as {"type": ..., "value": ...}
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _first_name(entries: Any) -> Optional[str]:
    if not isinstance(entries, list) or not entries:
        return None
    first = entries[0]
    if isinstance(first, dict):
        return _text(first.get("name"))
    return _text(first)


def _pages(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        # json decodes NaN, Infinity and 1e999 into floats
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    if isinstance(value, str):
        try:
            return max(0, int(value.strip()))
        except ValueError:
            return 0
    return 0


def _thumbnail(cover: Any) -> str:
    if not isinstance(cover, dict):
        return ""
    for size in ("small", "medium", "large"):
        url = _text(cover.get(size))
        if url:
            return url
    return ""


def find_record(payload: Any, isbn: str) -> Mapping:
    """Locate the record for ``isbn``, keyed either ``ISBN:<isbn>`` or by the bare ISBN."""
    if not isinstance(payload, dict):
        raise MetadataParseError(f"Expected a JSON object, got {type(payload).__name__}")
    for key in (bibliographic_key(isbn), isbn):
        record = payload.get(key)
        if isinstance(record, dict):
            return record
    raise MetadataParseError(f"No record for {bibliographic_key(isbn)} in response")


def parse_book_metadata(payload: Any, isbn: str) -> Book:
    """
    Build an unsaved ``Book`` from a decoded Books API payload.

    Raises:
        MetadataParseError: if there is no record for ``isbn``, or the record
            names neither a title, an author nor a publisher
    """
    record = find_record(payload, isbn)

    title = _text(record.get("title"))
    author = _first_name(record.get("authors"))
    publisher = _first_name(record.get("publishers"))
    if not (title or author or publisher):
        raise MetadataParseError(f"Record {bibliographic_key(isbn)} has no usable metadata")

    return Book(
        id=None,
        isbn=isbn,
        title=title or "",
        author=author or "",
        publisher=publisher or NOT_AVAILABLE,
        pages=_pages(record.get("number_of_pages")),
        thumbnail_url=_thumbnail(record.get("cover")),
        description=_text(record.get("notes")) or _text(record.get("description")) or NOT_AVAILABLE,
        genre=_first_name(record.get("subjects")) or NOT_AVAILABLE,
    )
