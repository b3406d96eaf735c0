"""Reading fields from sidecar metadata records.

Hash-bucketed sidecars carry a metadata record naming the content file
they belong to. Records are key-value documents; the native format is a
serialized Lua table::

    -- we can read Lua syntax here!
    return {
        ["doc_path"] = "/mnt/onboard/books/novel.epub",
        ["stats"] = {
            ["pages"] = 312,
        },
    }

JSON and TOML records are accepted as well, selected by file extension.
Only top-level string fields are ever extracted.
"""

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any

from sdrsweep.sidecars.errors import MetadataError

logger = logging.getLogger(__name__)

# Key assignment at the current table level: ["key"] = "value" or key = "value"
_BRACKET_FIELD_RE = re.compile(
    r"""\[\s*(?P<kq>["'])(?P<key>(?:\\.|(?!(?P=kq)).)*)(?P=kq)\s*\]\s*=\s*"""
    r"""(?P<vq>["'])(?P<value>(?:\\.|(?!(?P=vq)).)*)(?P=vq)""",
    re.DOTALL,
)
_NAME_FIELD_RE = re.compile(
    r"""(?P<key>[A-Za-z_]\w*)\s*=\s*(?P<vq>["'])(?P<value>(?:\\.|(?!(?P=vq)).)*)(?P=vq)""",
    re.DOTALL,
)
_RETURN_TABLE_RE = re.compile(r"\breturn\s*\{")
_ESCAPE_RE = re.compile(r"\\(\d{1,3}|x[0-9A-Fa-f]{2}|z\s*|.)", re.DOTALL)

_SIMPLE_ESCAPES: dict[str, str] = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "\n": "\n",
}


def read_metadata_field(path: Path, field: str) -> str | None:
    """Read a top-level string field from a metadata record.

    Args:
        path: Path to the metadata record file.
        field: Name of the field to extract.

    Returns:
        The field value, or None if the field is absent, empty or not a string.

    Raises:
        MetadataError: If the record cannot be read or parsed.
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise MetadataError(f"Failed to read metadata record {path}: {e}") from e

    text = raw.decode("utf-8", errors="surrogateescape")
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = _parse_json(text, path)
    elif suffix == ".toml":
        data = _parse_toml(text, path)
    else:
        data = parse_lua_table(text)

    value = data.get(field)
    if not isinstance(value, str) or not value:
        return None
    return value


def parse_lua_table(text: str) -> dict[str, str]:
    """Extract the top-level string fields of a ``return { ... }`` chunk.

    Nested tables are skipped; non-string values are ignored. The first
    occurrence of a key wins.

    Args:
        text: Lua source text.

    Returns:
        Mapping of field name to decoded string value.

    Raises:
        MetadataError: If the text does not contain a complete returned table.
    """
    match = _RETURN_TABLE_RE.search(_blank_comments(text))
    if match is None:
        raise MetadataError("Metadata record does not return a table")

    fields: dict[str, str] = {}
    pos = match.end()
    depth = 1
    length = len(text)

    while pos < length:
        ch = text[pos]

        if ch in "\"'":
            pos = _skip_string(text, pos)
            continue
        if text.startswith("--", pos):
            pos = _skip_comment(text, pos)
            continue
        if text.startswith("[[", pos):
            pos = _skip_long_bracket(text, pos + 2)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return fields
        elif depth == 1 and (ch == "[" or ch.isalpha() or ch == "_"):
            field_match = _BRACKET_FIELD_RE.match(text, pos) or _NAME_FIELD_RE.match(text, pos)
            if field_match is not None:
                key = decode_lua_string(field_match.group("key"))
                fields.setdefault(key, decode_lua_string(field_match.group("value")))
                pos = field_match.end()
                continue
            if ch != "[":
                # Skip the rest of a bare identifier (true, nil, ...)
                while pos < length and (text[pos].isalnum() or text[pos] == "_"):
                    pos += 1
                continue
        pos += 1

    raise MetadataError("Metadata record table is not terminated")


def decode_lua_string(body: str) -> str:
    """Decode the escape sequences of a quoted Lua string body.

    Decimal and hex escapes denote raw bytes, so the result is assembled
    as bytes and decoded as UTF-8 (undecodable bytes are preserved as
    surrogates, matching how paths are handled elsewhere).
    """
    out = bytearray()
    pos = 0
    for match in _ESCAPE_RE.finditer(body):
        out += body[pos : match.start()].encode("utf-8", errors="surrogateescape")
        seq = match.group(1)
        if seq.isdigit():
            out.append(int(seq) & 0xFF)
        elif seq[0] == "x" and len(seq) == 3:
            out.append(int(seq[1:], 16))
        elif seq[0] == "z":
            pass
        else:
            out += _SIMPLE_ESCAPES.get(seq, seq).encode("utf-8", errors="surrogateescape")
        pos = match.end()
    out += body[pos:].encode("utf-8", errors="surrogateescape")
    return out.decode("utf-8", errors="surrogateescape")


def _parse_json(text: str, path: Path) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Invalid JSON in metadata record {path}: {e}") from e
    if not isinstance(data, dict):
        raise MetadataError(f"Metadata record {path} is not an object")
    return data


def _parse_toml(text: str, path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise MetadataError(f"Invalid TOML in metadata record {path}: {e}") from e


def _skip_string(text: str, pos: int) -> int:
    """Return the index just past the quoted string starting at pos."""
    quote = text[pos]
    pos += 1
    while pos < len(text):
        ch = text[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == quote:
            return pos + 1
        if ch == "\n":
            break
        pos += 1
    raise MetadataError("Unterminated string in metadata record")


def _skip_comment(text: str, pos: int) -> int:
    """Return the index just past the comment starting at pos."""
    if text.startswith("--[[", pos):
        return _skip_long_bracket(text, pos + 4)
    end = text.find("\n", pos)
    return len(text) if end == -1 else end + 1


def _skip_long_bracket(text: str, pos: int) -> int:
    end = text.find("]]", pos)
    if end == -1:
        raise MetadataError("Unterminated long string in metadata record")
    return end + 2


def _blank_comments(text: str) -> str:
    """Blank out line comments so a commented ``return {`` is not matched."""
    return re.sub(r"--[^\n]*", lambda m: " " * len(m.group(0)), text)
