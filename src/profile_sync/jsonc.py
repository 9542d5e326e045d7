"""Comment-preserving editing of JSON-with-comments documents.

Settings and key bindings files carry user comments that must survive when
properties are removed or inserted. Instead of parsing and re-serializing the
document, these helpers tokenize it and splice the source text, so whitespace
and comments outside the edited members are left untouched.

Only the flat top-level members of a root object are edited; nested values
are carried verbatim.
"""

import json
from dataclasses import dataclass
from typing import Any

from .exceptions import ProfileDocumentError

# Keys under this prefix configure the sync itself and are never ignored
SETTINGS_NAMESPACE = "syncSettings"

_WHITESPACE = " \t\r\n\ufeff"
_PUNCTUATION = "{}[]:,"

STRING = "string"
PUNCT = "punct"
LITERAL = "literal"
WHITESPACE = "whitespace"
LINE_COMMENT = "line_comment"
BLOCK_COMMENT = "block_comment"

_TRIVIA = {WHITESPACE, LINE_COMMENT, BLOCK_COMMENT}

_BOM = "\ufeff"


@dataclass(frozen=True)
class Token:
    kind: str
    start: int
    end: int


@dataclass(frozen=True)
class Member:
    """A top-level property of the root object, as source offsets.

    `start` is the beginning of the member's own lines (leading comments
    included); `end` is past its comma and the rest of its last line.
    """

    key: str
    start: int
    value_end: int
    comma_start: int | None
    end: int


@dataclass(frozen=True)
class RootObject:
    open_end: int
    close_start: int
    members: list[Member]


def tokenize(text: str) -> list[Token]:
    """Split a JSONC document into tokens, trivia included.

    Raises:
        ProfileDocumentError: On unterminated strings or comments and stray characters
    """
    tokens = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch in _WHITESPACE:
            j = i
            while j < n and text[j] in _WHITESPACE:
                j += 1
            kind = WHITESPACE
        elif ch == '"':
            j = i + 1
            while True:
                if j >= n or text[j] == "\n":
                    raise ProfileDocumentError(f"Unterminated string at offset {i}")
                if text[j] == "\\":
                    j += 2
                elif text[j] == '"':
                    j += 1
                    break
                else:
                    j += 1
            kind = STRING
        elif text.startswith("//", i):
            j = text.find("\n", i)
            j = n if j == -1 else j
            kind = LINE_COMMENT
        elif text.startswith("/*", i):
            j = text.find("*/", i + 2)
            if j == -1:
                raise ProfileDocumentError(f"Unterminated comment at offset {i}")
            j += 2
            kind = BLOCK_COMMENT
        elif ch in _PUNCTUATION:
            j = i + 1
            kind = PUNCT
        else:
            j = i
            while j < n and text[j] not in _WHITESPACE and text[j] not in _PUNCTUATION and text[j] not in '"/':
                j += 1
            if j == i:
                raise ProfileDocumentError(f"Unexpected character {ch!r} at offset {i}")
            kind = LITERAL

        tokens.append(Token(kind, i, j))
        i = j

    return tokens


def _next_significant(tokens: list[Token], index: int) -> int | None:
    while index < len(tokens):
        if tokens[index].kind not in _TRIVIA:
            return index
        index += 1
    return None


def _is_punct(text: str, token: Token, chars: str) -> bool:
    return token.kind == PUNCT and text[token.start] in chars


def _skip_value(text: str, tokens: list[Token], index: int) -> int:
    """Return the index of the last token of the value starting at `index`."""
    token = tokens[index]
    if token.kind in (STRING, LITERAL):
        return index
    if not _is_punct(text, token, "{["):
        raise ProfileDocumentError(f"Expected a value at offset {token.start}")

    depth = 0
    while index < len(tokens):
        token = tokens[index]
        if _is_punct(text, token, "{["):
            depth += 1
        elif _is_punct(text, token, "}]"):
            depth -= 1
            if depth == 0:
                return index
        index += 1
    raise ProfileDocumentError("Unterminated object or array")


def _leading_start(text: str, tokens: list[Token], first: int, key_index: int) -> int:
    # Trivia on the same line as the previous separator belongs to the previous member
    for token in tokens[first:key_index]:
        if token.kind == WHITESPACE and "\n" in text[token.start : token.end]:
            return text.index("\n", token.start) + 1
    return tokens[key_index].start


def _trailing_end(text: str, tokens: list[Token], index: int, offset: int) -> int:
    # Extend past comments and whitespace up to and including the end of the line
    while index < len(tokens) and tokens[index].kind in _TRIVIA:
        token = tokens[index]
        if token.kind == WHITESPACE and "\n" in text[token.start : token.end]:
            return text.index("\n", token.start) + 1
        offset = token.end
        index += 1
    return offset


def parse_root(text: str) -> RootObject | None:
    """Locate the top-level members of the document's root object.

    Returns:
        The root object, or None when the document's root is not an object

    Raises:
        ProfileDocumentError: If the root object is malformed
    """
    tokens = tokenize(text)
    index = _next_significant(tokens, 0)
    if index is None or not _is_punct(text, tokens[index], "{"):
        return None

    open_end = tokens[index].end
    members = []
    first = index + 1

    while True:
        key_index = _next_significant(tokens, first)
        if key_index is None:
            raise ProfileDocumentError("Unterminated object")

        key_token = tokens[key_index]
        if _is_punct(text, key_token, "}"):
            return RootObject(open_end=open_end, close_start=key_token.start, members=members)
        if key_token.kind != STRING:
            raise ProfileDocumentError(f"Expected a property name at offset {key_token.start}")

        colon = _next_significant(tokens, key_index + 1)
        if colon is None or not _is_punct(text, tokens[colon], ":"):
            raise ProfileDocumentError(f"Expected ':' after property name at offset {key_token.start}")

        value_index = _next_significant(tokens, colon + 1)
        if value_index is None:
            raise ProfileDocumentError("Unterminated object")
        last = _skip_value(text, tokens, value_index)
        value_end = tokens[last].end

        after = _next_significant(tokens, last + 1)
        if after is None:
            raise ProfileDocumentError("Unterminated object")

        comma_start = None
        if _is_punct(text, tokens[after], ","):
            comma_start = tokens[after].start
            end = _trailing_end(text, tokens, after + 1, tokens[after].end)
            first = after + 1
        elif _is_punct(text, tokens[after], "}"):
            end = _trailing_end(text, tokens, last + 1, value_end)
            first = after
        else:
            raise ProfileDocumentError(f"Expected ',' or '}}' at offset {tokens[after].start}")

        if members:
            start = members[-1].end
        else:
            start = _leading_start(text, tokens, index + 1, key_index)

        members.append(
            Member(
                key=json.loads(text[key_token.start : key_token.end]),
                start=start,
                value_end=value_end,
                comma_start=comma_start,
                end=end,
            )
        )


def strip_bom(text: str) -> str:
    """Drop a leading byte order mark."""
    return text[1:] if text.startswith(_BOM) else text


def _splice(text: str, ranges: list[tuple[int, int]]) -> str:
    merged: list[list[int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    pieces = []
    cursor = 0
    for start, end in merged:
        pieces.append(text[cursor:start])
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)


def strip_comments(text: str) -> str:
    """Remove every comment, dropping lines that only held a comment."""
    ranges = []
    for token in tokenize(text):
        if token.kind not in (LINE_COMMENT, BLOCK_COMMENT):
            continue

        line_start = text.rfind("\n", 0, token.start) + 1
        line_end = text.find("\n", token.end)
        line_end = len(text) if line_end == -1 else line_end
        before = text[line_start : token.start]
        after = text[token.end : line_end]

        if not before.strip() and not after.strip():
            ranges.append((line_start, min(line_end + 1, len(text))))
        elif not after.strip():
            ranges.append((token.start - (len(before) - len(before.rstrip())), token.end))
        else:
            ranges.append((token.start, token.end + (len(after) - len(after.lstrip(" \t")))))

    return _splice(text, ranges) if ranges else text


def _trailing_commas(text: str, tokens: list[Token]) -> list[tuple[int, int]]:
    ranges = []
    for index, token in enumerate(tokens):
        if not _is_punct(text, token, ","):
            continue
        following = _next_significant(tokens, index + 1)
        if following is not None and _is_punct(text, tokens[following], "}]"):
            ranges.append((token.start, token.end))
    return ranges


def loads(text: str) -> Any:
    """Parse a JSONC document into Python data.

    Raises:
        ProfileDocumentError: If the document is not valid JSON once comments
            and trailing commas are removed
    """
    stripped = strip_comments(strip_bom(text))
    stripped = _splice(stripped, _trailing_commas(stripped, tokenize(stripped)))
    try:
        return json.loads(stripped)
    except json.JSONDecodeError as e:
        raise ProfileDocumentError(f"Invalid JSON document: {e}") from e


def normalize(text: str) -> str:
    """Drop trailing commas and check the document parses, keeping comments.

    Raises:
        ProfileDocumentError: If the document is malformed
    """
    text = strip_bom(text)
    normalized = _splice(text, _trailing_commas(text, tokenize(text)))
    loads(normalized)
    return normalized


def remove_properties(text: str, keys: list[str]) -> str:
    """Remove top-level properties named in `keys`, with their leading comments."""
    root = parse_root(text)
    if root is None or not keys:
        return text

    ignored = set(keys)
    dropped = [member for member in root.members if member.key in ignored]
    if not dropped:
        return text

    ranges = [(member.start, member.end) for member in dropped]

    kept = [member for member in root.members if member.key not in ignored]
    if kept and kept[-1] is not root.members[-1] and root.members[-1].comma_start is None:
        # the new last member must not keep a dangling comma
        comma = kept[-1].comma_start
        ranges.append((comma, comma + 1))

    return _splice(text, ranges)


def _strip_blank_lines(fragment: str) -> str:
    lines = fragment.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    return "\n".join(lines)


def extract_properties(text: str, keys: list[str]) -> str:
    """Return the source of the top-level properties named in `keys`.

    The result is a comma-separated member list (leading comments included)
    suitable for `insert_properties`, or an empty string when nothing matches.
    """
    root = parse_root(text)
    if root is None or not keys:
        return ""

    wanted = set(keys)
    fragments = [_strip_blank_lines(text[member.start : member.value_end]) for member in root.members if member.key in wanted]
    return ",\n".join(fragments)


def insert_properties(text: str, fragment: str) -> str:
    """Append a member list produced by `extract_properties` to the root object.

    Raises:
        ProfileDocumentError: If the document's root is not an object
    """
    if not fragment.strip():
        return text

    root = parse_root(text)
    if root is None:
        raise ProfileDocumentError("Cannot insert properties: document root is not an object")

    if not root.members:
        position = root.open_end
        tail = "" if text[position:].startswith(("\n", "\r\n")) else "\n"
        return text[:position] + "\n" + fragment + tail + text[position:]

    last = root.members[-1]
    position = last.end
    if text[position - 1 : position] == "\n":
        position -= 1
        if text[position - 1 : position] == "\r":
            position -= 1
    tail = "" if text[position:].startswith(("\n", "\r\n")) else "\n"

    if last.comma_start is not None:
        return text[:position] + "\n" + fragment + tail + text[position:]

    return text[: last.value_end] + "," + text[last.value_end : position] + "\n" + fragment + tail + text[position:]


def filter_ignored_settings(keys: list[str]) -> list[str]:
    """Drop keys of the sync settings namespace from an ignore list."""
    return [key for key in keys if not key.startswith(SETTINGS_NAMESPACE)]
