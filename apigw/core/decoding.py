"""Strict decoding of JSON request bodies.

A body is accepted only when it is declared as JSON, fits under the size cap,
and holds exactly one JSON object whose keys and value types match the target
model. Every rejection is a `DecodeError` with the HTTP status and a message
naming what was wrong; the first violated rule wins:

1. content type            -> 415
2. size cap                -> 413
3. syntax / empty / truncated / wrong type / unknown key -> 400
   (anything else going wrong while reading the body -> 500)
4. data after the object   -> 400

Classification follows Go's encoding/json, which the backend services speak:

- a syntax error reports the number of bytes read up to and including the
  offending byte;
- a type error reports the read position just past the offending scalar, or
  just past the opening bracket of an offending array or object;
- keys match a field exactly or, failing that, case-insensitively;
- containers may nest at most `MAX_DEPTH` levels;
- invalid UTF-8 inside strings becomes U+FFFD.

The body is scanned iteratively, so nesting depth never touches the
interpreter's recursion limit.
"""

from __future__ import annotations

from contextlib import aclosing
from functools import lru_cache
import json
import re
from typing import Any, Final, Iterator, NamedTuple, TypeVar, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError
from starlette.requests import Request

from apigw.core.errors import BodyTooLargeError, DecodeError

MAX_BODY_BYTES: Final[int] = 64_000
MAX_DEPTH: Final[int] = 10_000
JSON_CONTENT_TYPE: Final[str] = "application/json"

MSG_WRONG_CONTENT_TYPE: Final[str] = "content-type is not application/json"
MSG_EMPTY_BODY: Final[str] = "body must not be empty"
MSG_TRUNCATED: Final[str] = "malformed json"
MSG_TRAILING_DATA: Final[str] = "body must contain only one JSON object"

ShapeT = TypeVar("ShapeT", bound=BaseModel)

_QUOTE, _BACKSLASH, _COMMA, _COLON = b'"', b"\\", b",", b":"
_LBRACE, _RBRACE, _LBRACKET, _RBRACKET = b"{", b"}", b"[", b"]"
_WHITESPACE: Final[frozenset[int]] = frozenset(b" \t\n\r")
_DIGITS: Final[frozenset[int]] = frozenset(b"0123456789")
_HEX: Final[frozenset[int]] = frozenset(b"0123456789abcdefABCDEF")
_ESCAPES: Final[frozenset[int]] = frozenset(b'"\\/bfnrt')
_LITERALS: Final[dict[int, bytes]] = {ord("t"): b"true", ord("f"): b"false", ord("n"): b"null"}

_PLAIN_STRING_RUN = re.compile(rb'[^"\\\x00-\x1f]*')
_DIGIT_RUN = re.compile(rb"[0-9]*")


class _Malformed(Exception):
    """Syntax error at byte `pos`, or input ended mid-value when `pos` is None."""

    def __init__(self, pos: int | None) -> None:
        super().__init__(pos)
        self.pos = pos


class _Mismatch(Exception):
    """A well-formed value of the wrong type; `offset` is what gets reported."""

    def __init__(self, offset: int) -> None:
        super().__init__(offset)
        self.offset = offset


class _Member(NamedTuple):
    key: str
    start: int
    end: int


async def read_body(request: Request, limit: int = MAX_BODY_BYTES) -> bytes:
    """Read the request body, giving up as soon as it grows past `limit` bytes."""

    buf = bytearray()
    async with aclosing(request.stream()) as chunks:
        async for chunk in chunks:
            buf += chunk
            if len(buf) > limit:
                raise BodyTooLargeError(limit)
    return bytes(buf)


async def decode_json_body(request: Request, shape: type[ShapeT]) -> ShapeT:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(JSON_CONTENT_TYPE):
        raise DecodeError(415, MSG_WRONG_CONTENT_TYPE)

    try:
        raw = await read_body(request)
    except BodyTooLargeError as exc:
        raise DecodeError(413, str(exc)) from exc
    except Exception as exc:
        # Client disconnects and other transport failures mid-read.
        raise DecodeError(500, f"failed to decode json: {exc}") from exc

    return decode_json_object(raw, shape)


def decode_json_object(raw: bytes, shape: type[ShapeT]) -> ShapeT:
    """Decode `raw` as exactly one JSON object matching `shape`."""

    start = _skip_whitespace(raw, 0)
    if start == len(raw):
        raise DecodeError(400, MSG_EMPTY_BODY)

    members: list[_Member] | None
    try:
        if raw[start : start + 1] == _LBRACE:
            members, end = _scan_object(raw, start)
        else:
            members, end = None, _end_of_value(raw, start, 0)
    except _Malformed as exc:
        if exc.pos is None:
            raise DecodeError(400, MSG_TRUNCATED) from None
        raise DecodeError(400, f"malformed json at position {exc.pos + 1}") from None

    if members is None:
        raise DecodeError(400, f"invalid value at position {_mismatch_offset(raw, start, end)}")

    data = _check_members(raw, members, shape)

    if _skip_whitespace(raw, end) < len(raw):
        raise DecodeError(400, MSG_TRAILING_DATA)

    try:
        return shape.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(500, f"failed to decode json: {exc}") from exc


# Scanning. Every function takes the index of the first byte to look at and
# returns the index just past what it consumed.


def _skip_whitespace(raw: bytes, idx: int) -> int:
    n = len(raw)
    while idx < n and raw[idx] in _WHITESPACE:
        idx += 1
    return idx


def _expect_more(raw: bytes, idx: int) -> None:
    if idx >= len(raw):
        raise _Malformed(None)


def _end_of_string(raw: bytes, idx: int) -> int:
    idx += 1
    while True:
        idx = _PLAIN_STRING_RUN.match(raw, idx).end()
        _expect_more(raw, idx)
        c = raw[idx : idx + 1]
        if c == _QUOTE:
            return idx + 1
        if c != _BACKSLASH:
            # Control character.
            raise _Malformed(idx)

        _expect_more(raw, idx + 1)
        escape = raw[idx + 1]
        if escape == ord("u"):
            for pos in range(idx + 2, idx + 6):
                _expect_more(raw, pos)
                if raw[pos] not in _HEX:
                    raise _Malformed(pos)
            idx += 6
        elif escape in _ESCAPES:
            idx += 2
        else:
            raise _Malformed(idx + 1)


def _end_of_digits(raw: bytes, idx: int) -> int:
    _expect_more(raw, idx)
    if raw[idx] not in _DIGITS:
        raise _Malformed(idx)
    return _DIGIT_RUN.match(raw, idx).end()


def _end_of_number(raw: bytes, idx: int) -> int:
    if raw[idx] == ord("-"):
        idx += 1
        _expect_more(raw, idx)
    if raw[idx] == ord("0"):
        idx += 1
    else:
        idx = _end_of_digits(raw, idx)

    if raw[idx : idx + 1] == b".":
        idx = _end_of_digits(raw, idx + 1)
    if raw[idx : idx + 1] in (b"e", b"E"):
        idx += 1
        if raw[idx : idx + 1] in (b"+", b"-"):
            idx += 1
        idx = _end_of_digits(raw, idx)
    return idx


def _end_of_literal(raw: bytes, idx: int, word: bytes) -> int:
    for pos, expected in enumerate(word, start=idx):
        _expect_more(raw, pos)
        if raw[pos] != expected:
            raise _Malformed(pos)
    return idx + len(word)


def _end_of_scalar(raw: bytes, idx: int) -> int:
    c = raw[idx]
    if c == _QUOTE[0]:
        return _end_of_string(raw, idx)
    if c == ord("-") or c in _DIGITS:
        return _end_of_number(raw, idx)
    if c in _LITERALS:
        return _end_of_literal(raw, idx, _LITERALS[c])
    raise _Malformed(idx)


def _end_of_key(raw: bytes, idx: int) -> tuple[int, int]:
    """Scan `"key" :` and return the end of the key string and the end of the colon."""

    _expect_more(raw, idx)
    if raw[idx : idx + 1] != _QUOTE:
        raise _Malformed(idx)
    key_end = _end_of_string(raw, idx)

    idx = _skip_whitespace(raw, key_end)
    _expect_more(raw, idx)
    if raw[idx : idx + 1] != _COLON:
        raise _Malformed(idx)
    return key_end, idx + 1


def _end_of_value(raw: bytes, idx: int, depth: int) -> int:
    """Skip one JSON value sitting inside `depth` open containers.

    Containers are tracked on an explicit stack of closing brackets.
    """

    stack: list[bytes] = []
    while True:
        idx = _skip_whitespace(raw, idx)
        _expect_more(raw, idx)
        c = raw[idx : idx + 1]
        if c == _LBRACE or c == _LBRACKET:
            if depth + len(stack) >= MAX_DEPTH:
                raise _Malformed(idx)
            closer = _RBRACE if c == _LBRACE else _RBRACKET
            stack.append(closer)
            idx = _skip_whitespace(raw, idx + 1)
            _expect_more(raw, idx)
            if raw[idx : idx + 1] != closer:
                if closer == _RBRACE:
                    idx = _end_of_key(raw, idx)[1]
                continue
            stack.pop()
            idx += 1
        else:
            idx = _end_of_scalar(raw, idx)

        # A value just ended: close containers until one expects another item.
        while stack:
            idx = _skip_whitespace(raw, idx)
            _expect_more(raw, idx)
            c = raw[idx : idx + 1]
            if c == stack[-1]:
                stack.pop()
                idx += 1
            elif c == _COMMA:
                idx += 1
                if stack[-1] == _RBRACE:
                    idx = _end_of_key(raw, _skip_whitespace(raw, idx))[1]
                break
            else:
                raise _Malformed(idx)
        else:
            return idx


def _scan_object(raw: bytes, idx: int) -> tuple[list[_Member], int]:
    """Scan the top-level object opening at `idx`, keeping where each value sits."""

    members: list[_Member] = []
    idx = _skip_whitespace(raw, idx + 1)
    _expect_more(raw, idx)
    if raw[idx : idx + 1] == _RBRACE:
        return members, idx + 1

    while True:
        key_end, colon_end = _end_of_key(raw, idx)
        start = _skip_whitespace(raw, colon_end)
        end = _end_of_value(raw, start, 1)
        members.append(_Member(_load(raw, idx, key_end), start, end))

        idx = _skip_whitespace(raw, end)
        _expect_more(raw, idx)
        c = raw[idx : idx + 1]
        if c == _RBRACE:
            return members, idx + 1
        if c != _COMMA:
            raise _Malformed(idx)
        idx = _skip_whitespace(raw, idx + 1)


def _array_items(raw: bytes, idx: int, depth: int) -> Iterator[tuple[int, int]]:
    """Yield the bounds of each item of the already-scanned array opening at `idx`."""

    idx = _skip_whitespace(raw, idx + 1)
    if raw[idx : idx + 1] == _RBRACKET:
        return
    while True:
        end = _end_of_value(raw, idx, depth + 1)
        yield idx, end
        idx = _skip_whitespace(raw, end)
        if raw[idx : idx + 1] == _RBRACKET:
            return
        idx = _skip_whitespace(raw, idx + 1)


def _load(raw: bytes, start: int, end: int) -> Any:
    return json.loads(raw[start:end].decode("utf-8", "replace"))


# Typing. Only scanned input reaches these.


def _mismatch_offset(raw: bytes, start: int, end: int) -> int:
    if raw[start : start + 1] in (_LBRACE, _LBRACKET):
        return start + 1
    return end


def _is_null(raw: bytes, start: int) -> bool:
    return raw[start : start + 1] == b"n"


def _scalar_value(raw: bytes, start: int, end: int, annotation: Any) -> Any:
    if raw[start : start + 1] in (_LBRACE, _LBRACKET):
        raise _Mismatch(start + 1)
    try:
        value = _load(raw, start, end)
        _adapter(annotation).validate_python(value, strict=True)
    except (ValueError, ValidationError):
        # ValueError covers integers too long to convert.
        raise _Mismatch(end) from None
    return value


def _field_value(raw: bytes, start: int, end: int, annotation: Any) -> Any:
    if get_origin(annotation) is not list:
        return _scalar_value(raw, start, end, annotation)
    if raw[start : start + 1] != _LBRACKET:
        raise _Mismatch(_mismatch_offset(raw, start, end))

    (item_type,) = get_args(annotation)
    items = []
    for item_start, item_end in _array_items(raw, start, 1):
        if _is_null(raw, item_start):
            items.append(item_type())
        else:
            items.append(_scalar_value(raw, item_start, item_end, item_type))
    return items


def _check_members(raw: bytes, members: list[_Member], shape: type[BaseModel]) -> dict[str, Any]:
    fields = _shape_fields(shape)
    data: dict[str, Any] = {}

    # Members are checked in document order so the first offending key is reported.
    for member in members:
        name = _match_field(fields, member.key)
        if name is None:
            raise DecodeError(400, f"unknown field {json.dumps(member.key)}")

        annotation = fields[name]
        if _is_null(raw, member.start):
            # null empties a list and leaves anything else as it was.
            if get_origin(annotation) is list:
                data[name] = []
            continue

        try:
            data[name] = _field_value(raw, member.start, member.end, annotation)
        except _Mismatch as exc:
            raise DecodeError(400, f"invalid value {json.dumps(name)} at position {exc.offset}") from None

    return data


def _match_field(fields: dict[str, Any], key: str) -> str | None:
    if key in fields:
        return key
    folded = key.casefold()
    for name in fields:
        if name.casefold() == folded:
            return name
    return None


@lru_cache(maxsize=None)
def _shape_fields(shape: type[BaseModel]) -> dict[str, Any]:
    return {(info.alias or name): info.annotation for name, info in shape.model_fields.items()}


@lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)
