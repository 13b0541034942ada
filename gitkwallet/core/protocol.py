"""git credential protocol codec.

Input is newline-delimited ``name=value`` pairs read until end-of-input.
Output carries only the username and password fields.
"""

from __future__ import annotations

import io
import sys
from dataclasses import dataclass
from typing import Optional, TextIO

from gitkwallet.models.credential import Credential


@dataclass(frozen=True)
class _Field:
    name: str
    attr: str


FIELDS: tuple[_Field, ...] = (
    _Field("protocol", "protocol"),
    _Field("host", "host"),
    _Field("username", "username"),
    _Field("password", "password"),
)
_FIELDS_BY_NAME = {field.name: field for field in FIELDS}
_OUTPUT_FIELDS = (_FIELDS_BY_NAME["username"], _FIELDS_BY_NAME["password"])


def _strip_terminator(line: str) -> str:
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def read(stream: Optional[TextIO] = None) -> Credential:
    source = sys.stdin if stream is None else stream
    # git passes raw bytes through (e.g. percent-decoded URL parts); undecodable ones become U+FFFD.
    if isinstance(source, io.TextIOWrapper):
        source.reconfigure(encoding="utf-8", errors="replace")
    result = Credential()
    for raw in source:
        line = _strip_terminator(raw)
        name, sep, value = line.partition("=")
        if not sep:
            continue
        field = _FIELDS_BY_NAME.get(name)
        if field is None:
            continue
        setattr(result, field.attr, value)
    return result


def write(credential: Credential, stream: Optional[TextIO] = None) -> None:
    out = sys.stdout if stream is None else stream
    for field in _OUTPUT_FIELDS:
        value = getattr(credential, field.attr)
        if value:
            out.write(f"{field.name}={value}\n")
    out.flush()
