"""Qt QDataStream encoding of QMap<QString, QString>.

KWallet stores map entries as the raw bytes a Qt client streams out, so map
payloads crossing D-Bus use this layout:

- quint32 entry count, big-endian
- per entry: key QString, value QString
- QString: quint32 byte length (0xFFFFFFFF for a null string), then UTF-16BE
"""

from __future__ import annotations

import struct

from gitkwallet.wallet.base import WalletError

_UINT32 = struct.Struct(">I")
_NULL_STRING = 0xFFFFFFFF


class QDataStreamError(WalletError):
    """Raised when a map payload cannot be decoded."""


def _encode_string(value: str) -> bytes:
    data = value.encode("utf-16-be")
    return _UINT32.pack(len(data)) + data


def encode_string_map(value: dict[str, str]) -> bytes:
    # QMap iterates in key order; UTF-16 code unit order matches Qt's QString compare.
    items = sorted(value.items(), key=lambda item: item[0].encode("utf-16-be"))
    parts = [_UINT32.pack(len(items))]
    for key, item in items:
        parts.append(_encode_string(key))
        parts.append(_encode_string(item))
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def uint32(self) -> int:
        if self._pos + _UINT32.size > len(self._data):
            raise QDataStreamError("truncated map payload")
        (value,) = _UINT32.unpack_from(self._data, self._pos)
        self._pos += _UINT32.size
        return value

    def string(self) -> str:
        length = self.uint32()
        if length == _NULL_STRING:
            return ""
        if length % 2 or self._pos + length > len(self._data):
            raise QDataStreamError("invalid string in map payload")
        raw = self._data[self._pos : self._pos + length]
        self._pos += length
        try:
            return raw.decode("utf-16-be")
        except UnicodeDecodeError as exc:
            raise QDataStreamError("invalid UTF-16 in map payload") from exc


def decode_string_map(data: bytes) -> dict[str, str]:
    if not data:
        return {}
    reader = _Reader(bytes(data))
    count = reader.uint32()
    result: dict[str, str] = {}
    for _ in range(count):
        key = reader.string()
        value = reader.string()
        result[key] = value
    return result
