"""Minimal NBT reader/writer (no external deps).

Values read from disk keep their tag types so a file can be written back
unchanged: compounds remember the tag of each key (``NbtCompound.tags``),
lists remember their element tag (``NbtList``), and the numeric tags without
a natural Python type come back as ``Byte``/``Short``/``Long``/``Float``
wrappers or ``IntArray``/``LongArray`` lists.
"""

from __future__ import annotations

import gzip
import struct
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

TAG_END = 0
TAG_BYTE = 1
TAG_SHORT = 2
TAG_INT = 3
TAG_LONG = 4
TAG_FLOAT = 5
TAG_DOUBLE = 6
TAG_BYTE_ARRAY = 7
TAG_STRING = 8
TAG_LIST = 9
TAG_COMPOUND = 10
TAG_INT_ARRAY = 11
TAG_LONG_ARRAY = 12

GZIP_MAGIC = b"\x1f\x8b"


class NBTError(Exception):
    pass


class Byte(int):
    pass


class Short(int):
    pass


class Long(int):
    pass


class Float(float):
    pass


class IntArray(list):
    pass


class LongArray(list):
    pass


@dataclass
class NbtList:
    inner_tag: int
    items: List[Any] = field(default_factory=list)


class NbtCompound(dict):
    """dict that remembers the tag each key was read with."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.tags: Dict[str, int] = {}


class _Buf:
    __slots__ = ("b", "o")

    def __init__(self, b: bytes):
        self.b = b
        self.o = 0

    def read(self, n: int) -> bytes:
        if self.o + n > len(self.b):
            raise NBTError("unexpected EOF")
        v = self.b[self.o : self.o + n]
        self.o += n
        return v

    def read_u8(self) -> int:
        return self.read(1)[0]

    def read_i8(self) -> int:
        return struct.unpack(">b", self.read(1))[0]

    def read_i16(self) -> int:
        return struct.unpack(">h", self.read(2))[0]

    def read_i32(self) -> int:
        return struct.unpack(">i", self.read(4))[0]

    def read_i64(self) -> int:
        return struct.unpack(">q", self.read(8))[0]

    def read_string(self) -> str:
        ln = struct.unpack(">H", self.read(2))[0]
        try:
            return self.read(ln).decode("utf-8", errors="strict")
        except UnicodeDecodeError as e:
            raise NBTError(f"invalid string at offset {self.o}: {e}") from e


def _read_payload(buf: _Buf, tag: int) -> Any:
    if tag == TAG_BYTE:
        return Byte(buf.read_i8())
    if tag == TAG_SHORT:
        return Short(buf.read_i16())
    if tag == TAG_INT:
        return buf.read_i32()
    if tag == TAG_LONG:
        return Long(buf.read_i64())
    if tag == TAG_FLOAT:
        return Float(struct.unpack(">f", buf.read(4))[0])
    if tag == TAG_DOUBLE:
        return struct.unpack(">d", buf.read(8))[0]
    if tag == TAG_BYTE_ARRAY:
        ln = buf.read_i32()
        if ln < 0:
            raise NBTError("negative byte array length")
        return buf.read(ln)
    if tag == TAG_STRING:
        return buf.read_string()
    if tag == TAG_LIST:
        inner = buf.read_u8()
        ln = buf.read_i32()
        if ln < 0:
            raise NBTError("negative list length")
        return NbtList(inner_tag=inner, items=[_read_payload(buf, inner) for _ in range(ln)])
    if tag == TAG_COMPOUND:
        out = NbtCompound()
        while True:
            t = buf.read_u8()
            if t == TAG_END:
                return out
            name = buf.read_string()
            out[name] = _read_payload(buf, t)
            out.tags[name] = t
    if tag == TAG_INT_ARRAY:
        ln = buf.read_i32()
        if ln < 0:
            raise NBTError("negative int array length")
        return IntArray(struct.unpack(f">{ln}i", buf.read(4 * ln)))
    if tag == TAG_LONG_ARRAY:
        ln = buf.read_i32()
        if ln < 0:
            raise NBTError("negative long array length")
        return LongArray(struct.unpack(f">{ln}q", buf.read(8 * ln)))
    raise NBTError(f"unknown tag {tag}")


def loads(raw: bytes) -> Tuple[str, NbtCompound]:
    """Parse (optionally gzipped) NBT bytes into ``(root_name, root_compound)``."""
    if raw[:2] == GZIP_MAGIC:
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError, zlib.error) as e:
            raise NBTError(f"bad gzip stream: {e}") from e
    buf = _Buf(raw)
    root_t = buf.read_u8()
    if root_t != TAG_COMPOUND:
        raise NBTError(f"unexpected root tag: {root_t} (expected compound)")
    name = buf.read_string()
    root = _read_payload(buf, TAG_COMPOUND)
    return name, root


def read_nbt(path: Path) -> NbtCompound:
    _name, root = loads(path.read_bytes())
    return root


def _enc_i32(v: int) -> bytes:
    return struct.pack(">i", int(v))


def _enc_string(s: str) -> bytes:
    b = s.encode("utf-8", errors="strict")
    if len(b) > 65535:
        raise NBTError("NBT string too long")
    return struct.pack(">H", len(b)) + b


def _tag_type(value: Any) -> int:
    if isinstance(value, (bool, Byte)):
        return TAG_BYTE
    if isinstance(value, Short):
        return TAG_SHORT
    if isinstance(value, Long):
        return TAG_LONG
    if isinstance(value, int):
        return TAG_INT
    if isinstance(value, Float):
        return TAG_FLOAT
    if isinstance(value, float):
        return TAG_DOUBLE
    if isinstance(value, str):
        return TAG_STRING
    if isinstance(value, (bytes, bytearray)):
        return TAG_BYTE_ARRAY
    if isinstance(value, IntArray):
        return TAG_INT_ARRAY
    if isinstance(value, LongArray):
        return TAG_LONG_ARRAY
    if isinstance(value, (NbtList, list)):
        return TAG_LIST
    if isinstance(value, dict):
        return TAG_COMPOUND
    raise NBTError(f"unsupported Python type for NBT write: {type(value)}")


def _write_payload(tag: int, value: Any) -> bytes:
    if tag == TAG_BYTE:
        return struct.pack(">b", int(value))
    if tag == TAG_SHORT:
        return struct.pack(">h", int(value))
    if tag == TAG_INT:
        return _enc_i32(value)
    if tag == TAG_LONG:
        return struct.pack(">q", int(value))
    if tag == TAG_FLOAT:
        return struct.pack(">f", float(value))
    if tag == TAG_DOUBLE:
        return struct.pack(">d", float(value))
    if tag == TAG_BYTE_ARRAY:
        return _enc_i32(len(value)) + bytes(value)
    if tag == TAG_STRING:
        return _enc_string(value)
    if tag == TAG_INT_ARRAY:
        return _enc_i32(len(value)) + struct.pack(f">{len(value)}i", *value)
    if tag == TAG_LONG_ARRAY:
        return _enc_i32(len(value)) + struct.pack(f">{len(value)}q", *value)
    if tag == TAG_COMPOUND:
        if not isinstance(value, dict):
            raise NBTError(f"expected a compound, got {type(value)}")
        tags = getattr(value, "tags", {})
        pieces: List[bytes] = []
        for k, v in value.items():
            t = tags.get(k)
            if t is None:
                t = _tag_type(v)
            pieces.append(bytes([t]) + _enc_string(k) + _write_payload(t, v))
        pieces.append(bytes([TAG_END]))
        return b"".join(pieces)
    if tag == TAG_LIST:
        if isinstance(value, NbtList):
            inner = value.inner_tag
            items = value.items
        else:
            items = list(value)
            inner = _tag_type(items[0]) if items else TAG_END
        if items and inner == TAG_END:
            raise NBTError("non-empty NBT list without element type")
        payloads = []
        for item in items:
            if not isinstance(value, NbtList) and _tag_type(item) != inner:
                raise NBTError("NBT list values must be homogeneous")
            payloads.append(_write_payload(inner, item))
        return bytes([inner]) + _enc_i32(len(items)) + b"".join(payloads)
    raise NBTError(f"unsupported write tag {tag}")


def dumps(root: Dict[str, Any], *, name: str = "", compress: bool = True) -> bytes:
    raw = bytes([TAG_COMPOUND]) + _enc_string(name) + _write_payload(TAG_COMPOUND, root)
    if compress:
        return gzip.compress(raw)
    return raw


def write_nbt(path: Path, root: Dict[str, Any], *, name: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps(root, name=name))
