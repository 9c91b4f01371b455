"""Compact binary encoding of entries, entry maps and trees.

Integers use a variable-length form: values below 251 take one byte,
larger values a marker byte followed by a little-endian integer of 2, 4,
8 or 16 bytes. Floats are 8-byte little-endian doubles.
"""

from __future__ import annotations

import io
import struct
from typing import Any, BinaryIO, Callable, Dict, Mapping, Union

from rankboard.entry import Entry
from rankboard.node import Node
from rankboard.tree import Tree

_MARK_U16 = 251
_MARK_U32 = 252
_MARK_U64 = 253
_MARK_U128 = 254

_WIDTHS = {_MARK_U16: 2, _MARK_U32: 4, _MARK_U64: 8, _MARK_U128: 16}

_DOUBLE = struct.Struct("<d")

_LEFT, _RIGHT, _DONE = range(3)

Source = Union[bytes, bytearray, memoryview, BinaryIO]


def _as_stream(data: Source) -> BinaryIO:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(data))
    return data


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunk = stream.read(size)
    if len(chunk) < size:
        raise ValueError("unexpected end of data")
    return chunk


def write_varint(value: int) -> bytes:
    """Encode a non-negative integer in variable-length form."""
    if value < 0:
        raise ValueError(f"cannot encode negative integer {value}")
    if value < _MARK_U16:
        return bytes([value])
    for marker, width in _WIDTHS.items():
        if value < 1 << (8 * width):
            return bytes([marker]) + value.to_bytes(width, "little")
    raise ValueError(f"integer {value} is too large to encode")


def read_varint(stream: BinaryIO) -> int:
    """Read one variable-length integer from a binary stream."""
    marker = _read_exact(stream, 1)[0]
    if marker < _MARK_U16:
        return marker
    width = _WIDTHS.get(marker)
    if width is None:
        raise ValueError(f"invalid integer marker byte {marker}")
    return int.from_bytes(_read_exact(stream, width), "little")


def _write_double(value: float) -> bytes:
    return _DOUBLE.pack(value)


def _read_double(stream: BinaryIO) -> float:
    return _DOUBLE.unpack(_read_exact(stream, _DOUBLE.size))[0]


def encode_entry(entry: Entry) -> bytes:
    """Encode an entry as key, timestamp, points."""
    return write_varint(entry.key) + _write_double(entry.timestamp) + _write_double(entry.points)


def decode_entry(stream: BinaryIO) -> Entry:
    """Read one entry from a binary stream."""
    key = read_varint(stream)
    timestamp = _read_double(stream)
    points = _read_double(stream)
    return Entry(key=key, points=points, timestamp=timestamp)


def encode_entry_map(mapping: Mapping[int, Entry]) -> bytes:
    """Encode a key-to-entry mapping: its length, then each key and entry."""
    out = bytearray(write_varint(len(mapping)))
    for key, entry in mapping.items():
        out += write_varint(key)
        out += encode_entry(entry)
    return bytes(out)


def decode_entry_map(data: Source) -> Dict[int, Entry]:
    """Decode a key-to-entry mapping from bytes or a binary stream."""
    stream = _as_stream(data)
    length = read_varint(stream)
    result: Dict[int, Entry] = {}
    for _ in range(length):
        key = read_varint(stream)
        result[key] = decode_entry(stream)
    return result


def encode_tree(tree: Tree, encode_value: Callable[[Any], bytes]) -> bytes:
    """Encode a tree's shape and values in pre-order.

    A present child is marked by 1 and an absent one by 0, so the tree is
    rebuilt with the very same shape.
    """
    root = tree.sentinel.right
    if root is None:
        return b"\x00"
    out = bytearray(b"\x01")
    stack = [[root, _LEFT]]
    while stack:
        frame = stack[-1]
        node, state = frame
        if state == _LEFT:
            out += encode_value(node.val)
            frame[1] = _RIGHT
            child = node.left
        elif state == _RIGHT:
            frame[1] = _DONE
            child = node.right
        else:
            stack.pop()
            continue
        if child is None:
            out.append(0)
        else:
            out.append(1)
            stack.append([child, _LEFT])
    return bytes(out)


def decode_tree(data: Source, decode_value: Callable[[BinaryIO], Any]) -> Tree:
    """Rebuild a tree written by encode_tree, keeping its shape."""
    stream = _as_stream(data)
    tree = Tree()
    sentinel = tree.sentinel
    if _read_exact(stream, 1)[0] != 1:
        return tree
    root = Node(decode_value(stream), sentinel, False)
    sentinel.right = root
    stack = [[root, _LEFT]]
    while stack:
        frame = stack[-1]
        node, state = frame
        if state == _DONE:
            node.fix()
            stack.pop()
            continue
        is_left = state == _LEFT
        frame[1] = _RIGHT if is_left else _DONE
        if _read_exact(stream, 1)[0] == 1:
            child = Node(decode_value(stream), node, is_left)
            if is_left:
                node.left = child
            else:
                node.right = child
            stack.append([child, _LEFT])
    return tree