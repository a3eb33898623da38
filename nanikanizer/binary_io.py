"""Little-endian binary serialisation of scalars and arrays.

Integers of every width are stored as 8 bytes (signed or unsigned), booleans
as a signed 8-byte 0 or 1, floats as 4 bytes and doubles as 8 bytes. An
array is its element count as an unsigned 8-byte integer followed by its
elements.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

import numpy as np

_INT64 = struct.Struct("<q")
_UINT64 = struct.Struct("<Q")
_FLOAT = struct.Struct("<f")
_DOUBLE = struct.Struct("<d")
_WIDTHS = (8, 16, 32, 64)


def _pack(fmt: struct.Struct, value) -> bytes:
    try:
        return fmt.pack(value)
    except struct.error as exc:
        raise OverflowError(f"{value!r} does not fit the binary format") from exc


def _check_bits(bits: int) -> None:
    if bits not in _WIDTHS:
        raise ValueError(f"unsupported integer width {bits}")


class BinaryWriter:
    """Writes values to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write_bool(self, value: bool) -> None:
        self.write_int(1 if value else 0)

    def write_int(self, value: int) -> None:
        self._stream.write(_pack(_INT64, int(value)))

    def write_uint(self, value: int) -> None:
        self._stream.write(_pack(_UINT64, int(value)))

    def write_float(self, value: float) -> None:
        self._stream.write(_pack(_FLOAT, float(value)))

    def write_double(self, value: float) -> None:
        self._stream.write(_pack(_DOUBLE, float(value)))

    def write_array(self, values) -> None:
        """Write the element count, then every element in the array's own type."""
        array = np.asarray(values).ravel()
        kind = array.dtype
        if kind == np.float32:
            data = array.astype("<f4")
        elif np.issubdtype(kind, np.floating):
            data = array.astype("<f8")
        elif kind == np.bool_ or np.issubdtype(kind, np.signedinteger):
            data = array.astype("<i8")
        elif np.issubdtype(kind, np.unsignedinteger):
            data = array.astype("<u8")
        else:
            raise TypeError(f"cannot write arrays of {kind}")
        self.write_uint(array.size)
        self._stream.write(data.tobytes())


class BinaryReader:
    """Reads values written by :class:`BinaryWriter`."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def _read(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) < size:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        return data

    def read_bool(self) -> bool:
        return self.read_int() != 0

    def read_int(self, bits: int = 64) -> int:
        """Read a signed integer, checking that it fits in ``bits`` bits."""
        _check_bits(bits)
        (value,) = _INT64.unpack(self._read(8))
        limit = 1 << (bits - 1)
        if not -limit <= value < limit:
            raise OverflowError(f"{value} does not fit in a signed {bits}-bit integer")
        return value

    def read_uint(self, bits: int = 64) -> int:
        """Read an unsigned integer, checking that it fits in ``bits`` bits."""
        _check_bits(bits)
        (value,) = _UINT64.unpack(self._read(8))
        if value >= 1 << bits:
            raise OverflowError(f"{value} does not fit in an unsigned {bits}-bit integer")
        return value

    def read_float(self) -> float:
        (value,) = _FLOAT.unpack(self._read(4))
        return value

    def read_double(self) -> float:
        (value,) = _DOUBLE.unpack(self._read(8))
        return value

    def read_array(self, dtype=np.float64) -> np.ndarray:
        """Read an array whose elements are stored as ``dtype`` values."""
        kind = np.dtype(dtype)
        size = self.read_uint()
        if kind == np.float32:
            return np.frombuffer(self._read(4 * size), dtype="<f4").astype(np.float32)
        if np.issubdtype(kind, np.floating):
            return np.frombuffer(self._read(8 * size), dtype="<f8").astype(kind)
        if kind == np.bool_:
            return np.frombuffer(self._read(8 * size), dtype="<i8") != 0
        if np.issubdtype(kind, np.signedinteger):
            raw = np.frombuffer(self._read(8 * size), dtype="<i8")
        elif np.issubdtype(kind, np.unsignedinteger):
            raw = np.frombuffer(self._read(8 * size), dtype="<u8")
        else:
            raise TypeError(f"cannot read arrays of {kind}")
        info = np.iinfo(kind)
        if raw.size and (raw.min() < info.min or raw.max() > info.max):
            raise OverflowError(f"array values do not fit in {kind}")
        return raw.astype(kind)