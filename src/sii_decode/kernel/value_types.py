"""Type identifier table and typed value decoding.

Each field definition names a numeric type identifier. The table below
maps every supported identifier to a (shape, arity) pair; several
identifiers alias the same rule. Arrays are a u32 element count followed
by that many elements.

Refs:
https://github.com/TheLazyTomcat/SII_Decrypt/blob/master/Documents/Binary%20SII%20-%20Types.txt
"""

import struct
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .bsii_file import DataValue, Id, ValueShape
from .byte_reader import ByteReader
from .encoded_string import decode_token
from .errors import UnsupportedTypeError


NAMELESS_ID_MARKER = 0xFF


@dataclass(frozen=True)
class ValueType:
    type_id: int
    shape: ValueShape
    is_array: bool = False


VALUE_TYPES: Dict[int, ValueType] = {}


def _register(shape: ValueShape, scalar_ids=(), array_ids=()) -> None:
    for type_id in scalar_ids:
        VALUE_TYPES[type_id] = ValueType(type_id, shape)
    for type_id in array_ids:
        VALUE_TYPES[type_id] = ValueType(type_id, shape, is_array=True)


_register(ValueShape.STRING, (0x01,), (0x02,))
_register(ValueShape.ENCODED_STRING, (0x03,), (0x04,))
_register(ValueShape.FLOAT, (0x05,), (0x06,))
_register(ValueShape.FLOAT_VEC2, (0x07,), (0x08,))
_register(ValueShape.FLOAT_VEC3, (0x09,), (0x0A,))
_register(ValueShape.INT32_VEC3, (0x11,), (0x12,))
_register(ValueShape.FLOAT_VEC4, (0x17,), (0x18,))
_register(ValueShape.PLACEMENT, (0x19,), (0x1A,))
_register(ValueShape.INT32, (0x25,), (0x26,))
_register(ValueShape.UINT32, (0x27, 0x2F), (0x28,))
_register(ValueShape.INT16, (0x29,), (0x2A,))
_register(ValueShape.UINT16, (0x2B,), (0x2C,))
_register(ValueShape.INT64, (0x31,), (0x32,))
_register(ValueShape.UINT64, (0x33,), (0x34,))
_register(ValueShape.BOOL, (0x35,), (0x36,))
_register(ValueShape.ENUM, (0x37,))
_register(ValueShape.ID, (0x39, 0x3B, 0x3D), (0x3A, 0x3C))


# Fixed-width shapes: one struct per element.
_FIXED_FORMATS: Dict[ValueShape, struct.Struct] = {
    ValueShape.FLOAT: struct.Struct("<f"),
    ValueShape.FLOAT_VEC2: struct.Struct("<2f"),
    ValueShape.FLOAT_VEC3: struct.Struct("<3f"),
    ValueShape.INT32_VEC3: struct.Struct("<3i"),
    ValueShape.FLOAT_VEC4: struct.Struct("<4f"),
    ValueShape.PLACEMENT: struct.Struct("<8f"),
    ValueShape.INT16: struct.Struct("<h"),
    ValueShape.UINT16: struct.Struct("<H"),
    ValueShape.INT32: struct.Struct("<i"),
    ValueShape.UINT32: struct.Struct("<I"),
    ValueShape.INT64: struct.Struct("<q"),
    ValueShape.UINT64: struct.Struct("<Q"),
    ValueShape.BOOL: struct.Struct("<B"),
    ValueShape.ENUM: struct.Struct("<I"),
}

_TUPLE_SHAPES = frozenset({
    ValueShape.FLOAT_VEC2,
    ValueShape.FLOAT_VEC3,
    ValueShape.INT32_VEC3,
    ValueShape.FLOAT_VEC4,
    ValueShape.PLACEMENT,
})


def read_encoded_string(reader: ByteReader) -> str:
    return decode_token(reader.read_u64("encoded string"))


def read_id(reader: ByteReader) -> Id:
    """Read a block id: a length byte, then a raw u64 or that many tokens."""
    length = reader.read_u8("id length")
    if length == NAMELESS_ID_MARKER:
        return Id.from_nameless(reader.read_u64("nameless id"))
    return Id.from_parts(read_encoded_string(reader) for _ in range(length))


_VARIABLE_READERS: Dict[ValueShape, Callable[[ByteReader], Any]] = {
    ValueShape.STRING: lambda reader: reader.read_string("string value"),
    ValueShape.ENCODED_STRING: read_encoded_string,
    ValueShape.ID: read_id,
}


def _convert(shape: ValueShape, unpacked: tuple) -> Any:
    if shape in _TUPLE_SHAPES:
        return unpacked
    if shape is ValueShape.BOOL:
        return unpacked[0] != 0
    return unpacked[0]


def lookup_value_type(type_id: int, context: Optional[str] = None) -> ValueType:
    value_type = VALUE_TYPES.get(type_id)
    if value_type is None:
        raise UnsupportedTypeError(f"Unsupported value type 0x{type_id:x}", context=context)
    return value_type


def read_value(reader: ByteReader, type_id: int, context: Optional[str] = None) -> DataValue:
    """Decode one value of ``type_id`` at the reader's cursor."""
    value_type = lookup_value_type(type_id, context)
    shape = value_type.shape
    fmt = _FIXED_FORMATS.get(shape)

    if not value_type.is_array:
        if fmt is not None:
            return DataValue.scalar(shape, _convert(shape, reader.unpack(fmt, shape.value)))
        return DataValue.scalar(shape, _VARIABLE_READERS[shape](reader))

    count = reader.read_u32(f"{shape.value} array length")
    if fmt is not None:
        items = [_convert(shape, unpacked) for unpacked in reader.iter_unpack(fmt, count, shape.value)]
        return DataValue.array(shape, items)
    read_item = _VARIABLE_READERS[shape]
    return DataValue.array(shape, [read_item(reader) for _ in range(count)])
