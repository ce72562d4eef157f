"""Render a parsed BSII document as SiiNunit text.

Output layout::

    SiiNunit
    {
    <prototype name> : <block id> {
     <field>: <value>
     <array field>: <count>
     <array field>[0]: <value>
    }

    }

Formatting follows the text format's quirks: unsigned integers with all
bits set print as ``nil``, floats that are not small whole numbers print
as their IEEE-754 bit pattern (``&3f800001``), and placements unpack the
coordinate offsets folded into their fourth component.
"""

import math
import re
import struct
from typing import Callable, Dict, List, Optional

from .bsii_file import BsiiFile, DataBlock, DataValue, Prototype, ValuePrototype, ValueShape
from .errors import EmitInvariantError


HEADER = "SiiNunit\n{\n"
FOOTER = "}\n"
INDENT = " "

FLOAT_DECIMAL_LIMIT = 1e7
NIL = "nil"

_F32 = struct.Struct("<f")
_F32_BITS = struct.Struct("<I")
_BARE_WORD = re.compile(r"[A-Za-z0-9_]+")

_UNSIGNED_MAX = {
    ValueShape.UINT16: 0xFFFF,
    ValueShape.UINT32: 0xFFFFFFFF,
    ValueShape.UINT64: 0xFFFFFFFFFFFFFFFF,
}

_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1


def to_f32(value: float) -> float:
    """Round a Python float to the nearest single-precision value."""
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def format_float(value: float) -> str:
    if math.isfinite(value) and value.is_integer() and abs(value) <= FLOAT_DECIMAL_LIMIT:
        return str(int(value))
    bits = _F32_BITS.unpack(_F32.pack(value))[0]
    return f"&{bits:08x}"


def format_string(value: str) -> str:
    if value == "":
        return '""'
    if _BARE_WORD.fullmatch(value):
        return value
    escaped = "".join(
        chr(b) if 32 <= b <= 127 else f"\\x{b:02x}"
        for b in value.encode("utf-8")
    )
    return f'"{escaped}"'


def format_encoded_string(value: str) -> str:
    return value if value else '""'


def format_unsigned(shape: ValueShape, value: int) -> str:
    if value == _UNSIGNED_MAX[shape]:
        return NIL
    return str(value)


def format_float_tuple(components) -> str:
    return "(" + ", ".join(format_float(c) for c in components) + ")"


def format_float_vec4(components) -> str:
    w, x, y, z = components
    return f"({format_float(w)}; {format_float(x)}, {format_float(y)}, {format_float(z)})"


def _truncate_to_i32(value: float) -> int:
    # Saturating float -> int32 cast; NaN maps to 0.
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return _I32_MAX if value > 0 else _I32_MIN
    return max(_I32_MIN, min(_I32_MAX, int(value)))


def unpack_placement_position(placement) -> tuple:
    """Return the (x, y, z) position with the quantized offsets restored.

    The fourth component's integer part packs two 12 bit grid offsets:
    bits 0-11 adjust x and bits 12-23 adjust z, each biased by 2048 and
    scaled by 512.
    """
    x, y, z, packed = placement[:4]
    coef = _truncate_to_i32(packed)
    x_offset = ((coef & 0xFFF) - 2048) << 9
    z_offset = (((coef >> 12) & 0xFFF) - 2048) << 9
    return to_f32(x + x_offset), y, to_f32(z + z_offset)


def format_placement(placement) -> str:
    position = unpack_placement_position(placement)
    return f"{format_float_tuple(position)} ({format_float_vec4(placement[4:8])})"


def format_int_tuple(components) -> str:
    return "(" + ", ".join(str(c) for c in components) + ")"


def format_bool(value: bool) -> str:
    return "true" if value else "false"


_FORMATTERS: Dict[ValueShape, Callable] = {
    ValueShape.STRING: format_string,
    ValueShape.ENCODED_STRING: format_encoded_string,
    ValueShape.FLOAT: format_float,
    ValueShape.FLOAT_VEC2: format_float_tuple,
    ValueShape.FLOAT_VEC3: format_float_tuple,
    ValueShape.INT32_VEC3: format_int_tuple,
    ValueShape.FLOAT_VEC4: format_float_vec4,
    ValueShape.PLACEMENT: format_placement,
    ValueShape.INT16: str,
    ValueShape.INT32: str,
    ValueShape.INT64: str,
    ValueShape.BOOL: format_bool,
    ValueShape.ID: str,
}


def format_item(shape: ValueShape, item, value_prototype: Optional[ValuePrototype] = None) -> str:
    """Format a single scalar or array element of ``shape``."""
    if shape in _UNSIGNED_MAX:
        return format_unsigned(shape, item)
    if shape is ValueShape.ENUM:
        enum_values = value_prototype.enum_values if value_prototype is not None else None
        if not enum_values or item not in enum_values:
            name = value_prototype.name if value_prototype is not None else "?"
            raise EmitInvariantError(f"Enum code {item} not declared for field '{name}'")
        return format_string(enum_values[item])
    return _FORMATTERS[shape](item)


def emit_value(value_prototype: ValuePrototype, value: DataValue) -> List[str]:
    """Render one field as its output lines (without trailing newlines)."""
    name = value_prototype.name
    if not value.is_array:
        return [f"{INDENT}{name}: {format_item(value.shape, value.value, value_prototype)}"]
    lines = [f"{INDENT}{name}: {value.array_length}"]
    for index, item in enumerate(value.items):
        lines.append(f"{INDENT}{name}[{index}]: {format_item(value.shape, item, value_prototype)}")
    return lines


def emit_data_block(data_block: DataBlock, prototype: Prototype) -> str:
    fields = prototype.value_prototypes
    if len(data_block.data) != len(fields):
        raise EmitInvariantError(
            f"Block {data_block.id} has {len(data_block.data)} values "
            f"but prototype '{prototype.name}' declares {len(fields)} fields"
        )
    lines = [f"{prototype.name} : {data_block.id} {{"]
    for value_prototype, value in zip(fields, data_block.data):
        lines.extend(emit_value(value_prototype, value))
    lines.append("}")
    return "\n".join(lines) + "\n\n"


def emit(bsii: BsiiFile) -> str:
    """Render the whole document, blocks in their original order."""
    parts = [HEADER]
    for data_block in bsii.data_blocks:
        prototype = bsii.get_prototype(data_block.prototype_id)
        if prototype is None:
            raise EmitInvariantError(f"Block {data_block.id} references missing prototype {data_block.prototype_id}")
        parts.append(emit_data_block(data_block, prototype))
    parts.append(FOOTER)
    return "".join(parts)
