"""In-memory model of a parsed BSII document.

A BSII file begins with a 4 byte "BSII" signature followed by a version
number. Then comes a stream of blocks: prototypes, which define data
classes (an id, a name and an ordered list of field definitions), and
data blocks, which are instances of a previously seen prototype.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


ENUM_TYPE_ID = 0x37


class ValueShape(str, Enum):
    """Base shape of a decoded value; arity is tracked separately."""
    STRING = "string"
    ENCODED_STRING = "encoded_string"
    FLOAT = "float"
    FLOAT_VEC2 = "float_vec2"
    FLOAT_VEC3 = "float_vec3"
    INT32_VEC3 = "int32_vec3"
    FLOAT_VEC4 = "float_vec4"
    PLACEMENT = "placement"  # 8 floats: position, packed coefficient, quaternion
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    BOOL = "bool"
    ENUM = "enum"
    ID = "id"


@dataclass(frozen=True)
class Id:
    """Identifier of a data block.

    Either nameless (a raw 64 bit value) or named (a sequence of packed
    string tokens). A named id without parts is a null reference.
    """
    nameless: Optional[int] = None
    parts: Tuple[str, ...] = ()

    @classmethod
    def from_nameless(cls, value: int) -> "Id":
        return cls(nameless=value)

    @classmethod
    def from_parts(cls, parts) -> "Id":
        return cls(parts=tuple(parts))

    @property
    def is_nameless(self) -> bool:
        return self.nameless is not None

    def __str__(self) -> str:
        if self.nameless is not None:
            if self.nameless == 0:
                return "_nameless.0"
            groups = []
            for shift in (48, 32, 16, 0):
                part = (self.nameless >> shift) & 0xFFFF
                if groups:
                    groups.append(f"{part:04x}")
                elif part:
                    groups.append(f"{part:x}")
            return "_nameless." + ".".join(groups)
        if not self.parts:
            return "null"
        return ".".join(self.parts)


@dataclass(frozen=True)
class DataValue:
    """A decoded field value.

    Scalars and arrays share one representation: ``items`` always holds
    the decoded elements, and a scalar is a one-element tuple with
    ``is_array`` unset. Tuple shapes store each element as a tuple of
    components.
    """
    shape: ValueShape
    items: Tuple[Any, ...]
    is_array: bool = False

    @classmethod
    def scalar(cls, shape: ValueShape, item: Any) -> "DataValue":
        return cls(shape=shape, items=(item,))

    @classmethod
    def array(cls, shape: ValueShape, items) -> "DataValue":
        return cls(shape=shape, items=tuple(items), is_array=True)

    @property
    def value(self) -> Any:
        """The scalar payload. Raises for arrays."""
        if self.is_array:
            raise TypeError(f"{self.shape.value} array has no scalar value")
        return self.items[0]

    @property
    def array_length(self) -> Optional[int]:
        return len(self.items) if self.is_array else None


class ValuePrototype(BaseModel):
    """A field definition inside a prototype."""
    type_id: int
    name: str
    enum_values: Optional[Dict[int, str]] = None  # only for type 0x37

    model_config = ConfigDict(frozen=True)

    @property
    def is_enum(self) -> bool:
        return self.type_id == ENUM_TYPE_ID


class Prototype(BaseModel):
    """Definition of a data block class."""
    id: int
    name: str
    value_prototypes: List[ValuePrototype] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class DataBlock:
    """An instance of a prototype; ``data`` matches its fields positionally."""
    prototype_id: int
    id: Id
    data: Tuple[DataValue, ...]


@dataclass(frozen=True)
class BsiiFile:
    """A fully parsed BSII document."""
    version: int
    prototypes: Mapping[int, Prototype] = field(default_factory=dict)
    data_blocks: Tuple[DataBlock, ...] = ()

    def get_prototype(self, prototype_id: int) -> Optional[Prototype]:
        return self.prototypes.get(prototype_id)
