"""BSII block-stream parser.

References:
https://github.com/TheLazyTomcat/SII_Decrypt/blob/master/Documents/Binary%20SII%20-%20Format.txt

Layout after the 8 byte header (signature + u32 version) is a stream of
blocks. Each block starts with a u32 marker:

- marker != 0: a data block of the prototype with that id
- marker == 0, next byte != 0: a prototype definition
- marker == 0, next byte == 0: end of stream
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from .bsii_file import ENUM_TYPE_ID, BsiiFile, DataBlock, Prototype, ValuePrototype
from .byte_reader import ByteReader
from .errors import InvalidHeaderError, InvalidInputError, UnsupportedVersionError
from .value_types import read_id, read_value

logger = logging.getLogger(__name__)


SIGNATURE = b"BSII"
# Version 1 stores placements as 7 floats; only the 8 float layout is handled.
UNSUPPORTED_VERSIONS = frozenset({1})
PROTOTYPE_TAG = b"\x00\x00\x00\x00\x01"
END_OF_FIELDS = 0


class ParseOptions(BaseModel):
    """Knobs for tolerance of questionable but parseable input."""
    duplicate_prototypes: Literal["replace", "reject"] = "replace"

    model_config = ConfigDict(frozen=True)


class BlockKind(Enum):
    """What the cursor sits on at a block boundary."""
    AT_END = "end"
    AT_PROTOTYPE = "prototype"
    AT_DATA_BLOCK = "data_block"


def peek_block_kind(reader: ByteReader) -> BlockKind:
    """Classify the next block without consuming input."""
    marker = reader.peek_u32("block marker")
    if marker != 0:
        return BlockKind.AT_DATA_BLOCK
    if reader.peek_u8(4, "validity flag") == 0:
        return BlockKind.AT_END
    return BlockKind.AT_PROTOTYPE


def parse_header(reader: ByteReader) -> int:
    """Validate the signature and return the format version."""
    if reader.remaining < len(SIGNATURE) or bytes(reader.peek_bytes(len(SIGNATURE))) != SIGNATURE:
        raise InvalidHeaderError("Missing BSII signature", offset=0)
    reader.pos += len(SIGNATURE)
    version_offset = reader.pos
    version = reader.read_u32("format version")
    if version in UNSUPPORTED_VERSIONS:
        raise UnsupportedVersionError(f"BSII version {version} is not supported", offset=version_offset)
    return version


def parse_value_prototype(reader: ByteReader, type_id: int) -> ValuePrototype:
    """Parse the remainder of a field definition whose type id was consumed."""
    name = reader.read_string("field name")
    enum_values = None
    if type_id == ENUM_TYPE_ID:
        count = reader.read_u32("enum value count")
        enum_values = {}
        for _ in range(count):
            code = reader.read_u32("enum code")
            enum_values[code] = reader.read_string("enum label")
    logger.debug("Parsed prototype value %s type_id %x", name, type_id)
    return ValuePrototype(type_id=type_id, name=name, enum_values=enum_values)


def parse_prototype(reader: ByteReader) -> Prototype:
    """Parse a prototype block, starting at its zero marker."""
    reader.expect(PROTOTYPE_TAG, "prototype tag")
    prototype_id = reader.read_u32("prototype id")
    name = reader.read_string("prototype name")
    value_prototypes: List[ValuePrototype] = []
    while True:
        type_id = reader.read_u32("value type")
        if type_id == END_OF_FIELDS:
            break
        value_prototypes.append(parse_value_prototype(reader, type_id))
    return Prototype(id=prototype_id, name=name, value_prototypes=value_prototypes)


def parse_data_block(reader: ByteReader, prototypes: Dict[int, Prototype]) -> DataBlock:
    """Parse a data block, starting at its prototype id marker."""
    start = reader.pos
    prototype_id = reader.read_u32("block marker")
    prototype = prototypes.get(prototype_id)
    if prototype is None:
        raise InvalidInputError(f"Data block references unknown prototype {prototype_id}", offset=start)
    block_id = read_id(reader)
    data = []
    for value_prototype in prototype.value_prototypes:
        context = f"{prototype.name}.{value_prototype.name}"
        data.append(read_value(reader, value_prototype.type_id, context))
    return DataBlock(prototype_id=prototype_id, id=block_id, data=tuple(data))


def parse(content: bytes, options: Optional[ParseOptions] = None) -> BsiiFile:
    """Parse a complete BSII buffer into a ``BsiiFile``."""
    options = options or ParseOptions()
    reader = ByteReader(content)
    version = parse_header(reader)

    prototypes: Dict[int, Prototype] = {}
    data_blocks: List[DataBlock] = []
    while True:
        kind = peek_block_kind(reader)
        if kind is BlockKind.AT_END:
            break
        if kind is BlockKind.AT_PROTOTYPE:
            start = reader.pos
            prototype = parse_prototype(reader)
            if prototype.id in prototypes:
                if options.duplicate_prototypes == "reject":
                    raise InvalidInputError(f"Duplicate prototype id {prototype.id}", offset=start,
                                            context=prototype.name)
                logger.warning("Prototype %d (%s) redefined; replacing", prototype.id, prototype.name)
            logger.debug("Parsed prototype %s", prototype.name)
            prototypes[prototype.id] = prototype
        else:
            data_block = parse_data_block(reader, prototypes)
            logger.debug(
                "Parsed data block with prototype %s, ID %s",
                prototypes[data_block.prototype_id].name,
                data_block.id,
            )
            data_blocks.append(data_block)

    return BsiiFile(version=version, prototypes=MappingProxyType(prototypes), data_blocks=tuple(data_blocks))
