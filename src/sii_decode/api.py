"""Public API for sii_decode.

High-level functions that take raw file bytes and return complete
results. Callers should use these instead of importing from kernel.
"""

import logging
import os
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from sii_decode.kernel import bsii_parse, siin_emit
from sii_decode.kernel.bsii_file import BsiiFile
from sii_decode.kernel.bsii_parse import ParseOptions
from sii_decode.kernel.errors import InvalidInputError, UnknownFileTypeError
from sii_decode.kernel.file_type import FileType, detect_file_type
from sii_decode.kernel.scsc import ScscFile

logger = logging.getLogger(__name__)

# ScsC payloads are not expected to nest; cap unwrapping to stop cycles.
MAX_CONTAINER_DEPTH = 4


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


class DocumentSummary(BaseModel):
    """Stable summary of a decoded file."""
    layers: List[str]  # magic of each layer, outermost first, e.g. ["ScsC", "BSII"]
    version: Optional[int] = None  # BSII format version, None for SiiN input
    prototype_count: int = 0
    data_block_count: int = 0
    blocks_by_prototype: Dict[str, int] = Field(default_factory=dict)  # prototype name -> block count


def _unwrap(content: bytes) -> Tuple[FileType, bytes, List[FileType]]:
    """Peel ScsC containers until a BSII or SiiN payload is reached."""
    layers: List[FileType] = []
    for _ in range(MAX_CONTAINER_DEPTH + 1):
        file_type = detect_file_type(content)
        if file_type is None:
            raise UnknownFileTypeError(
                f"Unknown file type (magic {bytes(content[:4])!r})",
                context=" > ".join(layer.value for layer in layers) or None,
            )
        layers.append(file_type)
        if file_type is not FileType.SCSC:
            return file_type, content, layers
        logger.info("Decrypting ScsC container (%d bytes)", len(content))
        content = ScscFile.parse(content).decode()
    raise UnknownFileTypeError(f"More than {MAX_CONTAINER_DEPTH} nested ScsC containers")


def parse_bsii(content: bytes, options: Optional[ParseOptions] = None) -> BsiiFile:
    """Parse raw BSII bytes."""
    return bsii_parse.parse(content, options)


def emit_siin(bsii: BsiiFile) -> str:
    """Render a parsed BSII document as SiiNunit text."""
    return siin_emit.emit(bsii)


def decode_until_siin(content: bytes, options: Optional[ParseOptions] = None) -> bytes:
    """Decode any supported file form down to SiiN text bytes.

    ScsC containers are decrypted, BSII payloads are parsed and rendered,
    and SiiN input is returned unchanged.
    """
    file_type, payload, layers = _unwrap(content)
    if file_type is FileType.SIIN:
        logger.info("Payload is already SiiN text")
        return bytes(payload)
    logger.info("Parsing BSII payload (%d bytes)", len(payload))
    bsii = parse_bsii(payload, options)
    logger.info(
        "Parsed %d prototypes and %d data blocks",
        len(bsii.prototypes),
        len(bsii.data_blocks),
    )
    return emit_siin(bsii).encode("utf-8")


def decode(content: bytes, options: Optional[ParseOptions] = None) -> str:
    """Decode any supported file form to SiiN text."""
    raw = decode_until_siin(content, options)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"Invalid UTF-8 in SiiN text: {e.reason}", offset=e.start) from e


def decode_file(path: Union[str, os.PathLike, Path], options: Optional[ParseOptions] = None) -> str:
    """Read a file from disk and decode it to SiiN text."""
    return decode(_normalize_path(path).read_bytes(), options)


def summarize(content: bytes, options: Optional[ParseOptions] = None) -> DocumentSummary:
    """Describe a file's layers and, for BSII payloads, its block counts."""
    file_type, payload, layers = _unwrap(content)
    layer_names = [layer.value for layer in layers]
    if file_type is FileType.SIIN:
        return DocumentSummary(layers=layer_names)

    bsii = parse_bsii(payload, options)
    counts = Counter(
        bsii.prototypes[block.prototype_id].name for block in bsii.data_blocks
    )
    return DocumentSummary(
        layers=layer_names,
        version=bsii.version,
        prototype_count=len(bsii.prototypes),
        data_block_count=len(bsii.data_blocks),
        blocks_by_prototype=dict(sorted(counts.items())),
    )
