"""Pytest configuration and BSII byte fixtures.

No sys.path hacks - tests should import from installed sii_decode package.
"""

import struct
import zlib

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from sii_decode.kernel.encoded_string import encode_token
from sii_decode.kernel.scsc import ENCRYPTION_KEY


def pytest_addoption(parser):
    """Add gated perf test option."""
    parser.addoption(
        "--run-perf",
        action="store_true",
        default=False,
        help="Run performance sentinel benchmarks (gated)."
    )


def pytest_collection_modifyitems(config, items):
    """Skip perf-marked tests unless --run-perf is set."""
    if config.getoption("--run-perf"):
        return
    skip_perf = pytest.mark.skip(reason="perf tests gated; pass --run-perf")
    for item in items:
        if "perf" in item.keywords:
            item.add_marker(skip_perf)


class BsiiBuilder:
    """Assemble BSII byte streams field by field."""

    @staticmethod
    def u8(value):
        return struct.pack("<B", value)

    @staticmethod
    def u16(value):
        return struct.pack("<H", value)

    @staticmethod
    def i32(value):
        return struct.pack("<i", value)

    @staticmethod
    def u32(value):
        return struct.pack("<I", value)

    @staticmethod
    def u64(value):
        return struct.pack("<Q", value)

    @staticmethod
    def f32(*values):
        return struct.pack(f"<{len(values)}f", *values)

    @staticmethod
    def string(value):
        raw = value.encode("utf-8") if isinstance(value, str) else value
        return struct.pack("<I", len(raw)) + raw

    @staticmethod
    def token(value):
        return struct.pack("<Q", encode_token(value))

    @classmethod
    def nameless_id(cls, value):
        return cls.u8(0xFF) + cls.u64(value)

    @classmethod
    def named_id(cls, *parts):
        return cls.u8(len(parts)) + b"".join(cls.token(p) for p in parts)

    @classmethod
    def array(cls, *elements):
        return cls.u32(len(elements)) + b"".join(elements)

    @classmethod
    def header(cls, version=2):
        return b"BSII" + cls.u32(version)

    @classmethod
    def prototype(cls, prototype_id, name, fields):
        """fields: (type_id, name) or (type_id, name, {code: label}) tuples."""
        out = b"\x00\x00\x00\x00\x01" + cls.u32(prototype_id) + cls.string(name)
        for field in fields:
            type_id, field_name = field[0], field[1]
            out += cls.u32(type_id) + cls.string(field_name)
            if len(field) > 2:
                out += cls.u32(len(field[2]))
                for code, label in field[2].items():
                    out += cls.u32(code) + cls.string(label)
        return out + cls.u32(0)

    @classmethod
    def data_block(cls, prototype_id, block_id, *values):
        return cls.u32(prototype_id) + block_id + b"".join(values)

    @staticmethod
    def end():
        return b"\x00\x00\x00\x00\x00"

    @classmethod
    def document(cls, *blocks, version=2):
        return cls.header(version) + b"".join(blocks) + cls.end()


@pytest.fixture
def bsii():
    return BsiiBuilder


class ScscBuilder:
    """Wrap payloads in ScsC containers the way the game writes them."""

    IV = bytes(range(16))
    HMAC = b"\xaa" * 32

    @classmethod
    def encrypt(cls, plaintext, iv=None):
        padded = plaintext + b"\x00" * (-len(plaintext) % 16)
        encryptor = Cipher(algorithms.AES(ENCRYPTION_KEY), modes.CBC(iv or cls.IV)).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    @classmethod
    def container(cls, payload, size=None, ciphertext=None):
        if ciphertext is None:
            ciphertext = cls.encrypt(zlib.compress(payload))
        declared = len(payload) if size is None else size
        return b"ScsC" + cls.HMAC + cls.IV + struct.pack("<I", declared) + ciphertext


@pytest.fixture
def scsc():
    return ScscBuilder


# From https://github.com/TheLazyTomcat/SII_Decrypt/blob/master/Documents/Binary%20SII%20-%20Format.txt
SAMPLE_BSII = bytes([
    0x42, 0x53, 0x49, 0x49,  # file signature
    0x02, 0x00, 0x00, 0x00,  # format version
    0x00, 0x00, 0x00, 0x00,  # block type
    0x01,  # validity
    0x01, 0x00, 0x00, 0x00,  # structure ID
    0x0F, 0x00, 0x00, 0x00,  # length of following string
    0x66, 0x69, 0x72, 0x73, 0x74, 0x5F, 0x73, 0x74, 0x72, 0x75, 0x63, 0x74, 0x75, 0x72,
    0x65,  # structure name
    0x25, 0x00, 0x00, 0x00,  # value type
    0x0B, 0x00, 0x00, 0x00,  # length of following string
    0x69, 0x6E, 0x74, 0x33, 0x32, 0x5F, 0x66, 0x69, 0x65, 0x6C, 0x64,  # value name
    0x36, 0x00, 0x00, 0x00,  # value type
    0x14, 0x00, 0x00, 0x00,  # length of following string
    0x62, 0x79, 0x74, 0x65, 0x62, 0x6F, 0x6F, 0x6C, 0x5F, 0x61, 0x72, 0x72, 0x61, 0x79,
    0x5F, 0x66, 0x69, 0x65, 0x6C, 0x64,  # value name
    0x34, 0x00, 0x00, 0x00,  # value type
    0x18, 0x00, 0x00, 0x00,  # length of following string
    0x65, 0x6D, 0x70, 0x74, 0x79, 0x5F, 0x75, 0x69, 0x6E, 0x74, 0x36, 0x34, 0x5F, 0x61,
    0x72, 0x72, 0x61, 0x79, 0x5F, 0x66, 0x69, 0x65, 0x6C, 0x64,  # value name
    0x00, 0x00, 0x00, 0x00,  # value type
    0x00, 0x00, 0x00, 0x00,  # block type
    0x01,  # validity
    0x02, 0x00, 0x00, 0x00,  # structure ID
    0x04, 0x00, 0x00, 0x00,  # length of following string
    0x6C, 0x61, 0x73, 0x74,  # structure name
    0x05, 0x00, 0x00, 0x00,  # value type
    0x0C, 0x00, 0x00, 0x00,  # length of following string
    0x73, 0x69, 0x6E, 0x67, 0x6C, 0x65, 0x5F, 0x66, 0x69, 0x65, 0x6C, 0x64,  # value name
    0x00, 0x00, 0x00, 0x00,  # value type
    0x01, 0x00, 0x00, 0x00,  # block type
    0xFF, 0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08,  # block ID
    0xFF, 0xFF, 0xFF, 0xFF,  # Int32 value
    0x03, 0x00, 0x00, 0x00,  # length of the following array
    0x00, 0x01, 0x00,  # array of ByteBool
    0x00, 0x00, 0x00, 0x00,  # length of the following array
    0x02, 0x00, 0x00, 0x00,  # block type
    0xFF, 0xF8, 0xF9, 0xFA, 0xFB, 0xFC, 0xFD, 0xFE, 0xFF,  # block ID
    0x00, 0x00, 0x80, 0x3F,  # single value
    0x00, 0x00, 0x00, 0x00,  # block type
    0x00,  # validity
])


SAMPLE_SIIN = (
    "SiiNunit\n"
    "{\n"
    "first_structure : _nameless.807.0605.0403.0201 {\n"
    " int32_field: -1\n"
    " bytebool_array_field: 3\n"
    " bytebool_array_field[0]: false\n"
    " bytebool_array_field[1]: true\n"
    " bytebool_array_field[2]: false\n"
    " empty_uint64_array_field: 0\n"
    "}\n"
    "\n"
    "last : _nameless.fffe.fdfc.fbfa.f9f8 {\n"
    " single_field: 1\n"
    "}\n"
    "\n"
    "}\n"
)


@pytest.fixture
def sample_bsii():
    return SAMPLE_BSII


@pytest.fixture
def sample_siin():
    return SAMPLE_SIIN
