"""ScsC container: encrypted and compressed SII payloads.

References:
https://github.com/TheLazyTomcat/SII_Decrypt/blob/master/Source/SII_Decrypt_Decryptor.pas

Layout::

    "ScsC"        4 bytes
    hmac          32 bytes (carried, not verified)
    iv            16 bytes
    size          u32, decompressed payload size
    ciphertext    rest of file, AES-256-CBC, no padding

The decrypted bytes are a zlib stream that inflates to ``size`` bytes of
BSII or SiiN data.
"""

import zlib
from dataclasses import dataclass

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .byte_reader import ByteReader
from .errors import DecompressError, DecryptError, InvalidHeaderError


SIGNATURE = b"ScsC"
HMAC_SIZE = 32
IV_SIZE = 16
BLOCK_SIZE = 16

ENCRYPTION_KEY = bytes([
    0x2a, 0x5f, 0xcb, 0x17, 0x91, 0xd2, 0x2f, 0xb6, 0x02, 0x45, 0xb3, 0xd8, 0x36, 0x9e, 0xd0, 0xb2,
    0xc2, 0x73, 0x71, 0x56, 0x3f, 0xbf, 0x1f, 0x3c, 0x9e, 0xdf, 0x6b, 0x11, 0x82, 0x5a, 0x5d, 0x0a,
])


@dataclass(frozen=True)
class ScscFile:
    hmac: bytes
    iv: bytes
    size: int
    data: bytes

    @classmethod
    def parse(cls, content: bytes) -> "ScscFile":
        if content[:len(SIGNATURE)] != SIGNATURE:
            raise InvalidHeaderError("Missing ScsC signature", offset=0)
        reader = ByteReader(content, pos=len(SIGNATURE))
        hmac = bytes(reader.read_bytes(HMAC_SIZE, "hmac"))
        iv = bytes(reader.read_bytes(IV_SIZE, "iv"))
        size = reader.read_u32("decompressed size")
        data = bytes(reader.read_bytes(reader.remaining, "ciphertext"))
        return cls(hmac=hmac, iv=iv, size=size, data=data)

    def decrypt(self) -> bytes:
        """Decrypt the payload into a raw zlib stream."""
        if len(self.data) % BLOCK_SIZE:
            raise DecryptError(
                f"Ciphertext length {len(self.data)} is not a multiple of {BLOCK_SIZE}"
            )
        decryptor = Cipher(algorithms.AES(ENCRYPTION_KEY), modes.CBC(self.iv)).decryptor()
        return decryptor.update(self.data) + decryptor.finalize()

    def decode(self) -> bytes:
        """Decrypt and inflate the payload to exactly ``size`` bytes."""
        compressed = self.decrypt()
        if self.size == 0:
            # max_length 0 means unbounded to zlib
            return b""
        inflater = zlib.decompressobj()
        try:
            payload = inflater.decompress(compressed, self.size)
        except zlib.error as e:
            raise DecompressError(f"Payload is not a valid zlib stream: {e}") from e
        if len(payload) != self.size:
            raise DecompressError(
                f"Payload inflated to {len(payload)} bytes, header declares {self.size}"
            )
        return payload
