"""Packed base-38 string tokens.

A token is packed into a little-endian u64 whose top bit is reserved.
The remaining value is a base-38 number, least significant digit first;
digit ``d`` in 1..37 maps to ``ALPHABET[d - 1]`` and digit 0 ends the
token.
"""

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz_"

# 38**12 still fits below the reserved top bit.
MAX_TOKEN_LENGTH = 12

_TOP_BIT = 1 << 63
_INDEX = {ch: i + 1 for i, ch in enumerate(ALPHABET)}


def decode_token(packed: int) -> str:
    """Unpack a token from its raw u64 value."""
    remaining = packed & (_TOP_BIT - 1)
    chars = []
    while remaining:
        remaining, digit = divmod(remaining, 38)
        if digit == 0:
            break
        chars.append(ALPHABET[digit - 1])
    return "".join(chars)


def encode_token(token: str) -> int:
    """Pack a token into its u64 value.

    Characters are case-folded; anything outside ``[0-9a-z_]`` raises
    ``ValueError``.
    """
    token = token.lower()
    if len(token) > MAX_TOKEN_LENGTH:
        raise ValueError(f"Token '{token}' longer than {MAX_TOKEN_LENGTH} characters")
    packed = 0
    for ch in reversed(token):
        digit = _INDEX.get(ch)
        if digit is None:
            raise ValueError(f"Character {ch!r} cannot be packed into a token")
        packed = packed * 38 + digit
    return packed
