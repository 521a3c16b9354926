"""
Canonical Leaf Encoding

This module turns primitive SSZ values into 32-byte hash-tree leaves and
packs validator balances four to a chunk.

Leaf rules:
- uint64 values occupy the low 8 bytes (little-endian), rest zero
- booleans occupy byte 0, rest zero
- bytes32 values are used unchanged
- bytes48 values (BLS public keys) are split into a 32-byte head and a
  16-byte tail zero-padded to 32 bytes; each half is hashed and the two
  digests are hashed together
"""

from hashlib import sha256
from typing import Any, List, Sequence

from .constants import BALANCES_PER_CHUNK, BYTES_PER_CHUNK, UINT64_SIZE
from .exceptions import IndexOutOfRangeError
from .serialization import (
    serialize_bool,
    serialize_bytes,
    serialize_uint64,
    serialize_uint256,
)


def _pad_chunk(value: bytes) -> bytes:
    return value + b"\0" * (BYTES_PER_CHUNK - len(value))


def uint64_leaf(value: int) -> bytes:
    """Encode a uint64 as a 32-byte leaf."""
    return _pad_chunk(serialize_uint64(value))


def bool_leaf(value: bool) -> bytes:
    """Encode a boolean as a 32-byte leaf."""
    return _pad_chunk(serialize_bool(value))


def bytes48_leaf(value: bytes) -> bytes:
    """Hash a 48-byte vector with the two-chunk rule."""
    value = serialize_bytes(value, 48)
    head = sha256(value[:32]).digest()
    tail = sha256(_pad_chunk(value[32:48])).digest()
    return sha256(head + tail).digest()


def merkle_root_basic(value: Any, type_str: str) -> bytes:
    """
    Calculate the 32-byte leaf for a basic SSZ value.

    Args:
        value: The value to encode (bytes types also accept 0x-prefixed hex)
        type_str: One of 'uint64', 'uint256', 'Boolean', 'bytes4',
            'bytes20', 'bytes32', 'bytes48', 'bytes256'

    Returns:
        32-byte leaf

    Examples:
        >>> merkle_root_basic(100, 'uint64')[:8]
        b'd\\x00\\x00\\x00\\x00\\x00\\x00\\x00'
        >>> merkle_root_basic(b'\\x01' * 32, 'bytes32') == b'\\x01' * 32
        True
    """
    if type_str.startswith("bytes") and isinstance(value, str):
        value = bytes.fromhex(value[2:] if value.startswith("0x") else value)

    if type_str == "uint64":
        return uint64_leaf(value)
    elif type_str == "uint256":
        return serialize_uint256(value)
    elif type_str == "Boolean":
        return bool_leaf(value)
    elif type_str == "bytes32":
        return serialize_bytes(value, 32)
    elif type_str == "bytes48":
        return bytes48_leaf(value)
    elif type_str == "bytes4":
        return _pad_chunk(serialize_bytes(value, 4))
    elif type_str == "bytes20":
        return _pad_chunk(serialize_bytes(value, 20))
    elif type_str == "bytes256":
        # Logs bloom: eight chunks merkleized to depth 3
        from .merkle.tree import merkle_root_list

        value = serialize_bytes(value, 256)
        return merkle_root_list([value[i : i + 32] for i in range(0, 256, 32)])
    else:
        raise ValueError(f"Unsupported basic type: {type_str}")


def pack_uint64s(values: Sequence[int]) -> List[bytes]:
    """SSZ-pack uint64 values (little-endian) into 32-byte chunks, zero-padding the last one."""
    data = b"".join(serialize_uint64(v) for v in values)
    if len(data) % BYTES_PER_CHUNK != 0:
        data += b"\0" * (BYTES_PER_CHUNK - len(data) % BYTES_PER_CHUNK)
    return [data[i : i + BYTES_PER_CHUNK] for i in range(0, len(data), BYTES_PER_CHUNK)]


def pack_balances(balances: Sequence[int]) -> List[bytes]:
    """
    Pack a balance list four to a leaf.

    Balance i lives in leaf i // 4 at byte offset (i % 4) * 8.

    Examples:
        >>> len(pack_balances([1, 2, 3, 4, 5]))
        2
    """
    return pack_uint64s(balances)


def balance_leaf(balances: Sequence[int], index: int) -> bytes:
    """Return the packed leaf holding balance `index`."""
    if index < 0 or index >= len(balances):
        raise IndexOutOfRangeError(index, len(balances), "balance")
    start = (index // BALANCES_PER_CHUNK) * BALANCES_PER_CHUNK
    return pack_uint64s(balances[start : start + BALANCES_PER_CHUNK])[0]


def extract_balance(leaf: bytes, index: int) -> int:
    """Read the balance for validator `index` out of its packed leaf."""
    if len(leaf) != BYTES_PER_CHUNK:
        raise ValueError(f"Expected 32-byte leaf, got {len(leaf)}")
    offset = (index % BALANCES_PER_CHUNK) * UINT64_SIZE
    return int.from_bytes(leaf[offset : offset + UINT64_SIZE], "little")


def unpack_balance_leaf(leaf: bytes) -> List[int]:
    """Decode all four balances of a packed leaf."""
    return [extract_balance(leaf, i) for i in range(BALANCES_PER_CHUNK)]
