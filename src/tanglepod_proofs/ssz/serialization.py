"""
SSZ Primitive Encoding

Fixed-width encoding of the primitive SSZ types that appear in the beacon
state: little-endian unsigned integers, booleans and fixed-length byte
vectors. The read_* helpers decode values in place from a larger buffer
and report reads past its end, or invalid values inside a record, as
RecordBoundsError.

References:
- SSZ Specification: https://github.com/ethereum/consensus-specs/blob/dev/ssz/simple-serialize.md
"""

from .exceptions import RecordBoundsError


def serialize_uint64(value: int) -> bytes:
    """
    Encode `value` as 8 little-endian bytes.

    Args:
        value: Integer value (0 <= value < 2^64)

    Returns:
        8-byte little-endian representation

    Raises:
        ValueError: If value is negative
        OverflowError: If value does not fit in 64 bits

    Examples:
        >>> serialize_uint64(32_000_000_000).hex()
        '0040597307000000'
    """
    if value < 0:
        raise ValueError(f"uint64 cannot encode negative value {value}")
    if value >= 1 << 64:
        raise OverflowError(f"{value} does not fit in a uint64")
    return value.to_bytes(8, "little")


def serialize_uint256(value: int) -> bytes:
    """
    Encode `value` as 32 little-endian bytes.

    A uint256 fills a whole chunk, so the result is also its leaf.

    Args:
        value: Integer value (0 <= value < 2^256)

    Returns:
        32-byte little-endian representation

    Raises:
        ValueError: If value is negative
        OverflowError: If value does not fit in 256 bits

    Examples:
        >>> serialize_uint256(1) == b'\\x01' + b'\\x00' * 31
        True
    """
    if value < 0:
        raise ValueError(f"uint256 cannot encode negative value {value}")
    if value >= 1 << 256:
        raise OverflowError(f"{value} does not fit in a uint256")
    return value.to_bytes(32, "little")


def serialize_bool(value: bool) -> bytes:
    """
    Encode a boolean as one byte: 0x01 for True, 0x00 for False.

    Examples:
        >>> serialize_bool(True)
        b'\\x01'
    """
    return b"\x01" if value else b"\x00"


def serialize_bytes(value: bytes, length: int) -> bytes:
    """
    Return a fixed-length byte vector unchanged after checking its length.

    Byte vectors carry no length prefix or padding.

    Args:
        value: The bytes to encode
        length: Declared vector length

    Raises:
        AssertionError: If len(value) != length
    """
    if len(value) != length:
        raise AssertionError(f"Expected {length} bytes, got {len(value)}")
    return value


def deserialize_uint64(data: bytes) -> int:
    """
    Decode exactly 8 little-endian bytes.

    Raises:
        ValueError: If data is not 8 bytes long

    Examples:
        >>> deserialize_uint64(bytes.fromhex('0040597307000000'))
        32000000000
    """
    if len(data) != 8:
        raise ValueError(f"uint64 needs exactly 8 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def deserialize_bool(data: bytes) -> bool:
    """
    Decode a one-byte SSZ boolean.

    Raises:
        ValueError: If data is not a single 0x00 or 0x01 byte
    """
    if len(data) != 1 or data[0] > 1:
        raise ValueError(f"Invalid SSZ boolean: 0x{bytes(data).hex()}")
    return data[0] == 1


def read_bytes(data: bytes, offset: int, length: int) -> bytes:
    """
    Slice `length` bytes from `data` starting at `offset`.

    Raises:
        RecordBoundsError: If the slice does not lie inside the buffer
    """
    if offset < 0 or offset + length > len(data):
        raise RecordBoundsError(
            f"read of {length} bytes at offset {offset} exceeds buffer of {len(data)} bytes"
        )
    return bytes(data[offset : offset + length])


def read_uint64(data: bytes, offset: int) -> int:
    """
    Read a little-endian uint64 at `offset`.

    Raises:
        RecordBoundsError: If the 8 bytes do not lie inside the buffer
    """
    return int.from_bytes(read_bytes(data, offset, 8), "little")


def read_uint32(data: bytes, offset: int) -> int:
    """
    Read a little-endian uint32 at `offset`. SSZ offsets use this width.

    Raises:
        RecordBoundsError: If the 4 bytes do not lie inside the buffer
    """
    return int.from_bytes(read_bytes(data, offset, 4), "little")


def read_bool(data: bytes, offset: int) -> bool:
    """
    Read a one-byte SSZ boolean at `offset` inside a record.

    Raises:
        RecordBoundsError: If the byte lies outside the buffer or is not 0x00/0x01
    """
    value = read_bytes(data, offset, 1)[0]
    if value > 1:
        raise RecordBoundsError(f"invalid boolean byte 0x{value:02x} at offset {offset}")
    return value == 1
