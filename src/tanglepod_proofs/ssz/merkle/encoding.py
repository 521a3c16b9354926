"""
List and Vector Roots for BeaconState Fields

Merkleization helpers for the list- and vector-typed fields of the
beacon state. Vectors are merkleized to their fixed capacity; lists are
merkleized to their maximum capacity and then have their element count
mixed in, including when the list is empty.
"""

from hashlib import sha256
from typing import List, Sequence

from ..constants import (
    BALANCE_TREE_HEIGHT,
    BYTES_PER_CHUNK,
    VALIDATOR_REGISTRY_LIMIT,
    VALIDATOR_TREE_HEIGHT,
    ZERO_HASHES,
)
from ..encoding import pack_balances, pack_uint64s
from .sparse import SparseMerkleTree, zero_hashes


def mix_in_length(root: bytes, length: int) -> bytes:
    """
    Commit a list's element count into its data root.

    Args:
        root: Merkle root of the list data at full capacity
        length: Number of elements in the list

    Returns:
        sha256(root || length as 32-byte little-endian)
    """
    return sha256(root + length.to_bytes(32, "little")).digest()


def length_leaf(length: int) -> bytes:
    """The 32-byte length chunk that sits beside a list's data root."""
    return length.to_bytes(32, "little")


def chunk_depth(chunk_limit: int) -> int:
    """Depth of a tree holding `chunk_limit` chunks."""
    return (chunk_limit - 1).bit_length() if chunk_limit > 1 else 0


def merkle_root_list_fixed(chunks: Sequence[bytes], depth: int) -> bytes:
    """
    Merkle-root a contiguous run of chunks out to exactly 2^depth leaves.

    Only the populated prefix is hashed; every level is closed with the
    zero hash of that height, so large capacities cost nothing extra.
    """
    if len(chunks) > (1 << depth):
        raise ValueError(f"Too many leaves: {len(chunks)} > {1 << depth}")

    zero = zero_hashes(depth)
    level = list(chunks)
    for height in range(depth):
        if not level:
            return zero[depth]
        if len(level) % 2 == 1:
            level.append(zero[height])
        level = [sha256(level[i] + level[i + 1]).digest() for i in range(0, len(level), 2)]
    return level[0] if level else ZERO_HASHES[0]


def vector_root(chunks: Sequence[bytes], length: int) -> bytes:
    """Root of a fixed-length vector whose packed form occupies `length` chunks."""
    return merkle_root_list_fixed(chunks, chunk_depth(length))


def list_root(chunks: Sequence[bytes], chunk_limit: int, length: int) -> bytes:
    """Root of a variable-length list: data root to capacity, then length mixed in."""
    return mix_in_length(merkle_root_list_fixed(chunks, chunk_depth(chunk_limit)), length)


def uint64_list_root(values: Sequence[int], limit: int) -> bytes:
    """
    Root of a List[uint64, limit].

    Four values are packed per chunk, so the tree capacity is
    ceil(limit * 8 / 32) chunks.

    Args:
        values: The list elements
        limit: Maximum number of elements the list type allows

    Returns:
        32-byte hash tree root with the element count mixed in

    Raises:
        ValueError: If the packed values exceed the tree capacity

    Examples:
        >>> root = uint64_list_root([32000000000] * 3, 2**40)
    """
    return list_root(pack_uint64s(values), (limit * 8 + 31) // 32, len(values))


def uint8_list_root(data: bytes, limit: int) -> bytes:
    """Root of a List[uint8, limit] given its raw bytes."""
    chunks = _split_chunks(data)
    return list_root(chunks, (limit + 31) // 32, len(data))


def bytes32_list_root(roots: Sequence[bytes], limit: int) -> bytes:
    """
    Root of a List[Bytes32, limit] or a list of container roots.

    Each element is already a chunk, so the capacity is `limit` leaves.

    Args:
        roots: 32-byte elements or element hash tree roots
        limit: Maximum number of elements the list type allows

    Returns:
        32-byte hash tree root with the element count mixed in

    Raises:
        ValueError: If there are more roots than `limit` rounded up to a power of two

    Examples:
        >>> bytes32_list_root([], 16) == mix_in_length(ZERO_HASHES[4], 0)
        True
    """
    return list_root(roots, limit, len(roots))


def _split_chunks(data: bytes) -> List[bytes]:
    if len(data) % BYTES_PER_CHUNK:
        data = data + b"\0" * (BYTES_PER_CHUNK - len(data) % BYTES_PER_CHUNK)
    return [data[i : i + BYTES_PER_CHUNK] for i in range(0, len(data), BYTES_PER_CHUNK)]


def validators_tree(validator_roots: Sequence[bytes]) -> SparseMerkleTree:
    """Sparse tree of validator hash-tree roots at registry depth (40)."""
    if len(validator_roots) > VALIDATOR_REGISTRY_LIMIT:
        raise ValueError(
            f"Validators list too large: {len(validator_roots)} > {VALIDATOR_REGISTRY_LIMIT}"
        )
    return SparseMerkleTree.from_leaves(validator_roots, VALIDATOR_TREE_HEIGHT)


def balances_tree(balances: Sequence[int]) -> SparseMerkleTree:
    """Sparse tree of packed balance leaves at depth 38."""
    if len(balances) > VALIDATOR_REGISTRY_LIMIT:
        raise ValueError(f"Balances list too large: {len(balances)} > {VALIDATOR_REGISTRY_LIMIT}")
    return SparseMerkleTree.from_leaves(pack_balances(balances), BALANCE_TREE_HEIGHT)


def encode_validators_leaf_list(validator_roots: Sequence[bytes]) -> bytes:
    """
    Root of the validators list given each validator's hash-tree root.

    Examples:
        >>> root = encode_validators_leaf_list([v.hash_tree_root() for v in validators])
    """
    return mix_in_length(validators_tree(validator_roots).root(), len(validator_roots))


def encode_balances(balances: Sequence[int]) -> bytes:
    """
    Root of the balances list.

    Examples:
        >>> root = encode_balances([32000000000, 32000000000, 31500000000])
    """
    return mix_in_length(balances_tree(balances).root(), len(balances))
