"""
Merkle Proof Verification and Composition

A proof is the list of sibling hashes from a leaf up to a root, leaf
first. Replaying it applies one pairing step per element: an even index
hashes (current || sibling), an odd index hashes (sibling || current),
and the index is halved. Proofs for nested trees are joined by plain
concatenation, leaf-side segment first.
"""

from hashlib import sha256
from typing import List, Sequence

from ..constants import HASH_SIZE


def compute_root_from_proof(leaf: bytes, index: int, proof: Sequence[bytes]) -> bytes:
    """
    Rebuild the merkle root from a 32-byte leaf and its proof.

    Args:
        leaf: 32-byte leaf value
        index: Position of the leaf at the bottom level of the proven tree
        proof: Sibling hashes, leaf to root

    Returns:
        The reconstructed 32-byte root
    """
    current = leaf
    for level, sibling in enumerate(proof):
        if ((index >> level) & 1) == 0:
            current = sha256(current + sibling).digest()
        else:
            current = sha256(sibling + current).digest()
    return current


def verify_merkle_proof(
    leaf: bytes, proof: Sequence[bytes], index: int, root: bytes
) -> bool:
    """
    Verify a merkle proof against a known root.

    Malformed input (wrong hash sizes, negative index, an index that does
    not fit the proof length) yields False rather than an exception.

    Examples:
        >>> is_valid = verify_merkle_proof(leaf, proof, 5, expected_root)
    """
    if not isinstance(index, int) or index < 0 or index >> len(proof) != 0:
        return False
    if not _is_hash(leaf) or not _is_hash(root):
        return False
    if not all(_is_hash(step) for step in proof):
        return False
    return compute_root_from_proof(bytes(leaf), index, [bytes(s) for s in proof]) == bytes(root)


def verify_gindex_proof(
    leaf: bytes, proof: Sequence[bytes], gindex: int, root: bytes
) -> bool:
    """Verify a proof addressed by generalized index instead of leaf position."""
    if not isinstance(gindex, int) or gindex < 1 or gindex.bit_length() - 1 != len(proof):
        return False
    return verify_merkle_proof(leaf, proof, gindex - (1 << len(proof)), root)


def compose_proofs(*segments: Sequence[bytes]) -> List[bytes]:
    """
    Concatenate proof segments into one branch.

    Segments must be given innermost first: the proof of the leaf inside
    its container, then the proof of the container inside its parent, and
    so on up to the outermost root.
    """
    combined: List[bytes] = []
    for segment in segments:
        combined.extend(segment)
    return combined


def compose_leaf_index(*parts: tuple) -> int:
    """
    Leaf position of a composed proof, given (index, depth) pairs innermost first.

    Examples:
        >>> compose_leaf_index((5, 40), (0, 1), (11, 5)) == (11 << 41) | 5
        True
    """
    index = 0
    shift = 0
    for part_index, depth in parts:
        index |= part_index << shift
        shift += depth
    return index


def _is_hash(value) -> bool:
    return isinstance(value, (bytes, bytearray)) and len(value) == HASH_SIZE
