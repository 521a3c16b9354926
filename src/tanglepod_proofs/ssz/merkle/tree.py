"""
Dense Merkle Tree

Builds a complete binary hash tree over a small explicit leaf list and
produces inclusion proofs for its leaves. Used for fixed containers
(block header, validator record, the 32 top-level state fields) where
every layer fits comfortably in memory.
"""

from hashlib import sha256
from typing import List, Sequence

from ..constants import BYTES_PER_CHUNK, ZERO_HASHES
from ..exceptions import IndexOutOfRangeError
from .gindex import gindex_to_leaf_index
from .proof import verify_merkle_proof


def _ceil_log2(n: int) -> int:
    return (n - 1).bit_length() if n > 1 else 0


def merkle_root_list(roots: List[bytes]) -> bytes:
    """
    Merkle root of a list of 32-byte roots padded to the next power of two.

    Examples:
        >>> merkle_root_list([]) == b'\\x00' * 32
        True
    """
    if not roots:
        return ZERO_HASHES[0]
    return MerkleTree(roots).root()


class MerkleTree:
    """
    Complete binary merkle tree over an explicit list of 32-byte leaves.

    With depth=0 the depth is the smallest one whose 2^depth leaves cover
    the input. Leaves are right-padded with zero chunks to exactly
    2^depth entries and every layer is built eagerly:
    layers[0] are the padded leaves and layers[depth][0] is the root.
    """

    def __init__(self, leaves: Sequence[bytes], depth: int = 0):
        leaves = [bytes(leaf) for leaf in leaves]
        for leaf in leaves:
            if len(leaf) != BYTES_PER_CHUNK:
                raise ValueError(f"Merkle leaves must be 32 bytes, got {len(leaf)}")

        if depth < 0:
            raise ValueError(f"Tree depth must be non-negative, got {depth}")
        if depth == 0:
            depth = _ceil_log2(len(leaves))
        if len(leaves) > (1 << depth):
            raise ValueError(
                f"Too many leaves for depth {depth}: {len(leaves)} > {1 << depth}"
            )

        self.depth = depth
        self.leaf_count = 1 << depth
        padded = leaves + [ZERO_HASHES[0]] * (self.leaf_count - len(leaves))
        self.layers: List[List[bytes]] = [padded]
        current = padded
        for _ in range(depth):
            current = [
                sha256(current[i] + current[i + 1]).digest()
                for i in range(0, len(current), 2)
            ]
            self.layers.append(current)

    def root(self) -> bytes:
        """Root of the tree; the all-zero chunk for an empty tree."""
        return self.layers[self.depth][0]

    def generate_proof(self, index: int) -> List[bytes]:
        """
        Sibling hashes for leaf `index`, leaf to root.

        Raises:
            IndexOutOfRangeError: If index is negative or >= leaf count
        """
        if index < 0 or index >= self.leaf_count:
            raise IndexOutOfRangeError(index, self.leaf_count)

        proof = []
        position = index
        for level in range(self.depth):
            proof.append(self.layers[level][position ^ 1])
            position //= 2
        return proof

    def proof_from_generalized_index(self, gindex: int) -> List[bytes]:
        """
        Proof for the leaf addressed by a generalized index.

        Raises:
            DepthMismatchError: If gindex does not sit at this tree's depth
        """
        return self.generate_proof(gindex_to_leaf_index(gindex, self.depth))

    @staticmethod
    def verify_proof(
        leaf: bytes, index: int, proof: Sequence[bytes], root: bytes
    ) -> bool:
        """Check a proof against a root; never raises."""
        return verify_merkle_proof(leaf, proof, index, root)

    def __repr__(self) -> str:
        return f"MerkleTree(depth={self.depth}, root=0x{self.root().hex()})"
