"""
Sparse Merkle Tree

A binary merkle tree of fixed (possibly very large) depth where only the
populated leaves are stored. Any unset leaf equals the zero chunk, so a
subtree without populated leaves hashes to the precomputed zero hash for
its height and is never descended into. This is what makes the 2^40-leaf
validator registry tractable.

Occupancy of a subtree is answered by bisecting the sorted list of
populated indices. That is cheap while the populated set is small
relative to the capacity, which holds for beacon-state lists (at most a
few million entries against a 2^40 capacity).
"""

import logging
from bisect import bisect_left, insort
from hashlib import sha256
from typing import Dict, Iterable, List, Optional, Tuple

from ..constants import BYTES_PER_CHUNK, ZERO_HASHES
from ..exceptions import IndexOutOfRangeError

logger = logging.getLogger(__name__)


def zero_hashes(depth: int) -> List[bytes]:
    """
    Zero-hash chain of length depth + 1.

    zero[0] is the all-zero chunk and zero[i] = sha256(zero[i-1] || zero[i-1]).
    """
    if depth < len(ZERO_HASHES):
        return ZERO_HASHES[: depth + 1]
    chain = list(ZERO_HASHES)
    while len(chain) <= depth:
        chain.append(sha256(chain[-1] + chain[-1]).digest())
    return chain


class SparseMerkleTree:
    """
    Merkle tree over 2^depth conceptual leaves backed by an index -> leaf map.

    Its root is byte-identical to a dense tree of the same depth holding
    the same leaves with zero chunks in the gaps. Node hashes computed by
    root() are memoized until the next set_leaf(), so proofs generated
    afterwards are lookups and may be produced from several threads.
    """

    def __init__(self, depth: int, leaves: Optional[Dict[int, bytes]] = None):
        if depth < 0:
            raise ValueError(f"Tree depth must be non-negative, got {depth}")
        self.depth = depth
        self.capacity = 1 << depth
        self.zero = zero_hashes(depth)
        self._leaves: Dict[int, bytes] = {}
        self._indices: List[int] = []
        self._nodes: Dict[Tuple[int, int], bytes] = {}
        if leaves:
            for index, value in leaves.items():
                self._check_index(index)
                self._leaves[index] = self._check_leaf(value)
            self._indices = sorted(self._leaves)

    @classmethod
    def from_leaves(cls, leaves: Iterable[bytes], depth: int) -> "SparseMerkleTree":
        """Populate indices 0..n-1 from a sequence of leaves."""
        return cls(depth, dict(enumerate(leaves)))

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= self.capacity:
            raise IndexOutOfRangeError(index, self.capacity)

    @staticmethod
    def _check_leaf(value: bytes) -> bytes:
        if len(value) != BYTES_PER_CHUNK:
            raise ValueError(f"Merkle leaves must be 32 bytes, got {len(value)}")
        return bytes(value)

    def __len__(self) -> int:
        return len(self._indices)

    @property
    def populated_indices(self) -> List[int]:
        return list(self._indices)

    def set_leaf(self, index: int, value: bytes) -> None:
        self._check_index(index)
        if index not in self._leaves:
            insort(self._indices, index)
        self._leaves[index] = self._check_leaf(value)
        self._nodes.clear()

    def get_leaf(self, index: int) -> bytes:
        """Leaf at `index`; the zero chunk when unset or outside the tree."""
        return self._leaves.get(index, self.zero[0])

    def _has_leaves(self, start: int, end: int) -> bool:
        """True if any populated index lies in [start, end)."""
        i = bisect_left(self._indices, start)
        return i < len(self._indices) and self._indices[i] < end

    def _node(self, height: int, position: int) -> bytes:
        """Hash of the node `height` levels above the leaves at `position`."""
        if height == 0:
            return self._leaves.get(position, self.zero[0])

        cached = self._nodes.get((height, position))
        if cached is not None:
            return cached

        start = position << height
        if not self._has_leaves(start, start + (1 << height)):
            return self.zero[height]

        left = self._node(height - 1, position * 2)
        right = self._node(height - 1, position * 2 + 1)
        node = sha256(left + right).digest()
        self._nodes[(height, position)] = node
        return node

    def root(self) -> bytes:
        root = self._node(self.depth, 0)
        logger.debug(
            f"Sparse tree depth={self.depth} leaves={len(self._indices)} "
            f"cached_nodes={len(self._nodes)}"
        )
        return root

    def generate_proof(self, index: int) -> List[bytes]:
        """
        Sibling hashes for leaf `index`, leaf to root.

        Empty siblings resolve to zero hashes; callers bound `index` to the
        list's real length before treating the proof as meaningful.

        Raises:
            IndexOutOfRangeError: If index lies outside the tree's capacity
        """
        self._check_index(index)
        return [
            self._node(height, (index >> height) ^ 1) for height in range(self.depth)
        ]

    def __repr__(self) -> str:
        return f"SparseMerkleTree(depth={self.depth}, populated={len(self._indices)})"
