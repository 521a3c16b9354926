"""
Generalized Index Helpers

A generalized index encodes a root-to-node path as a single integer: the
root is 1 and the children of node k are 2k (left) and 2k + 1 (right).
The bit length minus one is the node's depth, and the bits after the
leading 1 spell out the left/right choices from the root downward.
"""

from typing import List, Sequence

from ..constants import (
    BALANCES_PER_CHUNK,
    BALANCE_TREE_HEIGHT,
    STATE_BALANCES_GINDEX,
    STATE_VALIDATORS_GINDEX,
    VALIDATOR_TREE_HEIGHT,
)
from ..exceptions import DepthMismatchError


def generalized_index(path: Sequence[int]) -> int:
    """
    Encode a sequence of left(0)/right(1) choices as a generalized index.

    Examples:
        >>> generalized_index([])
        1
        >>> generalized_index([0, 1, 1])
        11
    """
    gindex = 1
    for bit in path:
        if bit not in (0, 1):
            raise ValueError(f"Path elements must be 0 or 1, got {bit}")
        gindex = gindex * 2 + bit
    return gindex


def generalized_index_to_path(gindex: int) -> List[int]:
    """
    Decode a generalized index back into its left/right path.

    Examples:
        >>> generalized_index_to_path(11)
        [0, 1, 1]
    """
    if gindex < 1:
        raise ValueError(f"Generalized index must be positive, got {gindex}")
    return [int(bit) for bit in bin(gindex)[3:]]


def gindex_depth(gindex: int) -> int:
    """Depth of the node addressed by `gindex` (the root has depth 0)."""
    if gindex < 1:
        raise ValueError(f"Generalized index must be positive, got {gindex}")
    return gindex.bit_length() - 1


def leaf_index_to_gindex(index: int, depth: int) -> int:
    """Generalized index of leaf `index` in a tree of the given depth."""
    return (1 << depth) | index


def gindex_to_leaf_index(gindex: int, depth: int) -> int:
    """
    Leaf position addressed by `gindex` in a tree of the given depth.

    Raises:
        DepthMismatchError: If the index does not sit at exactly that depth
    """
    actual = gindex_depth(gindex)
    if actual != depth:
        raise DepthMismatchError(gindex, depth, actual)
    return gindex - (1 << depth)


def concat_generalized_indices(*gindices: int) -> int:
    """
    Combine nested generalized indices into one.

    `concat_generalized_indices(a, b)` addresses node b of the subtree
    whose root is node a.

    Examples:
        >>> concat_generalized_indices(43, 2)
        86
    """
    result = 1
    for gindex in gindices:
        depth = gindex_depth(gindex)
        result = (result << depth) | (gindex ^ (1 << depth))
    return result


def get_branch_indices(gindex: int) -> List[int]:
    """Sibling generalized indices along the path to the root, leaf first."""
    indices = []
    current = gindex
    while current > 1:
        indices.append(current ^ 1)
        current //= 2
    return indices


def validator_gindex(validator_index: int) -> int:
    """
    Generalized index of a validator record relative to the state root.

    The validators field is a list, so its root is hash(data_root, length);
    the data root is the left child (2) of the list root.
    """
    return concat_generalized_indices(
        STATE_VALIDATORS_GINDEX,
        2,
        leaf_index_to_gindex(validator_index, VALIDATOR_TREE_HEIGHT),
    )


def balance_gindex(validator_index: int) -> int:
    """Generalized index of the packed balance leaf holding `validator_index`."""
    return concat_generalized_indices(
        STATE_BALANCES_GINDEX,
        2,
        leaf_index_to_gindex(validator_index // BALANCES_PER_CHUNK, BALANCE_TREE_HEIGHT),
    )
