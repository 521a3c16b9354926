"""
SSZ Merkle Tree Operations

- tree: dense merkle tree over small explicit leaf lists
- sparse: sparse merkle tree for registry-sized lists
- gindex: generalized index arithmetic
- proof: proof verification and composition
- encoding: list/vector roots with length mix-in
"""

from .tree import MerkleTree, merkle_root_list
from .sparse import SparseMerkleTree, zero_hashes
from .gindex import (
    balance_gindex,
    concat_generalized_indices,
    generalized_index,
    generalized_index_to_path,
    get_branch_indices,
    gindex_depth,
    gindex_to_leaf_index,
    leaf_index_to_gindex,
    validator_gindex,
)
from .proof import (
    compose_leaf_index,
    compose_proofs,
    compute_root_from_proof,
    verify_gindex_proof,
    verify_merkle_proof,
)
from .encoding import (
    balances_tree,
    encode_balances,
    encode_validators_leaf_list,
    length_leaf,
    merkle_root_list_fixed,
    mix_in_length,
    validators_tree,
)

__all__ = [
    "MerkleTree",
    "SparseMerkleTree",
    "merkle_root_list",
    "zero_hashes",
    "balance_gindex",
    "concat_generalized_indices",
    "generalized_index",
    "generalized_index_to_path",
    "get_branch_indices",
    "gindex_depth",
    "gindex_to_leaf_index",
    "leaf_index_to_gindex",
    "validator_gindex",
    "compose_leaf_index",
    "compose_proofs",
    "compute_root_from_proof",
    "verify_gindex_proof",
    "verify_merkle_proof",
    "balances_tree",
    "encode_balances",
    "encode_validators_leaf_list",
    "length_leaf",
    "merkle_root_list_fixed",
    "mix_in_length",
    "validators_tree",
]
