"""
SSZ (Simple Serialize) Library

The subset of SSZ needed to prove validator fields and balances against a
beacon block root: canonical leaf encoding, dense and sparse merkle trees,
generalized index arithmetic, and a Deneb BeaconState decoder.

Modules:
- constants: SSZ constants and configuration values
- exceptions: error kinds raised by decoding and proof generation
- serialization: Core serialization functions
- encoding: Canonical leaf encoding and balance packing
- merkle: Merkle tree operations and proofs
- containers: SSZ container definitions and the state layout
- decoder: BeaconState SSZ decoder
"""

# Core functionality
from .constants import *
from .exceptions import *
from .serialization import *
from .encoding import *

# Merkle operations
from .merkle import *

# Container definitions
from .containers import *
from .decoder import decode_beacon_state, read_offset_table, split_sections

__all__ = [
    # Constants
    'BYTES_PER_CHUNK',
    'SLOTS_PER_HISTORICAL_ROOT',
    'VALIDATOR_REGISTRY_LIMIT',
    'VALIDATOR_TREE_HEIGHT',
    'BALANCE_TREE_HEIGHT',
    'BALANCES_PER_CHUNK',
    'BEACON_STATE_TREE_DEPTH',
    'STATE_VALIDATORS_INDEX',
    'STATE_BALANCES_INDEX',
    'ZERO_HASHES',

    # Errors
    'SSZError',
    'TruncatedInputError',
    'RecordBoundsError',
    'IndexOutOfRangeError',
    'DepthMismatchError',

    # Core serialization
    'serialize_uint64',
    'serialize_bytes',
    'deserialize_uint64',

    # Encoding functions
    'merkle_root_basic',
    'uint64_leaf',
    'bool_leaf',
    'bytes48_leaf',
    'pack_balances',
    'balance_leaf',
    'extract_balance',

    # Merkle trees
    'MerkleTree',
    'SparseMerkleTree',
    'merkle_root_list',
    'merkle_root_list_fixed',
    'mix_in_length',
    'encode_balances',
    'encode_validators_leaf_list',
    'validators_tree',
    'balances_tree',

    # Generalized indices
    'generalized_index',
    'concat_generalized_indices',
    'gindex_depth',
    'validator_gindex',
    'balance_gindex',

    # Proof functions
    'compute_root_from_proof',
    'verify_merkle_proof',
    'verify_gindex_proof',
    'compose_proofs',
    'compose_leaf_index',

    # Containers
    'SSZContainer',
    'Fork',
    'BeaconBlockHeader',
    'Checkpoint',
    'Eth1Data',
    'ExecutionPayloadHeader',
    'Validator',
    'BeaconState',
    'json_to_class',

    # Decoder
    'decode_beacon_state',
    'read_offset_table',
    'split_sections',
]
