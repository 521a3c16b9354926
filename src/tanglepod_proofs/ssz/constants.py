"""
SSZ Constants and Limits

This module contains the constants and limits used when merkleizing the
Deneb beacon state and the containers needed for TanglePod proofs.

References:
- Ethereum Consensus Specification: https://github.com/ethereum/consensus-specs
- SSZ Specification: https://github.com/ethereum/consensus-specs/blob/dev/ssz/simple-serialize.md
"""

from hashlib import sha256

# ====================
# Historical Data Limits
# ====================

# Number of slots kept in the block_roots and state_roots vectors
SLOTS_PER_HISTORICAL_ROOT = 8192

# Number of epochs kept in randao_mixes
EPOCHS_PER_HISTORICAL_VECTOR = 65536

# Number of epochs kept in slashings
EPOCHS_PER_SLASHINGS_VECTOR = 8192

# Maximum entries in historical_roots and historical_summaries
HISTORICAL_ROOTS_LIMIT = 16777216  # 2^24

# EPOCHS_PER_ETH1_VOTING_PERIOD * SLOTS_PER_EPOCH
ETH1_DATA_VOTES_LIMIT = 2048

SYNC_COMMITTEE_SIZE = 512

# ====================
# Validator Limits
# ====================

# Maximum capacity for the validator registry (2^40)
VALIDATOR_REGISTRY_LIMIT = 1099511627776

# Depth of the validator registry tree
VALIDATOR_TREE_HEIGHT = 40

# Four balances share a chunk, so the balance tree is two levels shorter
BALANCES_PER_CHUNK = 4
BALANCE_TREE_HEIGHT = 38

# Size of one SSZ-encoded Validator record
VALIDATOR_RECORD_SIZE = 121

# Number of fields in a Validator container
VALIDATOR_FIELD_COUNT = 8
VALIDATOR_TREE_DEPTH = 3

# ====================
# BeaconState layout (Deneb)
# ====================

BEACON_STATE_FIELD_COUNT = 28
BEACON_STATE_TREE_DEPTH = 5  # 28 fields padded to 32 leaves

STATE_VALIDATORS_INDEX = 11
STATE_BALANCES_INDEX = 12

# Generalized indices of the list roots relative to the state root
STATE_VALIDATORS_GINDEX = (1 << BEACON_STATE_TREE_DEPTH) + STATE_VALIDATORS_INDEX  # 43
STATE_BALANCES_GINDEX = (1 << BEACON_STATE_TREE_DEPTH) + STATE_BALANCES_INDEX  # 44

# BeaconBlockHeader: 5 fields padded to 8 leaves
BLOCK_HEADER_TREE_DEPTH = 3
BLOCK_HEADER_STATE_ROOT_INDEX = 3

# ====================
# Time
# ====================

SECONDS_PER_SLOT = 12

# ====================
# Cryptographic Constants
# ====================

# Precomputed zero node hashes for Merkle tree padding.
# Each level i contains: SHA256(ZERO_HASHES[i-1] || ZERO_HASHES[i-1])
ZERO_HASHES = [b"\0" * 32]
for _ in range(64):
    ZERO_HASHES.append(sha256(ZERO_HASHES[-1] + ZERO_HASHES[-1]).digest())

# ====================
# SSZ Type Constants
# ====================

# Standard hash output size (32 bytes for SHA256)
HASH_SIZE = 32
BYTES_PER_CHUNK = 32

UINT64_SIZE = 8
BOOL_SIZE = 1
OFFSET_SIZE = 4

# Ethereum address size
ETH_ADDRESS_SIZE = 20

# BLS public key size
BLS_PUBKEY_SIZE = 48

# Execution payload header logs bloom
BYTES_PER_LOGS_BLOOM = 256
MAX_EXTRA_DATA_BYTES = 32
