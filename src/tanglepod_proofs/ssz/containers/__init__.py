"""
SSZ Containers Package

This package provides SSZ container definitions for the Deneb beacon chain
data structures used by TanglePod proofs. It includes:

- Base container class with common merkleization
- Beacon chain containers (Fork, BeaconBlockHeader, Validator, ...)
- The Deneb BeaconState field layout and the decoded state
- Utilities for JSON conversion
"""

from .base import SSZContainer
from .beacon import (
    Fork,
    BeaconBlockHeader,
    Checkpoint,
    Eth1Data,
    HistoricalSummary,
    ExecutionPayloadHeader,
    Validator,
    decode_records,
    decode_validators,
    decode_balances,
)
from .layout import BEACON_STATE_FIELDS, FIELD_INDEX, FIXED_REGION_SIZE, VARIABLE_FIELDS, FieldSpec
from .state import BeaconState
from .utils import json_to_class

__all__ = [
    # Base classes
    'SSZContainer',

    # Beacon chain containers
    'Fork',
    'BeaconBlockHeader',
    'Checkpoint',
    'Eth1Data',
    'HistoricalSummary',
    'ExecutionPayloadHeader',
    'Validator',
    'BeaconState',

    # Layout
    'BEACON_STATE_FIELDS',
    'FIELD_INDEX',
    'FIXED_REGION_SIZE',
    'VARIABLE_FIELDS',
    'FieldSpec',

    # Utilities
    'decode_records',
    'decode_validators',
    'decode_balances',
    'json_to_class',
]
