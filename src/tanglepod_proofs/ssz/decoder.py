"""
BeaconState SSZ Decoder

Parses a Deneb BeaconState as served by /eth/v2/debug/beacon/states/{id}
with Accept: application/octet-stream.

The fixed region is read field by field following the layout table. The
offset table of all nine variable-size fields is decoded up front and
validated before any section is sliced, so every variable section is
bounded by the next offset rather than assumed to run to the end of the
buffer.
"""

import logging
from typing import Dict, List, Tuple

from .constants import UINT64_SIZE, VALIDATOR_RECORD_SIZE
from .containers.beacon import (
    BeaconBlockHeader,
    Eth1Data,
    ExecutionPayloadHeader,
    Fork,
    decode_balances,
    decode_validators,
)
from .containers.layout import BEACON_STATE_FIELDS, FIXED_REGION_SIZE
from .containers.state import BeaconState
from .exceptions import RecordBoundsError, TruncatedInputError
from .serialization import read_uint32

logger = logging.getLogger(__name__)


def read_offset_table(data: bytes) -> List[Tuple[str, int, int]]:
    """
    Decode and validate the variable-size field offsets.

    Returns:
        (field name, start, end) for each variable field, in field order

    Raises:
        TruncatedInputError: If the buffer is shorter than the fixed region
        RecordBoundsError: If offsets are out of bounds or out of order
    """
    if len(data) < FIXED_REGION_SIZE:
        raise TruncatedInputError(len(data), FIXED_REGION_SIZE)

    offsets = []
    position = 0
    for spec in BEACON_STATE_FIELDS:
        if spec.is_variable:
            offsets.append((spec.name, read_uint32(data, position)))
        position += spec.fixed_width

    first_name, first_offset = offsets[0]
    if first_offset != FIXED_REGION_SIZE:
        raise RecordBoundsError(
            f"first variable offset ({first_name}) is {first_offset}, "
            f"expected end of fixed region {FIXED_REGION_SIZE}"
        )

    table = []
    for i, (name, start) in enumerate(offsets):
        end = offsets[i + 1][1] if i + 1 < len(offsets) else len(data)
        if start > end:
            raise RecordBoundsError(f"offset of {name} ({start}) exceeds next offset ({end})")
        if end > len(data):
            raise RecordBoundsError(
                f"section {name} ends at {end}, beyond buffer of {len(data)} bytes"
            )
        table.append((name, start, end))
    return table


def split_sections(data: bytes) -> Dict[str, bytes]:
    """Raw SSZ bytes of every top-level field, keyed by field name."""
    sections = {}
    position = 0
    for spec in BEACON_STATE_FIELDS:
        if not spec.is_variable:
            sections[spec.name] = bytes(data[position : position + spec.size])
        position += spec.fixed_width

    for name, start, end in read_offset_table(data):
        sections[name] = bytes(data[start:end])
    return sections


def decode_beacon_state(data: bytes) -> BeaconState:
    """
    Decode a Deneb BeaconState from SSZ bytes.

    Args:
        data: Raw SSZ-encoded state

    Returns:
        BeaconState holding the typed fields needed for proofs and the raw
        bytes of all other fields

    Raises:
        TruncatedInputError: If data is shorter than the fixed region
        RecordBoundsError: If an offset or record slice is invalid

    Examples:
        >>> state = decode_beacon_state(client.get_beacon_state_ssz("finalized"))
        >>> len(state.validators)
    """
    sections = split_sections(data)

    validators_raw = sections.pop("validators")
    if len(validators_raw) % VALIDATOR_RECORD_SIZE != 0:
        raise RecordBoundsError(
            f"validators section of {len(validators_raw)} bytes is not a multiple "
            f"of {VALIDATOR_RECORD_SIZE}"
        )
    balances_raw = sections.pop("balances")
    if len(balances_raw) % UINT64_SIZE != 0:
        raise RecordBoundsError(
            f"balances section of {len(balances_raw)} bytes is not a multiple of {UINT64_SIZE}"
        )

    block_roots_raw = sections.pop("block_roots")
    state_roots_raw = sections.pop("state_roots")

    state = BeaconState(
        genesis_time=int.from_bytes(sections.pop("genesis_time"), "little"),
        genesis_validators_root=sections.pop("genesis_validators_root"),
        slot=int.from_bytes(sections.pop("slot"), "little"),
        fork=Fork.from_ssz(sections.pop("fork")),
        latest_block_header=BeaconBlockHeader.from_ssz(sections.pop("latest_block_header")),
        validators=decode_validators(validators_raw),
        balances=decode_balances(balances_raw),
        block_roots=[block_roots_raw[i : i + 32] for i in range(0, len(block_roots_raw), 32)],
        state_roots=[state_roots_raw[i : i + 32] for i in range(0, len(state_roots_raw), 32)],
        eth1_data=Eth1Data.from_ssz(sections.pop("eth1_data")),
        eth1_deposit_index=int.from_bytes(sections.pop("eth1_deposit_index"), "little"),
        latest_execution_payload_header=ExecutionPayloadHeader.from_ssz(
            sections.pop("latest_execution_payload_header")
        ),
        sections=sections,
    )

    logger.info(
        f"Decoded beacon state at slot {state.slot}: {len(state.validators)} validators, "
        f"{len(state.balances)} balances ({len(data)} bytes)"
    )
    return state
