"""
Container Utilities

This module provides utility functions for turning beacon node JSON
responses into SSZ containers.
"""

import re
from typing import Any

BYTES_FIELDS = {
    "pubkey",
    "withdrawal_credentials",
    "genesis_validators_root",
    "parent_root",
    "state_root",
    "body_root",
    "deposit_root",
    "block_hash",
    "previous_version",
    "current_version",
    "root",
}

INT_FIELDS = {
    "slot",
    "proposer_index",
    "effective_balance",
    "activation_eligibility_epoch",
    "activation_epoch",
    "exit_epoch",
    "withdrawable_epoch",
    "epoch",
    "deposit_count",
}


def camel_to_snake(name: str) -> str:
    name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def normalize_hex(hex_str, expected_bytes=None):
    if not isinstance(hex_str, str) or not hex_str.startswith("0x"):
        return hex_str
    hex_part = hex_str[2:]
    if not all(c in "0123456789abcdefABCDEF" for c in hex_part):
        raise ValueError(f"Invalid hex string: {hex_str}")
    # Pad to even length
    if len(hex_part) % 2 == 1:
        hex_part = "0" + hex_part
    if expected_bytes is not None and len(hex_part) != expected_bytes * 2:
        raise ValueError(f"Expected {expected_bytes} bytes, got {len(hex_part) // 2}: {hex_str}")
    return "0x" + hex_part


def json_to_class(data: Any, cls: type) -> Any:
    """
    Build a container from a beacon API JSON object.

    Keys may be camelCase or snake_case. Hex strings become bytes, decimal
    strings become ints, and booleans pass through.

    Examples:
        >>> v = json_to_class(response["data"]["validator"], Validator)
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object for {cls.__name__}, got {type(data).__name__}")

    processed = {}
    for key, value in data.items():
        new_key = camel_to_snake(key)
        if new_key == "parent_block_root":
            new_key = "parent_root"
        if isinstance(value, str) and value.startswith("0x"):
            value = normalize_hex(value)
            if new_key in BYTES_FIELDS:
                processed[new_key] = bytes.fromhex(value[2:])
            elif new_key in INT_FIELDS:
                processed[new_key] = int(value, 16)
        elif isinstance(value, str):
            processed[new_key] = int(value)
        else:
            processed[new_key] = value

    field_names = set(getattr(cls, "__dataclass_fields__", {}))
    if field_names:
        processed = {k: v for k, v in processed.items() if k in field_names}
    return cls(**processed)
