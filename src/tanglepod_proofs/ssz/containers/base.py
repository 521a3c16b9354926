"""
Base SSZ Container Class

Fixed containers serialize to a list of 32-byte field leaves and are
merkleized with a dense tree over those leaves.
"""

from abc import ABC, abstractmethod
from dataclasses import fields
from typing import List

from ..merkle.tree import MerkleTree


class SSZContainer(ABC):
    """
    Abstract base class for SSZ containers.

    Subclasses are dataclasses that implement serialize() to return one
    32-byte leaf per field in declaration order.
    """

    @abstractmethod
    def serialize(self) -> List[bytes]:
        """Return the container's field leaves."""
        pass

    def merkle_tree(self) -> MerkleTree:
        return MerkleTree(self.serialize())

    def merkle_root(self) -> bytes:
        """Calculate SSZ merkle root for this container."""
        return self.merkle_tree().root()

    def get_proof(self, index: int) -> List[bytes]:
        """Get merkle proof for the field at index."""
        return self.merkle_tree().generate_proof(index)

    def to_dict(self) -> dict:
        """
        Convert container to a JSON-friendly dictionary.

        Byte fields are rendered as 0x-prefixed hex.
        """
        result = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, SSZContainer):
                result[field.name] = value.to_dict()
            elif isinstance(value, (bytes, bytearray)):
                result[field.name] = f"0x{bytes(value).hex()}"
            else:
                result[field.name] = value
        return result
