"""
SSZ Errors

Every failure raised by the decoder and the Merkle engine derives from
SSZError, which is a ValueError so that callers treating malformed input
as a validation problem keep working.
"""


class SSZError(ValueError):
    """Base class for SSZ decoding and merkleization errors."""
    pass


class TruncatedInputError(SSZError):
    """Raised when a buffer is shorter than the fixed-size region it must contain."""

    def __init__(self, actual: int, minimum: int, what: str = "beacon state"):
        self.actual = actual
        self.minimum = minimum
        super().__init__(
            f"{what} too short: got {actual} bytes, need at least {minimum}"
        )


class RecordBoundsError(SSZError):
    """Raised when an offset or record slice falls outside the buffer or breaks record width."""
    pass


class IndexOutOfRangeError(SSZError, IndexError):
    """Raised when a leaf, validator or balance index exceeds the known element count."""

    def __init__(self, index: int, size: int, what: str = "leaf"):
        self.index = index
        self.size = size
        super().__init__(f"{what} index {index} out of range (size {size})")


class DepthMismatchError(SSZError):
    """Raised when a generalized index does not address a leaf of the tree it is applied to."""

    def __init__(self, gindex: int, expected: int, actual: int):
        self.gindex = gindex
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"generalized index {gindex} has depth {actual}, tree depth is {expected}"
        )
