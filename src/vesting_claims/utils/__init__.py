"""
Utility Functions

This package provides hex string and address helpers used throughout the
vesting claims library.
"""

from .hex_helpers import (
    normalize_hex,
    hex_to_bytes,
    bytes_to_hex,
    to_bytes32,
    validate_hex_length,
    normalize_address,
)

__all__ = [
    'normalize_hex',
    'hex_to_bytes',
    'bytes_to_hex',
    'to_bytes32',
    'validate_hex_length',
    'normalize_address',
]
