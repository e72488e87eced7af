"""
Hex String and Address Utilities

This module provides helpers for moving between the hex strings used at the
edges (JSON files, CLI arguments, HTTP payloads) and the raw bytes the
verifiers operate on, plus EVM address normalization.
"""

from typing import Optional, Union

from web3 import Web3


HexLike = Union[str, bytes, bytearray]


def normalize_hex(hex_str: str, expected_bytes: Optional[int] = None) -> str:
    """
    Normalize a hex string to a lowercase, even-length, 0x-prefixed form.

    Args:
        hex_str: The hex string to normalize (with or without '0x')
        expected_bytes: Optional expected byte length for validation

    Returns:
        Normalized hex string with '0x' prefix

    Raises:
        ValueError: If the hex string contains invalid characters or has
            the wrong length

    Examples:
        >>> normalize_hex("0x123")
        "0x0123"
        >>> normalize_hex("ABCD")
        "0xabcd"
    """
    if not isinstance(hex_str, str):
        raise ValueError(f"Expected a hex string, got {type(hex_str).__name__}")

    hex_part = hex_str[2:] if hex_str.startswith(("0x", "0X")) else hex_str

    if not all(c in "0123456789abcdefABCDEF" for c in hex_part):
        raise ValueError(f"Invalid hex string: {hex_str}")

    # Pad to even length
    if len(hex_part) % 2 == 1:
        hex_part = "0" + hex_part

    if expected_bytes is not None:
        actual_bytes = len(hex_part) // 2
        if actual_bytes != expected_bytes:
            raise ValueError(f"Expected {expected_bytes} bytes, got {actual_bytes} bytes")

    return "0x" + hex_part.lower()


def hex_to_bytes(value: HexLike) -> bytes:
    """
    Convert a hex string (or bytes, passed through) to bytes.

    Examples:
        >>> hex_to_bytes("0x1234")
        b'\\x12\\x34'
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(normalize_hex(value)[2:])


def bytes_to_hex(data: bytes, prefix: bool = True) -> str:
    """
    Convert bytes to a hex string.

    Examples:
        >>> bytes_to_hex(b'\\x12\\x34')
        "0x1234"
        >>> bytes_to_hex(b'\\x12\\x34', prefix=False)
        "1234"
    """
    hex_str = bytes(data).hex()
    return f"0x{hex_str}" if prefix else hex_str


def to_bytes32(value: HexLike) -> bytes:
    """
    Coerce a 32-byte hash given as bytes or hex into bytes.

    Raises:
        ValueError: If the value is not exactly 32 bytes long
    """
    data = hex_to_bytes(value)
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)} bytes")
    return data


def validate_hex_length(hex_str: str, expected_bytes: int) -> bool:
    """
    Validate that a 0x-prefixed hex string represents exactly ``expected_bytes``.
    """
    if not isinstance(hex_str, str) or not hex_str.startswith("0x"):
        return False

    hex_part = hex_str[2:]
    if len(hex_part) != expected_bytes * 2:
        return False
    return all(c in "0123456789abcdefABCDEF" for c in hex_part)


def normalize_address(address: str) -> str:
    """
    Return the EIP-55 checksum form of an EVM address.

    Raises:
        ValueError: If the value is not a 20-byte hex address
    """
    if not isinstance(address, str) or not validate_hex_length(address, 20):
        raise ValueError(f"Invalid EVM address: {address}")
    return Web3.to_checksum_address(address.lower())
