"""
Cryptographic primitives for the auction engine.

This module provides:
- Keccak-256 hashing
- Key generation for simulated externally-owned accounts
- Ethereum-style address derivation
- Deterministic contract address computation

Design Notes:
-------------
Accounts are backed by real secp256k1 keypairs so that every address on the
simulated chain is derived the same way an EVM chain derives it:

    address = keccak256(public_key)[-20:]

Contract addresses are derived from the deployer and a nonce, and auction
clones additionally commit to the template and the creation parameters:

    contract = keccak256(deployer || nonce)[-20:]
    clone    = keccak256(0xff || factory || template || keccak256(params) || nonce)[-20:]

Addresses travel through the engine as lowercase 0x-prefixed hex strings.
"""

import secrets
from dataclasses import dataclass

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Constants
# =============================================================================

# secp256k1 curve order (number of points on the curve)
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

ADDRESS_SIZE = 20

ZERO_ADDRESS = "0x" + "00" * ADDRESS_SIZE

# Prefix byte for clone address derivation (CREATE2 convention)
CLONE_PREFIX = b"\xff"


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: address derivation, parameter digests.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Key Generation
# =============================================================================


@dataclass
class KeyPair:
    """
    An ECDSA keypair on secp256k1.

    Attributes:
        private_key: 32-byte secret key (integer in [1, order-1])
        public_key: 64-byte uncompressed public key (x || y coordinates)
    """
    private_key: bytes  # 32 bytes
    public_key: bytes   # 64 bytes (uncompressed, no 0x04 prefix)

    @property
    def address(self) -> str:
        """Address derived from the public key, hex-encoded with 0x prefix."""
        return bytes_to_hex(address_from_public_key(self.public_key))


def generate_keypair() -> KeyPair:
    """
    Generate a new random keypair.

    Uses cryptographically secure random number generator.
    """
    private_key_int = secrets.randbelow(SECP256K1_ORDER - 1) + 1
    private_key = private_key_int.to_bytes(32, byteorder="big")
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


def private_key_to_public_key(private_key: bytes) -> bytes:
    """
    Derive public key from private key.

    Args:
        private_key: 32-byte private key

    Returns:
        64-byte uncompressed public key
    """
    if len(private_key) != 32:
        raise ValueError("Private key must be 32 bytes")

    # P = k * G, returned as an (x, y) tuple of integers
    public_key_point = secp256k1.privtopub(private_key)
    x_bytes = public_key_point[0].to_bytes(32, byteorder="big")
    y_bytes = public_key_point[1].to_bytes(32, byteorder="big")
    return x_bytes + y_bytes


def address_from_public_key(public_key: bytes) -> bytes:
    """
    Derive address from public key.

    address = keccak256(public_key)[-20:]
    """
    if len(public_key) != 64:
        raise ValueError("Public key must be 64 bytes")
    return keccak256(public_key)[-ADDRESS_SIZE:]


# =============================================================================
# Contract Addresses
# =============================================================================


def compute_contract_address(deployer: str, nonce: int) -> str:
    """
    Address of a contract deployed directly by `deployer` at `nonce`.

    Args:
        deployer: Deploying account or contract
        nonce: Deployer's deployment counter

    Returns:
        0x-prefixed contract address
    """
    digest = keccak256(hex_to_bytes(deployer) + nonce.to_bytes(32, byteorder="big"))
    return bytes_to_hex(digest[-ADDRESS_SIZE:])


def compute_clone_address(factory: str, template: str, params: bytes, nonce: int) -> str:
    """
    Address of an auction clone created by `factory`.

    Deterministic in (factory, template, params, nonce), so the address
    can be predicted before the creating transaction is sent.

    Args:
        factory: Factory contract address
        template: Master template the clone is bound to
        params: Canonical encoding of the creation parameters
        nonce: Factory's creation counter

    Returns:
        0x-prefixed clone address
    """
    digest = keccak256(
        CLONE_PREFIX
        + hex_to_bytes(factory)
        + hex_to_bytes(template)
        + keccak256(params)
        + nonce.to_bytes(32, byteorder="big")
    )
    return bytes_to_hex(digest[-ADDRESS_SIZE:])


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def is_valid_address(address: str) -> bool:
    """Check if string is a valid address format."""
    if not isinstance(address, str) or not address.startswith("0x"):
        return False
    if len(address) != 42:  # 0x + 40 hex chars
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def normalize_address(address: str) -> str:
    """Lowercase an address so comparisons are case-insensitive."""
    return address.lower()
