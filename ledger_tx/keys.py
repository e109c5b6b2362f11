"""Public keys, blockhashes and ed25519 keypairs"""

from typing import Union

import base58
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .constants import HASH_LENGTH, PUBLIC_KEY_LENGTH


class PublicKey:
    """32-byte account address, displayed as base-58"""

    __slots__ = ('_key',)

    def __init__(self, value: Union[bytes, bytearray, str, 'PublicKey']):
        if isinstance(value, PublicKey):
            key = value._key
        elif isinstance(value, str):
            key = base58.b58decode(value)
        else:
            key = bytes(value)
        if len(key) != PUBLIC_KEY_LENGTH:
            raise ValueError(f"public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(key)}")
        self._key = key

    def __bytes__(self) -> bytes:
        return self._key

    def __eq__(self, other) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return base58.b58encode(self._key).decode('ascii')

    def __repr__(self) -> str:
        return f"PublicKey({str(self)!r})"

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Check an ed25519 signature made by this key"""
        try:
            VerifyKey(self._key).verify(message, bytes(signature))
        except (BadSignatureError, ValueError):
            return False
        return True


def to_hash(value: Union[bytes, bytearray, str]) -> bytes:
    """Normalize a blockhash given as raw bytes or base-58 text"""
    if isinstance(value, str):
        value = base58.b58decode(value)
    value = bytes(value)
    if len(value) != HASH_LENGTH:
        raise ValueError(f"blockhash must be {HASH_LENGTH} bytes, got {len(value)}")
    return value


class Keypair:
    """ed25519 signing key with its public address"""

    def __init__(self, signing_key: SigningKey):
        self._signing_key = signing_key
        self.public_key = PublicKey(bytes(signing_key.verify_key))

    @classmethod
    def generate(cls) -> 'Keypair':
        return cls(SigningKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> 'Keypair':
        """Build from a 32-byte seed"""
        return cls(SigningKey(bytes(seed)))

    @classmethod
    def from_secret_key(cls, secret_key: bytes) -> 'Keypair':
        """Build from a 64-byte secret key (seed followed by public key)"""
        secret_key = bytes(secret_key)
        if len(secret_key) != 64:
            raise ValueError(f"secret key must be 64 bytes, got {len(secret_key)}")
        keypair = cls.from_seed(secret_key[:32])
        if bytes(keypair.public_key) != secret_key[32:]:
            raise ValueError("secret key does not match its public half")
        return keypair

    @property
    def secret_key(self) -> bytes:
        return bytes(self._signing_key) + bytes(self.public_key)

    def sign(self, message: bytes) -> bytes:
        """Detached signature over message"""
        return self._signing_key.sign(message).signature
