"""
Shared cipher material for the block-mode transforms.

All cipher-mode transforms run against one fixed AES-256 test key. The key is
not a secret: it exists so that every run produces comparable pictures. The
three primitives derived from it (raw AES for ECB, AES-GCM and AES key wrap
with padding) are bundled in an immutable ``CipherSuite`` that is built once
and handed to every transform call.
"""

from __future__ import annotations

from dataclasses import dataclass

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.keywrap import (
    aes_key_unwrap_with_padding,
    aes_key_wrap_with_padding,
)

FIXED_KEY = bytes(range(32))
GCM_NONCE_SIZE = 12
SEQ_BYTES = 8


class CipherSuiteError(RuntimeError):
    """Raised when the shared cipher instances cannot be constructed."""


class KeyWrapper:
    """AES key wrap with padding (RFC 5649) bound to one wrapping key."""

    def __init__(self, key: bytes):
        # algorithms.AES validates the key length up front so a bad key fails
        # here rather than on the first wrap.
        algorithms.AES(key)
        self._key = bytes(key)

    def wrap(self, data: bytes) -> bytes:
        return aes_key_wrap_with_padding(self._key, bytes(data))

    def unwrap(self, data: bytes) -> bytes:
        return aes_key_unwrap_with_padding(self._key, bytes(data))


@dataclass(frozen=True)
class CipherSuite:
    key: bytes
    ecb: Cipher
    aead: AESGCM
    keywrap: KeyWrapper

    @classmethod
    def from_key(cls, key: bytes = FIXED_KEY) -> "CipherSuite":
        key = bytes(key)
        try:
            ecb = Cipher(algorithms.AES(key), modes.ECB())
        except Exception as exc:
            raise CipherSuiteError(f"failed to create AES{len(key) * 8}: {exc}") from exc
        try:
            aead = AESGCM(key)
        except Exception as exc:
            raise CipherSuiteError(f"failed to create AES{len(key) * 8}-GCM: {exc}") from exc
        try:
            keywrap = KeyWrapper(key)
        except Exception as exc:
            raise CipherSuiteError(f"failed to create AES{len(key) * 8}-KWP: {exc}") from exc
        return cls(key=key, ecb=ecb, aead=aead, keywrap=keywrap)

    def encrypt_block(self, data: bytes) -> bytes:
        encryptor = self.ecb.encryptor()
        return encryptor.update(bytes(data)) + encryptor.finalize()

    def decrypt_block(self, data: bytes) -> bytes:
        decryptor = self.ecb.decryptor()
        return decryptor.update(bytes(data)) + decryptor.finalize()

    @staticmethod
    def gcm_nonce(seq: int) -> bytes:
        if seq < 0 or seq >= 1 << (SEQ_BYTES * 8):
            raise ValueError(f"sequence number out of range: {seq}")
        return seq.to_bytes(SEQ_BYTES, "big") + bytes(GCM_NONCE_SIZE - SEQ_BYTES)
