"""
Block transforms: the reference colour filters and the AES mode demonstrations.

A transform maps one 16-byte block and its sequence number to a raw output.
Cipher modes with a tag or wrapping overhead produce more than 16 bytes; only
the slice named by ``offset`` is written back into the block, see
``retained_slice``.
"""

from __future__ import annotations

import secrets
import typing

from .blocks import BLOCK_SIZE, PIXEL_BYTES
from .ciphers import CipherSuite

IV_SIZE = 16
SMALL_IV_SET = 8

RandBytes = typing.Callable[[int], bytes]


class TransformError(RuntimeError):
    """Raised when a transform fails on a block."""

    def __init__(self, name: str, seq: int, cause: "BaseException | str"):
        super().__init__(f"{name}: block {seq}: {cause}")
        self.name = name
        self.seq = seq
        self.cause = cause


def retained_slice(output: bytes, offset: int = 0) -> bytes:
    """
    Return the 16 bytes of a raw transform output that go back into the image.

    GCM output is ciphertext followed by the tag, so offset 0 keeps the
    ciphertext. Wrapping a 16-byte IV prefix plus the block yields 40 bytes
    and offset 16 keeps the part aligned with the pixel data.
    """
    end = offset + BLOCK_SIZE
    if offset < 0 or len(output) < end:
        raise ValueError(
            f"transform output of {len(output)} bytes has no 16-byte slice at offset {offset}"
        )
    return bytes(output[offset:end])


class BlockTransform:
    name = ""
    offset = 0

    def transform(self, data: bytes, seq: int, suite: CipherSuite) -> bytes:
        raise NotImplementedError

    def apply(self, block: bytearray, seq: int, suite: CipherSuite) -> None:
        if len(block) != BLOCK_SIZE:
            raise ValueError(f"block must be {BLOCK_SIZE} bytes, got {len(block)}")
        try:
            output = self.transform(bytes(block), seq, suite)
            block[:] = retained_slice(output, self.offset)
        except TransformError:
            raise
        except Exception as exc:
            raise TransformError(self.name, seq, exc) from exc

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class CopyFilter(BlockTransform):
    name = "copy"

    def transform(self, data: bytes, seq: int, suite: CipherSuite) -> bytes:
        return bytes(data)


class ChannelFilter(BlockTransform):
    """Keep one colour channel and zero the other two; alpha is untouched."""

    def __init__(self, name: str, keep: int):
        self.name = name
        self.keep = keep

    def transform(self, data: bytes, seq: int, suite: CipherSuite) -> bytes:
        out = bytearray(data)
        for i in range(0, len(out) - PIXEL_BYTES + 1, PIXEL_BYTES):
            for channel in range(3):
                if channel != self.keep:
                    out[i + channel] = 0
        return bytes(out)


class ECBTransform(BlockTransform):
    name = "AES-ECB"

    def transform(self, data: bytes, seq: int, suite: CipherSuite) -> bytes:
        return suite.encrypt_block(data)


class GCMTransform(BlockTransform):
    name = "AES-GCM"

    def transform(self, data: bytes, seq: int, suite: CipherSuite) -> bytes:
        return suite.aead.encrypt(suite.gcm_nonce(seq), data, None)


class KeyWrapTransform(BlockTransform):
    name = "AES-KWP"

    def transform(self, data: bytes, seq: int, suite: CipherSuite) -> bytes:
        return suite.keywrap.wrap(data)


class _IVKeyWrapTransform(BlockTransform):
    """Wrap a 16-byte IV block followed by the pixel block."""

    offset = IV_SIZE

    def __init__(self, randbytes: RandBytes | None = None):
        self._randbytes = randbytes or secrets.token_bytes

    def _random(self, size: int) -> bytes:
        data = self._randbytes(size)
        if len(data) != size:
            raise RuntimeError(f"randomness source returned {len(data)} of {size} bytes")
        return data

    def iv(self, seq: int) -> bytes:
        raise NotImplementedError

    def transform(self, data: bytes, seq: int, suite: CipherSuite) -> bytes:
        return suite.keywrap.wrap(self.iv(seq) + bytes(data))


class FixedIVKeyWrapTransform(_IVKeyWrapTransform):
    name = "AES-KWP-FixedIVs"

    def iv(self, seq: int) -> bytes:
        return bytes([seq % SMALL_IV_SET]) * IV_SIZE


class RandomFixedIVKeyWrapTransform(_IVKeyWrapTransform):
    name = "AES-KWP-RandomFixedIVs"

    def iv(self, seq: int) -> bytes:
        return bytes([self._random(1)[0] % SMALL_IV_SET]) * IV_SIZE


class RandomIVKeyWrapTransform(_IVKeyWrapTransform):
    name = "AES-KWP-RandomIV"

    def iv(self, seq: int) -> bytes:
        return self._random(IV_SIZE)


TRANSFORMS: "tuple[BlockTransform, ...]" = (
    ChannelFilter("red", keep=0),
    ChannelFilter("green", keep=1),
    ChannelFilter("blue", keep=2),
    ECBTransform(),
    GCMTransform(),
    KeyWrapTransform(),
    FixedIVKeyWrapTransform(),
    RandomFixedIVKeyWrapTransform(),
    RandomIVKeyWrapTransform(),
)

EXTRA_TRANSFORMS: "tuple[BlockTransform, ...]" = (CopyFilter(),)


def transform_names(include_extra: bool = False) -> "list[str]":
    names = [t.name for t in TRANSFORMS]
    if include_extra:
        names.extend(t.name for t in EXTRA_TRANSFORMS)
    return names


def get_transform(name: str) -> BlockTransform:
    for transform in TRANSFORMS + EXTRA_TRANSFORMS:
        if transform.name == name:
            return transform
    known = ", ".join(transform_names(include_extra=True))
    raise KeyError(f"Unknown transform '{name}' (known: {known})")


def select_transforms(names: "typing.Iterable[str] | None" = None) -> "tuple[BlockTransform, ...]":
    names = list(names or ())
    if not names:
        return TRANSFORMS
    return tuple(get_transform(name) for name in names)
