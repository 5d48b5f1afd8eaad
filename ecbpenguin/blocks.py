"""Pack an RGBA pixel grid into 16-byte cipher blocks and write them back."""

from __future__ import annotations

import typing
from dataclasses import dataclass

import numpy as np

PIXEL_BYTES = 4
PIXELS_PER_BLOCK = 4
BLOCK_SIZE = PIXEL_BYTES * PIXELS_PER_BLOCK


@dataclass
class Block:
    seq: int
    x: int
    y: int
    pixels: int
    data: bytearray

    @property
    def valid_bytes(self) -> int:
        return self.pixels * PIXEL_BYTES

    @property
    def is_partial(self) -> bool:
        return self.pixels < PIXELS_PER_BLOCK


def _check_pixels(pixels: np.ndarray) -> None:
    if not isinstance(pixels, np.ndarray):
        raise ValueError(f"Expected a numpy array of pixels, got {type(pixels)!r}")
    if pixels.ndim != 3 or pixels.shape[2] != PIXEL_BYTES:
        raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")


def block_count(width: int, height: int) -> int:
    return height * -(-width // PIXELS_PER_BLOCK)


def new_output(pixels: np.ndarray) -> np.ndarray:
    _check_pixels(pixels)
    return np.zeros_like(pixels)


def iter_blocks(pixels: np.ndarray) -> typing.Iterator[Block]:
    """
    Yield the blocks of ``pixels`` in row-major order.

    Each block holds up to four consecutive pixels of one row. A row whose
    width is not a multiple of four ends in a single partial block; its data
    is still 16 bytes long, zero-filled past the valid pixels. ``seq`` counts
    blocks across the whole image, starting at 0.
    """
    _check_pixels(pixels)
    height, width = pixels.shape[:2]
    seq = 0
    for y in range(height):
        row = pixels[y].reshape(-1)
        for x in range(0, width, PIXELS_PER_BLOCK):
            count = min(PIXELS_PER_BLOCK, width - x)
            data = bytearray(BLOCK_SIZE)
            data[:count * PIXEL_BYTES] = row[x * PIXEL_BYTES:(x + count) * PIXEL_BYTES].tobytes()
            yield Block(seq=seq, x=x, y=y, pixels=count, data=data)
            seq += 1


def write_block(output: np.ndarray, block: Block) -> None:
    """Copy the valid pixel prefix of ``block`` into ``output`` at its position."""
    if len(block.data) < block.valid_bytes:
        raise ValueError(
            f"Block {block.seq} holds {len(block.data)} bytes, need {block.valid_bytes}"
        )
    prefix = np.frombuffer(bytes(block.data[:block.valid_bytes]), dtype=np.uint8)
    output[block.y, block.x:block.x + block.pixels] = prefix.reshape(block.pixels, PIXEL_BYTES)
