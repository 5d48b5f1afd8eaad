import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

try:
    import numpy as np

    from ecbpenguin.blocks import (
        BLOCK_SIZE,
        Block,
        block_count,
        iter_blocks,
        new_output,
        write_block,
    )
except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
    np = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None


def _gradient(width: int, height: int) -> "np.ndarray":
    values = np.arange(width * height * 4, dtype=np.uint32) % 251
    return values.astype(np.uint8).reshape(height, width, 4)


@unittest.skipIf(np is None, f"dependency unavailable: {_IMPORT_ERROR}")
class BlockPackingTests(unittest.TestCase):
    """Row-major packing into 16-byte blocks, partial tails and write-back."""

    def test_full_rows_pack_four_pixels_per_block(self):
        pixels = _gradient(8, 2)
        blocks = list(iter_blocks(pixels))
        self.assertEqual([b.seq for b in blocks], [0, 1, 2, 3])
        self.assertEqual([(b.x, b.y) for b in blocks], [(0, 0), (4, 0), (0, 1), (4, 1)])
        for block in blocks:
            self.assertEqual(len(block.data), BLOCK_SIZE)
            self.assertEqual(block.pixels, 4)
            self.assertFalse(block.is_partial)
            expected = pixels[block.y, block.x:block.x + 4].tobytes()
            self.assertEqual(bytes(block.data), expected)

    def test_width_five_has_one_partial_block_per_row(self):
        pixels = _gradient(5, 3)
        blocks = list(iter_blocks(pixels))
        self.assertEqual(len(blocks), 6)
        for row in range(3):
            full, tail = blocks[2 * row], blocks[2 * row + 1]
            self.assertEqual((full.seq, full.x, full.y, full.pixels), (2 * row, 0, row, 4))
            self.assertEqual((tail.seq, tail.x, tail.y, tail.pixels), (2 * row + 1, 4, row, 1))
            self.assertTrue(tail.is_partial)
            self.assertEqual(len(tail.data), BLOCK_SIZE)
            self.assertEqual(bytes(tail.data[:4]), pixels[row, 4].tobytes())
            self.assertEqual(bytes(tail.data[4:]), bytes(12))

    def test_blocks_never_cross_rows(self):
        pixels = _gradient(6, 2)
        for block in iter_blocks(pixels):
            self.assertLessEqual(block.x + block.pixels, 6)
        self.assertEqual([b.pixels for b in iter_blocks(pixels)], [4, 2, 4, 2])

    def test_sequence_is_contiguous_across_image(self):
        pixels = _gradient(7, 5)
        seqs = [b.seq for b in iter_blocks(pixels)]
        self.assertEqual(seqs, list(range(block_count(7, 5))))

    def test_block_count(self):
        self.assertEqual(block_count(0, 0), 0)
        self.assertEqual(block_count(0, 3), 0)
        self.assertEqual(block_count(4, 0), 0)
        self.assertEqual(block_count(1, 1), 1)
        self.assertEqual(block_count(5, 3), 6)
        self.assertEqual(block_count(8, 2), 4)

    def test_empty_and_single_pixel_images(self):
        empty = np.zeros((0, 0, 4), dtype=np.uint8)
        self.assertEqual(list(iter_blocks(empty)), [])
        self.assertEqual(new_output(empty).shape, (0, 0, 4))
        zero_width = np.zeros((3, 0, 4), dtype=np.uint8)
        self.assertEqual(list(iter_blocks(zero_width)), [])
        one = np.array([[[1, 2, 3, 4]]], dtype=np.uint8)
        blocks = list(iter_blocks(one))
        self.assertEqual(len(blocks), 1)
        self.assertEqual(bytes(blocks[0].data), bytes([1, 2, 3, 4]) + bytes(12))

    def test_write_block_only_writes_valid_prefix(self):
        output = np.zeros((1, 5, 4), dtype=np.uint8)
        block = Block(seq=1, x=4, y=0, pixels=1, data=bytearray(range(1, 17)))
        write_block(output, block)
        self.assertEqual(output[0, 4].tolist(), [1, 2, 3, 4])
        self.assertEqual(int(output[0, :4].sum()), 0)

    def test_write_block_full(self):
        output = np.zeros((2, 4, 4), dtype=np.uint8)
        write_block(output, Block(seq=1, x=0, y=1, pixels=4, data=bytearray(range(16))))
        self.assertEqual(output[1].reshape(-1).tolist(), list(range(16)))
        self.assertEqual(int(output[0].sum()), 0)

    def test_write_block_rejects_short_data(self):
        output = np.zeros((1, 4, 4), dtype=np.uint8)
        with self.assertRaises(ValueError):
            write_block(output, Block(seq=0, x=0, y=0, pixels=4, data=bytearray(8)))

    def test_rejects_non_rgba_arrays(self):
        with self.assertRaises(ValueError):
            list(iter_blocks(np.zeros((2, 2, 3), dtype=np.uint8)))
        with self.assertRaises(ValueError):
            list(iter_blocks(np.zeros((2, 2, 4), dtype=np.uint16)))
        with self.assertRaises(ValueError):
            list(iter_blocks([[0, 0, 0, 0]]))


if __name__ == "__main__":
    unittest.main()
