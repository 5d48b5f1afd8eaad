"""Run every registered transform over an image and write one PNG per transform."""

from __future__ import annotations

import os
import pathlib
import typing

import numpy as np
from PIL import Image, UnidentifiedImageError

from .blocks import iter_blocks, new_output, write_block
from .ciphers import CipherSuite
from .transforms import TRANSFORMS, BlockTransform

_WIDE_GRAY_MODES = {"I", "I;16", "I;16B", "I;16L", "I;16N"}


def _normalize_path(path_like: "str | os.PathLike[str]") -> pathlib.Path:
    return pathlib.Path(os.fspath(path_like)).expanduser()


def _ensure_existing_file(path: pathlib.Path) -> None:
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")


def premultiply(pixels: np.ndarray) -> np.ndarray:
    """
    Scale colour channels by alpha on 16-bit samples, then keep the top byte.

    Each channel is widened as ``c * 0x101``, multiplied by the widened alpha
    and divided by ``0xffff``; alpha itself is unchanged. Opaque pixels come
    out as they went in.
    """
    wide = pixels.astype(np.uint64) * 0x101
    alpha = wide[..., 3:4]
    out = pixels.copy()
    out[..., :3] = ((wide[..., :3] * alpha // 0xFFFF) >> 8).astype(np.uint8)
    return out


def load_image(path: "str | os.PathLike[str]") -> np.ndarray:
    """
    Decode ``path`` into an ``(H, W, 4)`` uint8 array of alpha-premultiplied
    RGBA samples.

    Wide grayscale samples are narrowed here with ``>> 8`` since Pillow's
    conversion would clip them; every other mode goes through Pillow's RGBA
    conversion.
    """
    path_obj = _normalize_path(path)
    _ensure_existing_file(path_obj)
    try:
        img = Image.open(path_obj)
    except UnidentifiedImageError as exc:
        raise ValueError(f"Unsupported or corrupt image: {path_obj}") from exc
    with img:
        try:
            img.load()
        except (OSError, SyntaxError) as exc:
            raise ValueError(f"Unable to decode image {path_obj}: {exc}") from exc
        if img.mode in _WIDE_GRAY_MODES:
            wide = np.asarray(img, dtype=np.int64)
            narrow = np.clip(wide, 0, 0xFFFF) >> 8
            rgba = Image.fromarray(narrow.astype(np.uint8)).convert("RGBA")
        else:
            rgba = img.convert("RGBA")
        return premultiply(np.array(rgba, dtype=np.uint8, copy=True))


def save_image(pixels: np.ndarray, path: "str | os.PathLike[str]") -> pathlib.Path:
    """Encode ``pixels`` as PNG at ``path``, replacing the file only on success."""
    output_path = _normalize_path(path)
    height, width = pixels.shape[:2]
    if width == 0 or height == 0:
        raise ValueError(f"Cannot encode an empty {width}×{height} image as PNG")
    image = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    temp_path = output_path.with_name(f"{output_path.stem}._tmp{output_path.suffix}")
    try:
        image.save(temp_path, format="PNG")
        os.replace(temp_path, output_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    finally:
        image.close()
    return output_path


def output_path(path: "str | os.PathLike[str]", name: str) -> str:
    return f"{os.fspath(path)}-{name}.png"


def run_transform(pixels: np.ndarray, transform: BlockTransform, suite: CipherSuite) -> np.ndarray:
    """One independent pass: fresh output buffer, sequence numbers from 0."""
    output = new_output(pixels)
    for block in iter_blocks(pixels):
        transform.apply(block.data, block.seq, suite)
        write_block(output, block)
    return output


def process_file(
    path: "str | os.PathLike[str]",
    suite: CipherSuite,
    transforms: "typing.Sequence[BlockTransform]" = TRANSFORMS,
    report: "typing.Callable[[str], None] | None" = None,
) -> "list[str]":
    pixels = load_image(path)
    height, width = pixels.shape[:2]
    if report is not None:
        report(f"{width}×{height}")
    written = []
    for transform in transforms:
        result = run_transform(pixels, transform, suite)
        target = output_path(path, transform.name)
        save_image(result, target)
        written.append(target)
    return written
