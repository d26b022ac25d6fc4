# src/laser_preview/viz/export.py
from __future__ import annotations

import logging
import sys
from pathlib import Path

import imageio.v3 as imageio
import numpy as np
import torch

logger = logging.getLogger(__name__)


def to_grayscale(energy: torch.Tensor) -> torch.Tensor:
    """
    Render an energy field as 8-bit gray levels.

    Energy is clamped to [0, 1]; 0 renders white and 1 or more renders black
    (255 - 255 * E, truncated).

    Args:
        energy (torch.Tensor): Field of shape [H, W].

    Returns:
        torch.Tensor: uint8 tensor of the same shape.
    """
    v = torch.clamp(energy.to(torch.float32), 0.0, 1.0)
    return (255.0 - v * 255.0).to(torch.uint8)


def crop_grayscale(
    pixels: torch.Tensor, x0: int, y0: int, x1: int, y1: int
) -> torch.Tensor:
    """
    Keep only the rectangle (x0,y0)-(x1,y1) of an image, both corners included.

    Coordinates are zero-based column/row indices into `pixels`.

    Raises:
        ValueError: If the image is empty, a corner lies outside it, or the
                    corners are swapped.
    """
    h, w = pixels.shape[-2], pixels.shape[-1]
    if w <= 0 or x0 < 0 or x1 < 0 or x0 >= w or x1 >= w or x0 > x1:
        raise ValueError(f"Invalid crop columns {x0}..{x1} for width {w}")
    if h <= 0 or y0 < 0 or y1 < 0 or y0 >= h or y1 >= h or y0 > y1:
        raise ValueError(f"Invalid crop rows {y0}..{y1} for height {h}")
    return pixels[..., y0 : y1 + 1, x0 : x1 + 1].clone()


def encode_png(pixels: torch.Tensor, flip_y: bool = True) -> bytes:
    """
    Encode a [H, W] uint8 image as a grayscale PNG.

    With `flip_y` the last row is written first, so that the canvas row holding
    the lowest Y ends up at the bottom of the picture.
    """
    arr = pixels.detach().cpu().numpy()
    if flip_y:
        arr = arr[::-1]
    return imageio.imwrite("<bytes>", np.ascontiguousarray(arr), extension=".png")


def write_png(pixels: torch.Tensor, path: str | Path | None, flip_y: bool = True) -> Path | None:
    """
    Write a grayscale PNG to `path`, or to stdout if `path` is None.

    Returns:
        Path | None: The resolved path written, None for stdout.
    """
    data = encode_png(pixels, flip_y=flip_y)
    if path is None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return None

    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info(f"Saved {pixels.shape[-1]}x{pixels.shape[-2]} preview to {path}")
    return path.resolve()
