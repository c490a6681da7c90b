"""
Filters: recolor every pixel (grayscale) or every neighborhood (pixelize, blur).
Like the transforms, each function returns a deferred Surface -> Surface operation.
"""

import math

import cv2
import numpy as np

from .constants import C
from .errors import InvalidDimensions
from .surface import Surface
from .task import snapshot

LUMINANCE_WEIGHTS = (0.299, 0.587, 0.114)          # r, g, b


def grayscale(*, weights=LUMINANCE_WEIGHTS):
    """Replace r, g and b with the weighted luminance. Alpha is untouched."""
    weights = snapshot(weights)

    def operation(s:Surface):
        (wr, wg, wb) = weights
        img  = s.img.astype(np.float64)
        gray = img[:, :, 2] * wr + img[:, :, 1] * wg + img[:, :, 0] * wb
        gray = np.clip(np.rint(gray), 0, 255).astype(np.uint8)
        out  = s.img.copy()
        out[:, :, 0] = gray
        out[:, :, 1] = gray
        out[:, :, 2] = gray
        return Surface(out)
    return operation


def block_edges(length, threshold):
    """Start offsets and lengths of the blocks along one axis."""
    size   = min(length, max(1, round(threshold * length)))
    starts = np.arange(0, length, size)
    return (starts, np.diff(np.append(starts, length)))


def pixelize(threshold=C.PIXELIZE_THRESHOLD):
    """Mosaic the surface. Blocks are threshold * width by threshold * height
    and each one takes the mean color of the pixels it covers."""
    def operation(s:Surface):
        if threshold <= 0:
            return s.copy()
        (xs, widths)  = block_edges(s.width, min(threshold, 1))
        (ys, heights) = block_edges(s.height, min(threshold, 1))

        sums  = np.add.reduceat(np.add.reduceat(s.img.astype(np.float64), ys, axis=0), xs, axis=1)
        means = sums / (heights[:, None, None] * widths[None, :, None])
        blocks = np.clip(np.rint(means), 0, 255).astype(np.uint8)
        return Surface(np.repeat(np.repeat(blocks, heights, axis=0), widths, axis=1))
    return operation


def gaussian_kernel(radius):
    """1-D gaussian with sigma=radius, about 6*radius+1 taps wide"""
    ksize = 2 * math.ceil(3 * radius) + 1
    return cv2.getGaussianKernel(ksize, radius, cv2.CV_32F)


def gaussian_blur(radius=C.BLUR_RADIUS):
    """Separable gaussian blur: a horizontal pass and then a vertical pass.
    Samples past the edge repeat the edge pixel. Color is blurred premultiplied
    by alpha so transparent pixels do not bleed black into their neighbors."""
    def operation(s:Surface):
        if radius < 0:
            raise InvalidDimensions(f"blur radius must not be negative, not {radius}")
        if radius == 0:
            return s.copy()
        kernel = gaussian_kernel(radius)

        img   = s.img.astype(np.float32)
        alpha = img[:, :, 3:4] / 255.0
        img[:, :, :3] *= alpha
        blurred = cv2.sepFilter2D(img, cv2.CV_32F, kernel, kernel, borderType=cv2.BORDER_REPLICATE)

        a = blurred[:, :, 3:4] / 255.0
        with np.errstate(invalid='ignore', divide='ignore'):
            rgb = np.where(a > 0, blurred[:, :, :3] / a, 0)
        blurred[:, :, :3] = rgb
        return Surface(np.clip(np.rint(blurred), 0, 255).astype(np.uint8))
    return operation
