"""This module provides the Surface class, the pixel raster that moves through a pipeline.

Surface - Holds a BGRA image as a numpy array, the layout OpenCV uses.
          Every transform, filter and draw operation takes a Surface and
          returns a new one; the stage that holds a Surface owns it.

"""
import copy
import logging

import cv2
import numpy as np

from .constants import C
from .errors import InvalidDimensions

CHANNELS = 4

def to_bgra(img):
    """Return img as a uint8 BGRA array. Accepts grayscale, BGR and BGRA arrays."""
    img = np.asarray(img)
    if img.dtype == np.uint16:
        img = (img // 257).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGRA)
    if img.ndim == 3 and img.shape[2] == 1:
        return cv2.cvtColor(img[:, :, 0], cv2.COLOR_GRAY2BGRA)
    if img.ndim == 3 and img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2BGRA)
    if img.ndim == 3 and img.shape[2] == CHANNELS:
        return img
    raise ValueError(f"cannot make a surface from an array of shape {img.shape}")


class Surface:
    """A mutable 2-D raster.
    Operations never modify their input surface; they build a new one."""
    def __init__(self, img):
        img = to_bgra(img)
        (h, w) = img.shape[:2]
        if w <= 0 or h <= 0:
            raise InvalidDimensions(f"surface must have positive dimensions, not {w}x{h}")
        self.img = np.ascontiguousarray(img)

    @classmethod
    def blank(cls, width, height, color=(0,0,0,0)):
        """Return a new surface filled with a BGRA color"""
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"surface must have positive dimensions, not {width}x{height}")
        img = np.empty((height, width, CHANNELS), dtype=np.uint8)
        img[:, :] = color
        return cls(img)

    @property
    def width(self):
        return self.img.shape[1]

    @property
    def height(self):
        return self.img.shape[0]

    @property
    def size(self):
        """Returns (width, height)"""
        return (self.width, self.height)

    @property
    def alpha(self):
        return self.img[:, :, 3]

    def __repr__(self):
        return f"<Surface {self.width}x{self.height}>"

    def __eq__(self, b):
        return isinstance(b, Surface) and np.array_equal(self.img, b.img)

    __hash__ = None

    def copy(self):
        """Returns a copy with its own pixel storage"""
        c = copy.copy(self)
        c.img = self.img.copy()
        return c

    def crop(self, *, xy, w, h):
        """Return a new Surface that is the w x h region starting at xy. No bounds checking."""
        return Surface(np.copy(self.img[xy[1]:xy[1]+h, xy[0]:xy[0]+w]))

    def paste(self, src, xy):
        """Copy src into this surface with its top-left corner at xy.
        Parts of src that fall outside this surface are clipped."""
        (x, y) = (int(xy[0]), int(xy[1]))
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + src.width, self.width), min(y + src.height, self.height)
        if x1 <= x0 or y1 <= y0:
            logging.debug("paste of %s at %s is entirely outside %s", src, xy, self)
            return self
        self.img[y0:y1, x0:x1] = src.img[y0-y:y1-y, x0-x:x1-x]
        return self

    def composite(self, layer):
        """Alpha-composite a same-sized BGRA layer over this surface, in place.
        Pixels where the layer is fully transparent are left exactly as they were."""
        layer = np.asarray(layer)
        assert layer.shape == self.img.shape
        mask = layer[:, :, 3] > 0
        if not mask.any():
            return self

        src   = layer[mask].astype(np.float64)
        dst   = self.img[mask].astype(np.float64)
        sa    = src[:, 3:4] / 255.0
        da    = dst[:, 3:4] / 255.0
        out_a = sa + da * (1.0 - sa)
        with np.errstate(invalid='ignore', divide='ignore'):
            rgb = (src[:, :3] * sa + dst[:, :3] * da * (1.0 - sa)) / out_a
        rgb = np.nan_to_num(rgb)

        out = np.empty_like(src)
        out[:, :3] = rgb
        out[:, 3:4] = out_a * 255.0
        self.img[mask] = np.clip(np.rint(out), 0, 255).astype(np.uint8)
        return self


def parse_color(color):
    """Return a BGRA tuple for a CSS color name, a #rgb / #rrggbb / #rrggbbaa string,
    or an RGB / RGBA tuple. None stays None."""
    if color is None:
        return None
    if isinstance(color, str):
        name = color.strip().lower()
        if name in C.NAMED_COLORS:
            rgba = C.NAMED_COLORS[name]
        elif name.startswith('#') and len(name) in (4, 7, 9):
            digits = name[1:]
            if len(digits) == 3:
                digits = ''.join(ch*2 for ch in digits)
            try:
                rgba = tuple(int(digits[i:i+2], 16) for i in range(0, len(digits), 2))
            except ValueError as e:
                raise ValueError(f"invalid color {color!r}") from e
        else:
            raise ValueError(f"unknown color {color!r}")
    else:
        rgba = tuple(int(v) for v in color)
        if len(rgba) not in (3, 4):
            raise ValueError(f"color must have 3 or 4 components, not {color!r}")
    if len(rgba) == 3:
        rgba = rgba + (255,)
    (r, g, b, a) = rgba
    return (b, g, r, a)
