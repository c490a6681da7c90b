"""
Geometric transforms.

Every function here returns a deferred operation: a function that takes a
Surface and returns a new Surface. Parameters are checked when the
operation runs, so building a pipeline never fails.
"""

import enum
import itertools
import logging
import math

import cv2
import numpy as np

from .constants import C
from .draw import normalize_points
from .errors import InvalidDimensions, CropOutOfBounds, InvalidPerspectivePoints
from .surface import Surface, parse_color
from .task import snapshot

INTERPOLATIONS = {'nearest': cv2.INTER_NEAREST,
                  'linear':  cv2.INTER_LINEAR,
                  'cubic':   cv2.INTER_CUBIC,
                  'area':    cv2.INTER_AREA,
                  'lanczos': cv2.INTER_LANCZOS4}

PERSPECTIVE_KEYS = ('xy0', 'xy1', 'xy2', 'xy3')
COLLINEAR_EPSILON = 1e-6


class ResizeMode(enum.Enum):
    SQUARE = 'square'           # cover a max_width x max_width square and crop the overflow
    TO     = 'to'               # bounded scale that keeps the aspect ratio


def check_dimensions(*dims):
    for d in dims:
        if d is None or not math.isfinite(d) or d <= 0:
            raise InvalidDimensions(f"dimensions must be positive, not {dims}")


def pick_interpolation(interpolation, src_size, dst_size):
    if interpolation is None:
        shrinking = dst_size[0] * dst_size[1] < src_size[0] * src_size[1]
        return cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    if isinstance(interpolation, str):
        try:
            return INTERPOLATIONS[interpolation]
        except KeyError:
            raise ValueError("interpolation must be one of " + " ".join(sorted(INTERPOLATIONS))) from None
    return interpolation


def scale_to(s:Surface, w, h, interpolation=None):
    """Return s scaled to exactly w x h"""
    if (w, h) == s.size:
        return s.copy()
    flags = pick_interpolation(interpolation, s.size, (w, h))
    return Surface(cv2.resize(s.img, (w, h), interpolation=flags))


def bounded_size(w, h, max_width, max_height, enlarge=False):
    """Size for the TO resize mode. Landscape images are bounded by max_width,
    portrait and square ones by max_height."""
    if w > h:
        if w > max_width or enlarge:
            return (int(max_width), max(1, round(h * max_width / w)))
    else:
        if h > max_height or enlarge:
            return (max(1, round(w * max_height / h)), int(max_height))
    return (w, h)


def resize(max_width=C.RESIZE_WIDTH, max_height=C.RESIZE_HEIGHT, mode=ResizeMode.TO, *,
           enlarge=False, interpolation=None):
    def operation(s:Surface):
        if ResizeMode(mode) is ResizeMode.SQUARE:
            check_dimensions(max_width)
            length = int(max_width)
            side   = min(s.width, s.height)
            square = s.crop(xy=((s.width - side) // 2, (s.height - side) // 2), w=side, h=side)
            return scale_to(square, length, length, interpolation)

        check_dimensions(max_width, max_height)
        (w, h) = bounded_size(s.width, s.height, max_width, max_height, enlarge)
        logging.debug("resize %s to %dx%d", s, w, h)
        return scale_to(s, w, h, interpolation)
    return operation


def crop(max_width, max_height, offset_x=None, offset_y=None):
    """Cut a max_width x max_height rectangle. Missing offsets center it."""
    def operation(s:Surface):
        check_dimensions(max_width, max_height)
        w, h = int(max_width), int(max_height)
        x = (s.width - w) // 2 if offset_x is None else int(offset_x)
        y = (s.height - h) // 2 if offset_y is None else int(offset_y)
        if x < 0 or y < 0 or x + w > s.width or y + h > s.height:
            raise CropOutOfBounds(f"cannot crop {w}x{h} at ({x},{y}) from {s.width}x{s.height}")
        return s.crop(xy=(x, y), w=w, h=h)
    return operation


def rotate(degrees, *, width=None, height=None, background=C.TRANSPARENT):
    """Rotate clockwise about the center. The output grows to hold the
    rotated rectangle unless width and height are given."""
    def operation(s:Surface):
        if width is not None or height is not None:
            check_dimensions(*[d for d in (width, height) if d is not None])
        if degrees % 360 == 0 and width is None and height is None:
            return s.copy()

        (w, h)  = s.size
        m       = cv2.getRotationMatrix2D(((w - 1) / 2, (h - 1) / 2), -degrees, 1.0)
        cos     = abs(m[0, 0])
        sin     = abs(m[0, 1])
        # the epsilon keeps 90 degree turns from growing a pixel
        out_w   = int(width)  if width  is not None else max(1, math.ceil(h * sin + w * cos - 1e-6))
        out_h   = int(height) if height is not None else max(1, math.ceil(h * cos + w * sin - 1e-6))
        m[0, 2] += (out_w - w) / 2
        m[1, 2] += (out_h - h) / 2
        return Surface(cv2.warpAffine(s.img, m, (out_w, out_h),
                                      flags=cv2.INTER_LINEAR,
                                      borderMode=cv2.BORDER_CONSTANT,
                                      borderValue=parse_color(background)))
    return operation


def center_in_rectangle(width=C.RESIZE_WIDTH, height=C.RESIZE_HEIGHT, *, background=C.TRANSPARENT):
    """Place the surface in the middle of a width x height canvas.
    Content larger than the canvas is cropped evenly on both sides."""
    def operation(s:Surface):
        check_dimensions(width, height)
        canvas = Surface.blank(width, height, parse_color(background))
        return canvas.paste(s, ((int(width) - s.width) // 2, (int(height) - s.height) // 2))
    return operation


def circle(diameter=C.CIRCLE_DIAMETER, *, background=C.TRANSPARENT):
    """Mask everything outside a centered circle of the given diameter."""
    def operation(s:Surface):
        check_dimensions(diameter)
        d      = int(diameter)
        canvas = Surface.blank(d, d, (0,0,0,0))
        canvas.paste(s, ((d - s.width) // 2, (d - s.height) // 2))
        r      = d / 2
        yy, xx = np.ogrid[:d, :d]
        outside = (xx + 0.5 - r) ** 2 + (yy + 0.5 - r) ** 2 > r * r
        canvas.img[outside] = parse_color(background)
        return canvas
    return operation


def perspective_points(points):
    """Return the four destination corners as a 4x2 float32 array."""
    if points is None:
        raise InvalidPerspectivePoints("no perspective points")
    if hasattr(points, 'keys'):
        missing = [k for k in PERSPECTIVE_KEYS if k not in points]
        if missing:
            raise InvalidPerspectivePoints(f"missing perspective points {missing}")
        points = [points[k] for k in PERSPECTIVE_KEYS]
    try:
        pts = normalize_points(points).astype(np.float64)
    except (ValueError, TypeError) as e:
        raise InvalidPerspectivePoints(str(e)) from e
    if len(pts) != 4:
        raise InvalidPerspectivePoints(f"perspective needs four points, not {len(pts)}")
    if not np.isfinite(pts).all():
        raise InvalidPerspectivePoints("perspective points must be finite")
    for (a, b, c) in itertools.combinations(pts, 3):
        cross = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
        if abs(cross) < COLLINEAR_EPSILON:
            raise InvalidPerspectivePoints(f"perspective points {pts.tolist()} are degenerate")
    return pts.astype(np.float32)


def perspective(points):
    """Warp the surface so that its corners (top-left, top-right, bottom-right,
    bottom-left) land on xy0..xy3."""
    points = snapshot(points)

    def operation(s:Surface):
        dst   = perspective_points(points)
        out_w = math.ceil(float(dst[:, 0].max()))
        out_h = math.ceil(float(dst[:, 1].max()))
        if out_w <= 0 or out_h <= 0:
            raise InvalidPerspectivePoints(f"perspective points {dst.tolist()} are outside the canvas")
        src = np.array([[0, 0], [s.width, 0], [s.width, s.height], [0, s.height]], dtype=np.float32)
        matrix = cv2.getPerspectiveTransform(src, dst)
        return Surface(cv2.warpPerspective(s.img, matrix, (out_w, out_h),
                                           flags=cv2.INTER_LINEAR,
                                           borderMode=cv2.BORDER_CONSTANT,
                                           borderValue=(0,0,0,0)))
    return operation
