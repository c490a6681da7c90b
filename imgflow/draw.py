"""
Drawing onto a surface: lines, polygons, rectangles and text.

Points can be given as a flat sequence [x0, y0, x1, y1, ...] or as pairs
[[x0, y0], [x1, y1], ...]. Shapes are painted on a transparent layer that
is then composited over a copy of the input, so the input surface is never
modified and its dimensions never change.
"""

import logging
import re

import cv2
import numpy as np

from .constants import C
from .surface import Surface, parse_color
from .task import snapshot

FONT_FACES = {'sans-serif': cv2.FONT_HERSHEY_SIMPLEX,
              'sans':       cv2.FONT_HERSHEY_SIMPLEX,
              'arial':      cv2.FONT_HERSHEY_SIMPLEX,
              'helvetica':  cv2.FONT_HERSHEY_SIMPLEX,
              'serif':      cv2.FONT_HERSHEY_COMPLEX,
              'times':      cv2.FONT_HERSHEY_COMPLEX,
              'monospace':  cv2.FONT_HERSHEY_PLAIN,
              'cursive':    cv2.FONT_HERSHEY_SCRIPT_SIMPLEX,
              'script':     cv2.FONT_HERSHEY_SCRIPT_SIMPLEX}
FONT_SIZE_RE = re.compile(r'^(\d+(?:\.\d+)?)(px|pt|%)?$')
DEFAULT_FONT_PX = 16


def normalize_points(points):
    """Return points as an N x 2 float array."""
    arr = np.asarray(points if points is not None else [], dtype=np.float64)
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim == 1:
        if len(arr) % 2:
            raise ValueError(f"a flat point list needs an even number of values, not {len(arr)}")
        return arr.reshape(-1, 2)
    if arr.ndim == 2 and arr.shape[1] == 2:
        return arr
    raise ValueError(f"points must be [x0, y0, ...] or [[x0, y0], ...], not shape {arr.shape}")


def pixel_points(points):
    return np.rint(normalize_points(points)).astype(np.int32)


def fill_rect(layer, x0, y0, x1, y1, color):
    """Fill [x0,x1) x [y0,y1) on layer, clipped to its bounds"""
    (h, w) = layer.shape[:2]
    x0, x1 = max(0, x0), min(w, x1)
    y0, y1 = max(0, y0), min(h, y1)
    if x1 > x0 and y1 > y0:
        layer[y0:y1, x0:x1] = color


def paint(out:Surface, draw_fn):
    """Run draw_fn on a transparent layer the size of out, then composite it over out"""
    layer = np.zeros_like(out.img)
    draw_fn(layer)
    return out.composite(layer)


def draw_line(points=(), fill=C.DRAW_FILL, width=C.DRAW_WIDTH):
    """Stroke a polyline through the points, in order"""
    points = snapshot(points)

    def operation(s:Surface):
        pts   = pixel_points(points)
        color = parse_color(fill)
        out   = s.copy()
        if len(pts) < 2 or color is None or width <= 0:
            logging.debug("draw_line: nothing to draw")
            return out
        return paint(out, lambda layer: cv2.polylines(layer, [pts.reshape(-1, 1, 2)], False, color,
                                                      thickness=int(width), lineType=cv2.LINE_8))
    return operation


def draw_polygon(points=(), fill=C.DRAW_FILL, outline=C.DRAW_OUTLINE, outline_width=C.DRAW_WIDTH):
    """Fill the closed polygon, then stroke its outline. None skips either one."""
    points = snapshot(points)

    def operation(s:Surface):
        pts  = pixel_points(points).reshape(-1, 1, 2)
        fill_color    = parse_color(fill)
        outline_color = parse_color(outline)
        out  = s.copy()
        if len(pts) == 0:
            return out
        if fill_color is not None:
            paint(out, lambda layer: cv2.fillPoly(layer, [pts], fill_color, lineType=cv2.LINE_8))
        if outline_color is not None and outline_width > 0:
            paint(out, lambda layer: cv2.polylines(layer, [pts], True, outline_color,
                                                   thickness=int(outline_width), lineType=cv2.LINE_8))
        return out
    return operation


def draw_rectangle(points=(), fill=None, outline=C.DRAW_OUTLINE, outline_width=C.DRAW_WIDTH):
    """points are two opposite corners, [left, bottom, right, top].
    The outline is a band outline_width wide centered on each edge."""
    points = snapshot(points)

    def operation(s:Surface):
        pts = pixel_points(points)
        if len(pts) != 2:
            raise ValueError(f"a rectangle needs two corners, not {len(pts)}")
        left, right = sorted(int(v) for v in pts[:, 0])
        top, bottom = sorted(int(v) for v in pts[:, 1])
        fill_color    = parse_color(fill)
        outline_color = parse_color(outline)
        out = s.copy()
        if fill_color is not None:
            paint(out, lambda layer: fill_rect(layer, left, top, right, bottom, fill_color))
        if outline_color is not None and outline_width > 0:
            w  = int(outline_width)
            lo = w // 2

            def stroke(layer):
                fill_rect(layer, left-lo,  top-lo,    right-lo+w, top-lo+w,    outline_color)
                fill_rect(layer, left-lo,  bottom-lo, right-lo+w, bottom-lo+w, outline_color)
                fill_rect(layer, left-lo,  top-lo,    left-lo+w,  bottom-lo+w, outline_color)
                fill_rect(layer, right-lo, top-lo,    right-lo+w, bottom-lo+w, outline_color)
            paint(out, stroke)
        return out
    return operation


class TextStyle:
    """Style for draw_text. Every field is optional."""
    __slots__ = ('font', 'font_size', 'fill', 'fill_padding', 'background', 'angle')
    ALIASES = {'fontSize':'font_size', 'fillPadding':'fill_padding'}

    def __init__(self, **kwargs):
        for k in self.__slots__:
            setattr(self, k, None)
        for (k, v) in kwargs.items():
            k = self.ALIASES.get(k, k)
            if k not in self.__slots__:
                raise TypeError(f"unknown text style option {k!r}")
            setattr(self, k, v)

    @classmethod
    def from_value(cls, style):
        if style is None:
            return cls()
        if isinstance(style, TextStyle):
            return style
        return cls(**style)

    def __repr__(self):
        return "<TextStyle " + " ".join(f"{k}={getattr(self,k)!r}" for k in self.__slots__
                                        if getattr(self, k) is not None) + ">"


def parse_font(font):
    """Parse a shorthand like 'serif bold 16px' into (face, bold, size_px).
    size_px is None if the shorthand does not give one. Unknown words are ignored."""
    face, bold, italic, size_px = cv2.FONT_HERSHEY_SIMPLEX, False, False, None
    for word in (font or '').lower().replace(',', ' ').split():
        word = word.strip('"\'')
        if word in FONT_FACES:
            face = FONT_FACES[word]
        elif word in ('bold', 'bolder'):
            bold = True
        elif word in ('italic', 'oblique'):
            italic = True
        elif (m := FONT_SIZE_RE.match(word)) and m.group(2) in ('px', 'pt'):
            size_px = float(m.group(1)) * (4 / 3 if m.group(2) == 'pt' else 1)
    if italic:
        face |= cv2.FONT_ITALIC
    return (face, bold, size_px)


def font_pixels(font_size, surface_height):
    """font_size is a number of pixels, or a string in px or % of the surface height"""
    if isinstance(font_size, (int, float)):
        return float(font_size)
    m = FONT_SIZE_RE.match(str(font_size).strip())
    if not m:
        raise ValueError(f"invalid font size {font_size!r}")
    value = float(m.group(1))
    if m.group(2) == '%':
        return value * surface_height / 100
    if m.group(2) == 'pt':
        return value * 4 / 3
    return value


def draw_text(xy=(), text='', style=None):
    """Render text with the left end of its baseline at xy."""
    (xy, style) = (snapshot(xy), snapshot(style))

    def operation(s:Surface):
        st  = TextStyle.from_value(style)
        out = s.copy()
        if not text:
            return out
        pts = pixel_points(xy)
        if len(pts) != 1:
            raise ValueError(f"text needs a single anchor point, not {xy!r}")
        (x, y) = (int(pts[0][0]), int(pts[0][1]))

        (face, bold, size_px) = parse_font(st.font or C.TEXT_FONT)
        if st.font_size is not None:
            size_px = font_pixels(st.font_size, s.height)
        size_px   = max(1.0, size_px or DEFAULT_FONT_PX)
        thickness = max(1, round(size_px / DEFAULT_FONT_PX)) * (2 if bold else 1)
        scale     = cv2.getFontScaleFromHeight(face, int(round(size_px)), thickness)
        ((tw, th), baseline) = cv2.getTextSize(text, face, scale, thickness)

        color = parse_color(st.fill if st.fill is not None else C.DRAW_FILL)
        angle = st.angle or 0

        def rotated(layer):
            if angle % 360 == 0:
                return layer
            m = cv2.getRotationMatrix2D((x, y), -angle, 1.0)
            return cv2.warpAffine(layer, m, (s.width, s.height), flags=cv2.INTER_LINEAR,
                                  borderMode=cv2.BORDER_CONSTANT, borderValue=(0,0,0,0))

        if st.fill_padding is not None:
            p   = int(st.fill_padding)
            box = np.zeros_like(out.img)
            fill_rect(box, x - p, y - th - p, x + tw + p, y + baseline + p,
                      parse_color(st.background or C.TEXT_BACKGROUND))
            out.composite(rotated(box))

        coverage = np.zeros((s.height, s.width), dtype=np.uint8)
        cv2.putText(coverage, text, (x, y), face, scale, 255, thickness, cv2.LINE_AA)
        layer = np.zeros_like(out.img)
        layer[:, :, :3] = color[:3]
        layer[:, :, 3]  = (coverage.astype(np.uint16) * color[3] // 255).astype(np.uint8)
        logging.debug("draw_text %r at %s size=%spx angle=%s", text, (x, y), size_px, angle)
        return out.composite(rotated(layer))
    return operation
