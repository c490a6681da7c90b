"""
Exporters turn the final Surface into something to hand out:
an encoded Blob, a copy of the Surface, or a data: URI.
Also handles writing encoded bytes to local storage.
"""

import base64
import functools
import logging
import math
import os
from os.path import dirname

import cv2

from .constants import C
from .errors import ExporterFailure
from .surface import Surface

@functools.lru_cache(maxsize=4)
def mkdirs(path):
    logging.debug("mkdirs %s",path)
    os.makedirs(path, exist_ok = True)


def save_bytes(path, data):
    """Write data to a local path, creating the directory if needed"""
    d = dirname(os.fspath(path))
    if d:
        mkdirs(d)
    with open(path,'wb') as f:
        f.write(data)


class Blob:
    """Encoded image bytes with the name and mime type they were encoded for"""
    def __init__(self, data:bytes, filename, mime_type):
        self.data = data
        self.filename = filename
        self.mime_type = mime_type

    @property
    def size(self):
        return len(self.data)

    def save(self, path=None):
        """Write to path, or to the blob's own filename. Returns the path written."""
        path = path if path is not None else self.filename
        save_bytes(path, self.data)
        return path

    def __repr__(self):
        return f"<Blob {self.filename} {self.mime_type} {self.size} bytes>"


def parse_quality(q):
    """Quality is a number or numeric string in [0, 1]"""
    try:
        value = float(q)
    except (TypeError, ValueError):
        raise ExporterFailure(f"quality must be a number between 0 and 1, not {q!r}") from None
    if not math.isfinite(value) or not 0 <= value <= 1:
        raise ExporterFailure(f"quality must be between 0 and 1, not {q!r}")
    return value


def supported_mime_type(mime_type):
    if mime_type in C.MIME_EXTENSIONS:
        return mime_type
    logging.warning("cannot encode %s; using %s", mime_type, C.FALLBACK_MIME_TYPE)
    return C.FALLBACK_MIME_TYPE


def encode(surface:Surface, mime_type=C.DEFAULT_MIME_TYPE, q=C.DEFAULT_QUALITY):
    """Returns (data, mime_type actually used)"""
    if surface is None:
        raise ExporterFailure("nothing to export; load an image first")
    quality   = parse_quality(q)
    mime_type = supported_mime_type(mime_type)
    img       = surface.img
    params    = []
    if mime_type in ('image/jpeg', 'image/bmp'):
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    if mime_type == 'image/jpeg':
        params = [cv2.IMWRITE_JPEG_QUALITY, round(quality * 100)]
    elif mime_type == 'image/webp':
        params = [cv2.IMWRITE_WEBP_QUALITY, max(1, round(quality * 100))]
    try:
        (ok, buf) = cv2.imencode(C.MIME_EXTENSIONS[mime_type], img, params)
    except cv2.error as e:
        raise ExporterFailure(f"cannot encode {surface} as {mime_type}: {e}") from e
    if not ok:
        raise ExporterFailure(f"cannot encode {surface} as {mime_type}")
    return (buf.tobytes(), mime_type)


def blob_filename(filename, mime_type):
    """Give filename the extension of mime_type"""
    base = os.path.splitext(filename or C.DEFAULT_FILENAME)[0]
    return base + C.MIME_EXTENSIONS[mime_type]


def as_blob(surface, filename, mime_type=C.DEFAULT_MIME_TYPE, q=C.DEFAULT_QUALITY):
    (data, mime_type) = encode(surface, mime_type, q)
    return Blob(data, blob_filename(filename, mime_type), mime_type)


def as_canvas(surface):
    if surface is None:
        raise ExporterFailure("nothing to export; load an image first")
    return surface.copy()


def as_image(surface, mime_type=C.DEFAULT_MIME_TYPE, q=C.DEFAULT_QUALITY):
    """Returns a data: URI"""
    (data, mime_type) = encode(surface, mime_type, q)
    return f"data:{mime_type};base64," + base64.b64encode(data).decode('ascii')
