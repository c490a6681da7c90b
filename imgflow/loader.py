"""
Loaders turn an external image source into a Surface plus metadata.

load_blob(source)    - A path, bytes, or an open binary file.
load_canvas(surface) - An existing Surface or numpy array.

Both return a deferred coroutine function. File reads and decoding run on a
worker thread, but the pipeline still awaits each loader before it moves on.
"""

import asyncio
import collections
import io
import logging
import os

import cv2
import numpy as np
from PIL import Image, ExifTags, UnidentifiedImageError

from .constants import C
from .errors import LoaderFailure
from .surface import Surface
from .task import snapshot

EXIF_ORIENTATION = 'Orientation'

LoadResult = collections.namedtuple('LoadResult', ['surface', 'filename', 'exif'], defaults=(None, None))


class LoaderOptions:
    __slots__=('fix_orientation','read_exif')
    ALIASES = {'fixOrientation':'fix_orientation', 'readExif':'read_exif'}

    def __init__(self,**kwargs):
        self.fix_orientation = True
        self.read_exif = False
        for (k,v) in kwargs.items():
            k = self.ALIASES.get(k, k)
            if k not in self.__slots__:
                raise TypeError(f"unknown loader option {k!r}")
            setattr(self, k, v)

    @classmethod
    def from_value(cls, options):
        if options is None:
            return cls()
        if isinstance(options, LoaderOptions):
            return options
        return cls(**options)

    def __repr__(self):
        return f"<LoaderOptions fix_orientation={self.fix_orientation} read_exif={self.read_exif}>"


def read_source(source):
    """Returns (data, filename). filename is None if the source has no name."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return (bytes(source), None)
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as f:
            return (f.read(), os.path.basename(os.fspath(source)))
    if hasattr(source, 'read'):
        name = getattr(source, 'name', None)
        return (source.read(), os.path.basename(name) if isinstance(name, str) else None)
    raise TypeError(f"cannot load an image from {type(source).__name__}")


def read_exif(data):
    """Return the EXIF tags as {tag name: value}. Empty if there are none or Pillow cannot parse the file."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            exif = im.getexif()
    except (UnidentifiedImageError, OSError) as e:
        logging.debug("no exif: %s", e)
        return {}
    return {ExifTags.TAGS.get(k, k): v for (k, v) in exif.items()}


def apply_orientation(img, orientation):
    """Undo the camera orientation recorded in EXIF tag 0x0112"""
    if orientation == 2:
        return cv2.flip(img, 1)
    if orientation == 3:
        return cv2.rotate(img, cv2.ROTATE_180)
    if orientation == 4:
        return cv2.flip(img, 0)
    if orientation == 5:
        return cv2.transpose(img)
    if orientation == 6:
        return cv2.rotate(img, cv2.ROTATE_90_CLOCKWISE)
    if orientation == 7:
        return cv2.rotate(cv2.transpose(img), cv2.ROTATE_180)
    if orientation == 8:
        return cv2.rotate(img, cv2.ROTATE_90_COUNTERCLOCKWISE)
    return img


def decode(data, options:LoaderOptions):
    """Returns (surface, exif). exif is None unless options.read_exif."""
    img = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise LoaderFailure(f"cannot decode {len(data)} bytes as an image")

    exif = None
    if options.read_exif or options.fix_orientation:
        tags = read_exif(data)
        if options.fix_orientation:
            img = apply_orientation(img, tags.get(EXIF_ORIENTATION, 1))
        if options.read_exif:
            exif = tags
    return (Surface(img), exif)


def describe(source):
    if isinstance(source, (bytes, bytearray, memoryview)):
        return f"{len(source)} bytes"
    return repr(getattr(source, 'name', source))


def load_blob(source, options=None):
    """:param options: LoaderOptions, or a dict with fix_orientation and read_exif.
    Options are checked when the loader runs."""
    options = snapshot(options)

    async def operation():
        try:
            opts = LoaderOptions.from_value(options)
            (data, filename) = await asyncio.to_thread(read_source, source)
            (surface, exif)  = await asyncio.to_thread(decode, data, opts)
        except LoaderFailure:
            raise
        except (OSError, TypeError, ValueError, cv2.error) as e:
            raise LoaderFailure(f"cannot load {describe(source)}: {e}") from e
        logging.debug("loaded %s from %s exif=%s", surface, filename, exif is not None)
        return LoadResult(surface, filename, exif)
    return operation


def load_canvas(canvas, file_name=C.CANVAS_FILENAME):
    async def operation():
        try:
            surface = canvas.copy() if isinstance(canvas, Surface) else Surface(np.array(canvas))
        except (TypeError, ValueError, cv2.error) as e:
            raise LoaderFailure(f"cannot load canvas: {e}") from e
        return LoadResult(surface, file_name)
    return operation
