"""
Tests for the loaders
"""

import asyncio
import io
import sys

import cv2
import numpy as np
import pytest
from PIL import Image

from os.path import dirname, join

sys.path.append(join(dirname(dirname(dirname(__file__)))))

import imgflow.loader as loader
from imgflow.loader import LoaderOptions, LoadResult
from imgflow.surface import Surface
from imgflow.errors import LoaderFailure

def png_bytes(w=30, h=20):
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[:, :, 0] = 200
    img[:, :, 3] = 128
    (ok, buf) = cv2.imencode('.png', img)
    assert ok
    return buf.tobytes()

def jpeg_with_exif(w=40, h=20, orientation=6):
    """A JPEG made by Pillow with an orientation and a camera make"""
    exif = Image.Exif()
    exif[0x0112] = orientation
    exif[0x010F] = 'imgflow-test'
    buf = io.BytesIO()
    Image.new('RGB', (w, h), (255, 0, 0)).save(buf, 'JPEG', exif=exif.tobytes())
    return buf.getvalue()

def load(source, options=None):
    return asyncio.run(loader.load_blob(source, options)())


def test_load_bytes():
    r = load(png_bytes())
    assert isinstance(r, LoadResult)
    assert r.surface.size == (30, 20)
    assert tuple(r.surface.img[0, 0]) == (200, 0, 0, 128)
    assert r.filename is None
    assert r.exif is None


def test_load_path(tmp_path):
    path = tmp_path / "in.png"
    path.write_bytes(png_bytes())
    r = load(str(path))
    assert r.surface.size == (30, 20)
    assert r.filename == 'in.png'
    assert load(path).filename == 'in.png'


def test_load_file_object(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes())
    with open(path, 'rb') as f:
        r = load(f)
    assert r.filename == 'photo.png'
    assert load(io.BytesIO(png_bytes())).filename is None


def test_load_failures(tmp_path):
    for source in (b'this is not an image', b'', str(tmp_path / 'missing.png'), 42):
        with pytest.raises(LoaderFailure):
            load(source)


def test_exif_and_orientation():
    data = jpeg_with_exif()
    tags = loader.read_exif(data)
    assert tags['Orientation'] == 6
    assert tags['Make'] == 'imgflow-test'

    r = load(data, {'read_exif': True})
    assert r.surface.size == (20, 40)
    assert r.exif['Make'] == 'imgflow-test'

    r = load(data, LoaderOptions(fixOrientation=False))
    assert r.surface.size == (40, 20)
    assert r.exif is None


def test_read_exif_none():
    assert loader.read_exif(png_bytes()) == {}
    assert loader.read_exif(b'garbage') == {}


def test_apply_orientation():
    img = np.arange(6, dtype=np.uint8).reshape(2, 3)
    assert (loader.apply_orientation(img, 1) == img).all()
    assert (loader.apply_orientation(img, 2) == img[:, ::-1]).all()
    assert (loader.apply_orientation(img, 3) == img[::-1, ::-1]).all()
    assert (loader.apply_orientation(img, 4) == img[::-1, :]).all()
    assert (loader.apply_orientation(img, 5) == img.T).all()
    assert (loader.apply_orientation(img, 6) == np.rot90(img, k=-1)).all()
    assert (loader.apply_orientation(img, 7) == img.T[::-1, ::-1]).all()
    assert (loader.apply_orientation(img, 8) == np.rot90(img, k=1)).all()


def test_load_canvas_copies():
    s = Surface.blank(5, 5, (1, 2, 3, 255))
    r = asyncio.run(loader.load_canvas(s)())
    assert r.surface == s
    assert r.surface is not s
    assert r.filename == 'canvas.png'
    r.surface.img[0, 0] = 0
    assert tuple(s.img[0, 0]) == (1, 2, 3, 255)

    r = asyncio.run(loader.load_canvas(np.zeros((4, 6, 3), dtype=np.uint8), 'array.png')())
    assert r.surface.size == (6, 4)
    assert r.filename == 'array.png'

    with pytest.raises(LoaderFailure):
        asyncio.run(loader.load_canvas(np.zeros((0, 6, 3), dtype=np.uint8))())


def test_loader_options():
    o = LoaderOptions.from_value(None)
    assert (o.fix_orientation, o.read_exif) == (True, False)
    o = LoaderOptions.from_value({'readExif': True, 'fix_orientation': False})
    assert (o.fix_orientation, o.read_exif) == (False, True)
    assert LoaderOptions.from_value(o) is o
    with pytest.raises(TypeError):
        LoaderOptions(bogus=1)


def test_bad_options_fail_when_loading():
    operation = loader.load_blob(png_bytes(), {'bogus': True})
    with pytest.raises(LoaderFailure):
        asyncio.run(operation())
    with pytest.raises(LoaderFailure):
        load(png_bytes(), 5)
