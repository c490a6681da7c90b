"""
Tests for the exporters
"""

import base64
import sys

import cv2
import numpy as np
import pytest

from os.path import dirname, join, exists

sys.path.append(join(dirname(dirname(dirname(__file__)))))

import imgflow.exporter as exporter
from imgflow.exporter import Blob
from imgflow.surface import Surface
from imgflow.errors import ExporterFailure

PNG_MAGIC  = b'\x89PNG\r\n\x1a\n'
JPEG_MAGIC = b'\xff\xd8\xff'

def noisy(w=64, h=48):
    rng = np.random.default_rng(42)
    img = rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)
    img[:, :, 3] = 255
    return Surface(img)


def test_jpeg_blob():
    blob = exporter.as_blob(noisy(), 'photo.png', 'image/jpeg', '0.8')
    assert blob.data.startswith(JPEG_MAGIC)
    assert blob.mime_type == 'image/jpeg'
    assert blob.filename == 'photo.jpg'
    assert blob.size == len(blob.data)


def test_png_roundtrip():
    img = np.zeros((10, 12, 4), dtype=np.uint8)
    img[:, :, 1] = 77
    img[:, 6:, 3] = 255
    blob = exporter.as_blob(Surface(img), None, 'image/png', 1)
    assert blob.data.startswith(PNG_MAGIC)
    assert blob.filename == 'image.png'
    back = cv2.imdecode(np.frombuffer(blob.data, np.uint8), cv2.IMREAD_UNCHANGED)
    assert (back == img).all()


def test_unsupported_type_falls_back_to_png():
    blob = exporter.as_blob(noisy(), 'a.gif', 'image/gif')
    assert blob.mime_type == 'image/png'
    assert blob.filename == 'a.png'
    assert blob.data.startswith(PNG_MAGIC)


def test_quality():
    assert exporter.parse_quality('0.5') == 0.5
    assert exporter.parse_quality(1) == 1.0
    for q in ('high', None, 1.5, -0.1, 'nan'):
        with pytest.raises(ExporterFailure):
            exporter.parse_quality(q)
    small = exporter.as_blob(noisy(), None, 'image/jpeg', 0.1)
    large = exporter.as_blob(noisy(), None, 'image/jpeg', 1.0)
    assert small.size < large.size


def test_nothing_to_export():
    with pytest.raises(ExporterFailure):
        exporter.as_blob(None, None)
    with pytest.raises(ExporterFailure):
        exporter.as_canvas(None)
    with pytest.raises(ExporterFailure):
        exporter.as_image(None)


def test_as_canvas_copies():
    s = noisy()
    c = exporter.as_canvas(s)
    assert c == s
    c.img[0, 0] = 0
    assert c != s


def test_as_image():
    uri = exporter.as_image(noisy(), 'image/png')
    assert uri.startswith('data:image/png;base64,')
    assert base64.b64decode(uri.split(',', 1)[1]).startswith(PNG_MAGIC)
    assert exporter.as_image(noisy()).startswith('data:image/jpeg;base64,')


def test_blob_save(tmp_path):
    blob = Blob(b'12345', 'x.png', 'image/png')
    path = str(tmp_path / 'a' / 'b' / 'out.png')
    assert blob.save(path) == path
    assert exists(path)
    with open(path, 'rb') as f:
        assert f.read() == b'12345'
    assert 'x.png' in repr(blob)
