"""
Tests for the geometric transforms
"""

import sys

import numpy as np
import pytest

from os.path import dirname, join

sys.path.append(join(dirname(dirname(dirname(__file__)))))

import imgflow.transform as transform
from imgflow.transform import ResizeMode
from imgflow.surface import Surface
from imgflow.errors import InvalidDimensions, CropOutOfBounds, InvalidPerspectivePoints

def coords(w, h):
    """Opaque surface with x in blue and y in green, so we can tell where a pixel came from"""
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[:, :, 0] = np.arange(w)[None, :] % 256
    img[:, :, 1] = np.arange(h)[:, None] % 256
    img[:, :, 2] = 99
    img[:, :, 3] = 255
    return Surface(img)


@pytest.mark.parametrize("size", [(400, 300), (300, 400), (50, 80), (150, 150), (1000, 7)])
def test_square_always_square(size):
    out = transform.resize(150, 150, ResizeMode.SQUARE)(coords(*size))
    assert out.size == (150, 150)


def test_resize_to():
    resize = transform.resize(200, 100, ResizeMode.TO)
    assert resize(coords(400, 300)).size == (200, 150)     # landscape: bounded by width
    assert resize(coords(300, 400)).size == (75, 100)      # portrait: bounded by height
    assert resize(coords(100, 50)).size == (100, 50)       # already small enough
    assert transform.resize(200, 100, 'to', enlarge=True)(coords(100, 50)).size == (200, 100)


def test_resize_invalid():
    for (w, h) in [(0, 100), (100, -1)]:
        with pytest.raises(InvalidDimensions):
            transform.resize(w, h, ResizeMode.TO)(coords(10, 10))
    with pytest.raises(InvalidDimensions):
        transform.resize(0, 0, ResizeMode.SQUARE)(coords(10, 10))


def test_resize_interpolation():
    out = transform.resize(20, 20, ResizeMode.TO, enlarge=True, interpolation='nearest')(coords(10, 5))
    assert out.size == (20, 10)
    assert set(np.unique(out.img[:, :, 0])) == set(range(10))
    with pytest.raises(ValueError):
        transform.resize(20, 20, ResizeMode.TO, interpolation='bogus')(coords(100, 5))


def test_crop_centered():
    src = coords(101, 80)
    out = transform.crop(50, 30)(src)
    assert out.size == (50, 30)
    x0, y0 = int(out.img[0, 0, 0]), int(out.img[0, 0, 1])
    assert (x0, y0) == (25, 25)
    left, right = x0, src.width - (x0 + out.width)
    top, bottom = y0, src.height - (y0 + out.height)
    assert abs(left - right) <= 1
    assert abs(top - bottom) <= 1


def test_crop_offsets():
    out = transform.crop(10, 20, 5, 7)(coords(50, 50))
    assert out.size == (10, 20)
    assert (out.img[0, 0, 0], out.img[0, 0, 1]) == (5, 7)
    assert (out.img[-1, -1, 0], out.img[-1, -1, 1]) == (14, 26)


def test_crop_out_of_bounds():
    src = coords(100, 100)
    for args in [(200, 10), (10, 10, 95, 0), (10, 10, -1, 0), (100, 100, 0, 1)]:
        with pytest.raises(CropOutOfBounds):
            transform.crop(*args)(src)
    with pytest.raises(InvalidDimensions):
        transform.crop(0, 10)(src)
    assert transform.crop(100, 100)(src) == src


@pytest.mark.parametrize("degrees", [0, 360, -360, 720])
def test_rotate_full_turn(degrees):
    src = coords(40, 30)
    out = transform.rotate(degrees)(src)
    assert out.size == src.size
    assert np.abs(out.img.astype(int) - src.img.astype(int)).max() <= 1


def test_rotate_quarter_turn_is_clockwise():
    src = coords(40, 30)
    out = transform.rotate(90)(src)
    assert out.size == (30, 40)
    expected = np.rot90(src.img, k=-1)
    assert np.abs(out.img.astype(int) - expected.astype(int)).max() <= 1


def test_rotate_expands_and_fills():
    src = coords(100, 100)
    out = transform.rotate(45)(src)
    assert out.size == (142, 142)
    assert out.img[0, 0, 3] == 0
    assert out.img[71, 71, 3] == 255
    out = transform.rotate(45, background='white')(src)
    assert tuple(out.img[0, 0]) == (255, 255, 255, 255)


def test_rotate_fixed_size():
    assert transform.rotate(30, width=50, height=60)(coords(100, 100)).size == (50, 60)
    with pytest.raises(InvalidDimensions):
        transform.rotate(30, width=0, height=60)(coords(100, 100))


def test_center_in_rectangle():
    out = transform.center_in_rectangle(200, 100)(coords(100, 50))
    assert out.size == (200, 100)
    assert out.img[0, 0, 3] == 0
    assert (out.img[25, 50, 0], out.img[25, 50, 1], out.img[25, 50, 3]) == (0, 0, 255)
    assert out.img[25:75, 50:150, 3].min() == 255
    assert out.img[:25, :, 3].max() == 0

    # too big: cropped evenly
    out = transform.center_in_rectangle(20, 10, background='black')(coords(40, 10))
    assert out.size == (20, 10)
    assert out.img[0, 0, 0] == 10


def test_circle():
    out = transform.circle(50)(coords(50, 50))
    assert out.size == (50, 50)
    assert out.img[0, 0, 3] == 0
    assert out.img[0, 49, 3] == 0
    assert out.img[25, 25, 3] == 255
    assert out.img[25, 0, 3] == 255          # edge midpoints are inside
    out = transform.circle(50, background='red')(coords(50, 50))
    assert tuple(out.img[0, 0]) == (0, 0, 255, 255)


def test_perspective_identity():
    src = coords(100, 80)
    out = transform.perspective({'xy0': [0, 0], 'xy1': [100, 0], 'xy2': [100, 80], 'xy3': [0, 80]})(src)
    assert out.size == (100, 80)
    diff = np.abs(out.img.astype(int) - src.img.astype(int))[1:-1, 1:-1]
    assert diff.max() <= 2


def test_perspective_trapezoid():
    src = coords(100, 80)
    out = transform.perspective([20, 0, 80, 0, 100, 80, 0, 80])(src)
    assert out.size == (100, 80)
    assert out.img[2, 2, 3] == 0                # outside the trapezoid
    assert out.img[2, 97, 3] == 0
    assert out.img[40, 50, 3] == 255
    assert out.img[78, 3, 3] == 255


def test_perspective_invalid():
    s = coords(10, 10)
    bad = [None,
           [[0, 0], [10, 0], [10, 10]],
           {'xy0': [0, 0], 'xy1': [10, 0], 'xy2': [10, 10]},
           [[0, 0], [5, 5], [10, 10], [0, 10]],        # three on a line
           [[0, 0], [10, 0], [10, float('nan')], [0, 10]],
           [[-10, -10], [-5, -10], [-5, -5], [-10, -5]]]
    for points in bad:
        with pytest.raises(InvalidPerspectivePoints):
            transform.perspective(points)(s)
