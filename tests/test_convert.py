import math
import random
import sys

import pytest

from playkit.convert import Converter
from playkit.dither import TriangularDitherer


def test_s16_extremes():
    c = Converter()
    assert c.f64_to_s16([0.0, -1.0]) == [0, -32768]
    assert c.f64_to_s16([1.0]) == [32767]


def test_s32_saturates():
    c = Converter()
    out = c.f64_to_s32([1.0, -1.0, 5.0, -5.0])
    assert out[1] == -2147483648
    assert out[0] == out[2] == 2**31 - 1
    assert out[3] == -2147483648


def test_nan_becomes_zero():
    c = Converter()
    assert c.f64_to_s16([math.nan]) == [0]
    assert c.f64_to_s32([math.nan]) == [0]


def test_s24_clamps():
    c = Converter()
    assert c.f64_to_s24([2.0, -2.0]) == [8388607, -8388608]


def test_rounds_half_away_from_zero():
    c = Converter()
    assert c.scale(2.5, 1.0) == 3.0
    assert c.scale(-0.5, 1.0) == -1.0
    assert c.scale(0.5, 1.0) == 1.0


def test_s24_3_matches_s24():
    c = Converter()
    samples = [0.0, 0.25, -0.25, 0.999, -1.0, 3.0]
    packed = c.f64_to_s24_3(samples)
    assert all(len(b) == 3 for b in packed)
    decoded = [int.from_bytes(b, sys.byteorder, signed=True) for b in packed]
    assert decoded == c.f64_to_s24(samples)


def test_f32_exact_and_overflow():
    c = Converter()
    assert c.f64_to_f32([0.5, -0.25]) == [0.5, -0.25]
    assert c.f64_to_f32([1e300, -1e300]) == [math.inf, -math.inf]


def test_f32_is_idempotent():
    c = Converter()
    once = c.f64_to_f32([0.1, 0.3333, -0.7])
    assert c.f64_to_f32(once) == once


def test_dithered_silence_is_small():
    c = Converter(lambda: TriangularDitherer(random.Random(5)))
    assert c.ditherer is not None and c.ditherer.name == "tpdf"
    out = c.f64_to_s16([0.0] * 500)
    assert set(out) <= {-1, 0, 1}


def test_dithered_clamping_stays_in_range():
    c = Converter(lambda: TriangularDitherer(random.Random(9)))
    factor = Converter.SCALE_S24
    for sample in (1.0, -1.0, 0.9999999):
        value = c.clamping_scale(sample, factor)
        assert -factor <= value <= factor - 1.0