"""Conversion of floating-point PCM samples into output sample formats."""

from __future__ import annotations

import logging
import math
import struct
import sys
from collections.abc import Iterable
from typing import Optional

from .dither import Ditherer, DithererBuilder

_log = logging.getLogger(__name__)

_I32_MIN, _I32_MAX = -(2**31), 2**31 - 1
_I16_MIN, _I16_MAX = -(2**15), 2**15 - 1


def _round_half_away(value: float) -> float:
    if not math.isfinite(value):
        return value
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return math.copysign(float(whole), value)


def _saturate(value: float, low: int, high: int) -> int:
    if math.isnan(value):
        return 0
    if value <= low:
        return low
    if value >= high:
        return high
    return int(value)


def _to_f32(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


class Converter:
    """Scales samples in ``-1.0..=1.0`` to integer formats, optionally dithered."""

    SCALE_S32 = 2147483648.0
    SCALE_S24 = 8388608.0
    SCALE_S16 = 32768.0

    def __init__(self, ditherer_builder: Optional[DithererBuilder] = None) -> None:
        self.ditherer: Optional[Ditherer] = None
        if ditherer_builder is not None:
            self.ditherer = ditherer_builder()
            _log.info("Converting with ditherer: %s", self.ditherer.name)

    def scale(self, sample: float, factor: float) -> float:
        """Scale and round to nearest, adding dither noise if configured."""
        value = sample * factor
        if self.ditherer is not None:
            value += self.ditherer.noise()
        return _round_half_away(value)

    def clamping_scale(self, sample: float, factor: float) -> float:
        """Scale, then clamp to the two's complement range of ``factor``."""
        value = self.scale(sample, factor)
        low = -factor
        high = factor - 1.0
        if value < low:
            return low
        if value > high:
            return high
        return value

    def f64_to_f32(self, samples: Iterable[float]) -> list[float]:
        return [_to_f32(s) for s in samples]

    def f64_to_s32(self, samples: Iterable[float]) -> list[int]:
        return [_saturate(self.scale(s, self.SCALE_S32), _I32_MIN, _I32_MAX) for s in samples]

    def f64_to_s24(self, samples: Iterable[float]) -> list[int]:
        """24-bit samples packed in the low bits of a 32-bit word."""
        return [
            _saturate(self.clamping_scale(s, self.SCALE_S24), _I32_MIN, _I32_MAX)
            for s in samples
        ]

    def f64_to_s24_3(self, samples: Iterable[float]) -> list[bytes]:
        """24-bit samples as 3-byte values in native byte order."""
        packed = []
        for value in self.f64_to_s24(samples):
            raw = value.to_bytes(4, sys.byteorder, signed=True)
            packed.append(raw[:3] if sys.byteorder == "little" else raw[1:])
        return packed

    def f64_to_s16(self, samples: Iterable[float]) -> list[int]:
        return [_saturate(self.scale(s, self.SCALE_S16), _I16_MIN, _I16_MAX) for s in samples]