"""Dither noise sources used when requantising samples to integers."""

from __future__ import annotations

import abc
import random
from collections.abc import Callable
from typing import Optional


class Ditherer(abc.ABC):
    """Source of dither noise, expressed in least significant bits."""

    NAME: str = ""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    @property
    def name(self) -> str:
        return self.NAME

    def __str__(self) -> str:
        return self.NAME

    @abc.abstractmethod
    def noise(self) -> float:
        """Return the next noise value."""


class TriangularDitherer(Ditherer):
    """Triangular noise, 2 LSB peak-to-peak."""

    NAME = "tpdf"

    def noise(self) -> float:
        return self._rng.triangular(-1.0, 1.0, 0.0)


class GaussianDitherer(Ditherer):
    """Gaussian noise, 1/2 LSB RMS."""

    NAME = "gpdf"

    def noise(self) -> float:
        return self._rng.gauss(0.0, 0.5)


class HighPassDitherer(Ditherer):
    """High-passed triangular noise for interleaved stereo samples."""

    NAME = "tpdf_hp"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(rng)
        self._active_channel = 0
        self._previous_noises = [0.0, 0.0]  # one per stereo channel

    def noise(self) -> float:
        new_noise = self._rng.uniform(-0.5, 0.5)
        high_passed = new_noise - self._previous_noises[self._active_channel]
        self._previous_noises[self._active_channel] = new_noise
        self._active_channel ^= 1
        return high_passed


DithererBuilder = Callable[[], Ditherer]

_DITHERERS: dict[str, type[Ditherer]] = {
    cls.NAME: cls for cls in (TriangularDitherer, GaussianDitherer, HighPassDitherer)
}


def find_ditherer(name: Optional[str]) -> Optional[type[Ditherer]]:
    """Return the ditherer class registered under ``name``, or None."""
    if name is None:
        return None
    return _DITHERERS.get(name)