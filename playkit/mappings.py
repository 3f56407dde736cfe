"""Volume curves that map a normalised volume onto an amplitude ratio."""

from __future__ import annotations

import math


def _db_to_ratio(db: float) -> float:
    return 10.0 ** (db / 20.0)


def _log_coefficients(db_range: float) -> tuple[float, float]:
    db_ratio = _db_to_ratio(db_range)
    return db_ratio, math.log(db_ratio)


def _cubic_min_norm(db_range: float) -> float:
    # The 60.0 here is the cubic voltage to dB ratio, not a default range.
    return 10.0 ** (-1.0 * db_range / 60.0)


class LogMapping:
    """Logarithmic mapping, giving a near linear perceived loudness."""

    @staticmethod
    def linear_to_mapped(normalized_volume: float, db_range: float) -> float:
        db_ratio, ideal_factor = _log_coefficients(db_range)
        return math.exp(ideal_factor * normalized_volume) / db_ratio

    @staticmethod
    def mapped_to_linear(mapped_volume: float, db_range: float) -> float:
        db_ratio, ideal_factor = _log_coefficients(db_range)
        return math.log(db_ratio * mapped_volume) / ideal_factor


class CubicMapping:
    """Cubic mapping, mimicking the native ALSA mixer curve."""

    @staticmethod
    def linear_to_mapped(normalized_volume: float, db_range: float) -> float:
        min_norm = _cubic_min_norm(db_range)
        return (normalized_volume * (1.0 - min_norm) + min_norm) ** 3

    @staticmethod
    def mapped_to_linear(mapped_volume: float, db_range: float) -> float:
        min_norm = _cubic_min_norm(db_range)
        return (mapped_volume ** (1.0 / 3.0) - min_norm) / (1.0 - min_norm)