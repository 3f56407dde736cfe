"""Playback settings, sample formats and volume control curves."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional

from .dither import DithererBuilder, TriangularDitherer
from .mappings import CubicMapping, LogMapping

_log = logging.getLogger(__name__)

SAMPLE_RATE = 44100
NUM_CHANNELS = 2
SAMPLES_PER_SECOND = SAMPLE_RATE * NUM_CHANNELS
PAGES_PER_MS = SAMPLE_RATE / 1000.0
MS_PER_PAGE = 1000.0 / SAMPLE_RATE


class Bitrate(enum.IntEnum):
    BITRATE_96 = 96
    BITRATE_160 = 160
    BITRATE_320 = 320

    @classmethod
    def from_str(cls, s: str) -> "Bitrate":
        for member in cls:
            if s == str(member.value):
                return member
        raise ValueError(f"invalid bitrate: {s!r}")


class AudioFormat(enum.Enum):
    F64 = "F64"
    F32 = "F32"
    S32 = "S32"
    S24 = "S24"
    S24_3 = "S24_3"
    S16 = "S16"

    @classmethod
    def from_str(cls, s: str) -> "AudioFormat":
        try:
            return cls(s.upper())
        except ValueError:
            raise ValueError(f"invalid audio format: {s!r}") from None

    def size(self) -> int:
        """Bytes per sample; S32 and S24 both occupy a 32-bit word."""
        return _FORMAT_SIZES[self]


_FORMAT_SIZES = {
    AudioFormat.F64: 8,
    AudioFormat.F32: 4,
    AudioFormat.S32: 4,
    AudioFormat.S24: 4,
    AudioFormat.S24_3: 3,
    AudioFormat.S16: 2,
}


class NormalisationType(enum.Enum):
    ALBUM = "album"
    TRACK = "track"
    AUTO = "auto"

    @classmethod
    def from_str(cls, s: str) -> "NormalisationType":
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(f"invalid normalisation type: {s!r}") from None


class NormalisationMethod(enum.Enum):
    BASIC = "basic"
    DYNAMIC = "dynamic"

    @classmethod
    def from_str(cls, s: str) -> "NormalisationMethod":
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(f"invalid normalisation method: {s!r}") from None


@dataclass
class PlayerConfig:
    """Player settings; attack and release are durations in seconds."""

    bitrate: Bitrate = Bitrate.BITRATE_160
    gapless: bool = True
    passthrough: bool = False
    normalisation: bool = False
    normalisation_type: NormalisationType = NormalisationType.AUTO
    normalisation_method: NormalisationMethod = NormalisationMethod.DYNAMIC
    normalisation_pregain_db: float = 0.0
    normalisation_threshold_dbfs: float = -2.0
    normalisation_attack: float = 0.005
    normalisation_release: float = 0.1
    normalisation_knee_db: float = 5.0
    ditherer: Optional[DithererBuilder] = TriangularDitherer


class VolumeCtrlKind(enum.Enum):
    CUBIC = "cubic"
    FIXED = "fixed"
    LINEAR = "linear"
    LOG = "log"


_RANGED = (VolumeCtrlKind.CUBIC, VolumeCtrlKind.LOG)


class VolumeCtrl:
    """A volume control curve, with a dB range for the cubic and log kinds."""

    MAX_VOLUME = 0xFFFF
    DEFAULT_DB_RANGE = 60.0

    __slots__ = ("kind", "_db_range")

    def __init__(
        self, kind: VolumeCtrlKind = VolumeCtrlKind.LOG, db_range: float = DEFAULT_DB_RANGE
    ) -> None:
        self.kind = kind
        self._db_range = float(db_range) if kind in _RANGED else 0.0

    @classmethod
    def cubic(cls, db_range: float) -> "VolumeCtrl":
        return cls(VolumeCtrlKind.CUBIC, db_range)

    @classmethod
    def fixed(cls) -> "VolumeCtrl":
        return cls(VolumeCtrlKind.FIXED)

    @classmethod
    def linear(cls) -> "VolumeCtrl":
        return cls(VolumeCtrlKind.LINEAR)

    @classmethod
    def log(cls, db_range: float) -> "VolumeCtrl":
        return cls(VolumeCtrlKind.LOG, db_range)

    @classmethod
    def from_str(cls, s: str) -> "VolumeCtrl":
        return cls.from_str_with_range(s, cls.DEFAULT_DB_RANGE)

    @classmethod
    def from_str_with_range(cls, s: str, db_range: float) -> "VolumeCtrl":
        try:
            kind = VolumeCtrlKind(s.lower())
        except ValueError:
            raise ValueError(f"invalid volume control: {s!r}") from None
        return cls(kind, db_range)

    @property
    def db_range(self) -> float:
        if self.kind is VolumeCtrlKind.FIXED:
            return 0.0
        if self.kind is VolumeCtrlKind.LINEAR:
            return self.DEFAULT_DB_RANGE  # arbitrary, anything positive works
        return self._db_range

    @db_range.setter
    def db_range(self, value: float) -> None:
        if self.kind in _RANGED:
            self._db_range = float(value)
        else:
            _log.error("Invalid to set dB range for volume control type %r", self)
        _log.debug("Volume control is now %r", self)

    def range_ok(self) -> bool:
        return self.db_range > 0.0 or self.kind in (VolumeCtrlKind.FIXED, VolumeCtrlKind.LINEAR)

    def to_mapped(self, volume: int) -> float:
        """Map a volume in ``0..=MAX_VOLUME`` onto an amplitude ratio."""
        if not 0 <= volume <= self.MAX_VOLUME:
            raise ValueError(f"volume out of range: {volume}")
        # Zero must be true mute; log and cubic curves never reach it.
        if volume == 0:
            return 0.0
        if volume == self.MAX_VOLUME:
            return 1.0

        normalized = volume / self.MAX_VOLUME
        if not self.range_ok():
            _log.error("%r does not work with 0 dB range, using linear mapping instead", self)
            mapped = normalized
        elif self.kind is VolumeCtrlKind.CUBIC:
            mapped = CubicMapping.linear_to_mapped(normalized, self._db_range)
        elif self.kind is VolumeCtrlKind.LOG:
            mapped = LogMapping.linear_to_mapped(normalized, self._db_range)
        else:
            mapped = normalized

        _log.debug("Input volume %d mapped to: %.2f%%", volume, mapped * 100.0)
        return mapped

    def to_unmapped(self, mapped_volume: float) -> int:
        """Map an amplitude ratio back onto ``0..=MAX_VOLUME``."""
        if math.isnan(mapped_volume):
            return 0
        if abs(mapped_volume) <= _EPSILON:
            return 0
        if abs(mapped_volume - 1.0) <= _EPSILON:
            return self.MAX_VOLUME
        if mapped_volume < 0.0:
            return 0

        if not self.range_ok():
            _log.error("%r does not work with 0 dB range, using linear mapping instead", self)
            unmapped = mapped_volume
        elif self.kind is VolumeCtrlKind.CUBIC:
            unmapped = CubicMapping.mapped_to_linear(mapped_volume, self._db_range)
        elif self.kind is VolumeCtrlKind.LOG:
            unmapped = LogMapping.mapped_to_linear(mapped_volume, self._db_range)
        else:
            unmapped = mapped_volume

        scaled = unmapped * self.MAX_VOLUME
        if math.isnan(scaled) or scaled <= 0.0:
            return 0
        if scaled >= self.MAX_VOLUME:
            return self.MAX_VOLUME
        return int(scaled)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VolumeCtrl):
            return NotImplemented
        return self.kind is other.kind and self._db_range == other._db_range

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        name = self.kind.name.capitalize()
        if self.kind in _RANGED:
            return f"{name}({self._db_range})"
        return name


_EPSILON = 2.220446049250313e-16