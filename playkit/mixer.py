"""Volume mixers: a software mixer and the registry used to look them up."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import VolumeCtrl

_log = logging.getLogger(__name__)


@dataclass
class MixerConfig:
    """Settings a mixer is opened with."""

    device: str = "default"
    control: str = "PCM"
    index: int = 0
    volume_ctrl: VolumeCtrl = field(default_factory=VolumeCtrl)


class VolumeGetter(abc.ABC):
    """Gives the factor that samples are multiplied by on playback."""

    @abc.abstractmethod
    def attenuation_factor(self) -> float:
        """Return the current amplitude factor."""


class NoOpVolume(VolumeGetter):
    """Leaves samples untouched."""

    def attenuation_factor(self) -> float:
        return 1.0


class _VolumeCell:
    """Mapped volume shared between a mixer and its volume getters."""

    __slots__ = ("value",)

    def __init__(self, value: float) -> None:
        self.value = value


class SoftVolume(VolumeGetter):
    """Reads the mapped volume of a software mixer."""

    def __init__(self, cell: _VolumeCell) -> None:
        self._cell = cell

    def attenuation_factor(self) -> float:
        return self._cell.value


class Mixer(abc.ABC):
    """A volume control; volumes range over ``0..=VolumeCtrl.MAX_VOLUME``."""

    NAME: str = ""

    @property
    @abc.abstractmethod
    def volume(self) -> int:
        """The current unmapped volume."""

    def get_soft_volume(self) -> VolumeGetter:
        """Return what the player should scale samples by."""
        return NoOpVolume()


class SoftMixer(Mixer):
    """Mixer that attenuates samples in software."""

    NAME = "softvol"

    def __init__(self, config: Optional[MixerConfig] = None) -> None:
        config = config if config is not None else MixerConfig()
        self.volume_ctrl = config.volume_ctrl
        _log.info("Mixing with softvol and volume control: %r", self.volume_ctrl)
        self._cell = _VolumeCell(0.5)

    @property
    def volume(self) -> int:
        return self.volume_ctrl.to_unmapped(self._cell.value)

    @volume.setter
    def volume(self, volume: int) -> None:
        self._cell.value = self.volume_ctrl.to_mapped(volume)

    def get_soft_volume(self) -> VolumeGetter:
        return SoftVolume(self._cell)


MIXERS: dict[str, type[Mixer]] = {SoftMixer.NAME: SoftMixer}  # default goes first


def find_mixer(name: Optional[str]) -> Optional[type[Mixer]]:
    """Return the mixer class named ``name``, the default for None, else None."""
    if name is None:
        return next(iter(MIXERS.values()), None)
    return MIXERS.get(name)