"""Audio packets and the interface decoders implement."""

from __future__ import annotations

import abc
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Optional


class DecoderError(Exception):
    """Raised when a decoder cannot read or seek its input."""


class AudioPacketError(Exception):
    """Raised when a packet is asked for data of the other kind."""


class AudioPacket(abc.ABC):
    """A decoded chunk: either float samples or raw Ogg data."""

    @abc.abstractmethod
    def samples(self) -> list[float]:
        """Return the samples, or raise AudioPacketError."""

    @abc.abstractmethod
    def oggdata(self) -> bytes:
        """Return the Ogg data, or raise AudioPacketError."""

    @abc.abstractmethod
    def is_empty(self) -> bool:
        """Return whether the packet holds no data."""


@dataclass
class SamplesPacket(AudioPacket):
    """Interleaved samples normalised to ``-1.0..=1.0``."""

    data: list[float] = field(default_factory=list)

    def samples(self) -> list[float]:
        return self.data

    def oggdata(self) -> bytes:
        raise AudioPacketError("Decoder Samples Error: Can't return Samples on OggData")

    def is_empty(self) -> bool:
        return not self.data


@dataclass
class OggDataPacket(AudioPacket):
    """Ogg pages passed through without decoding."""

    data: bytes = b""

    def samples(self) -> list[float]:
        raise AudioPacketError("Decoder OggData Error: Can't return OggData on Samples")

    def oggdata(self) -> bytes:
        return self.data

    def is_empty(self) -> bool:
        return not self.data


def samples_from_f32(f32_samples: Iterable[float]) -> SamplesPacket:
    """Build a samples packet from single-precision values."""
    return SamplesPacket([float(sample) for sample in f32_samples])


class AudioDecoder(abc.ABC):
    """Produces audio packets from an input stream."""

    @abc.abstractmethod
    def seek(self, absgp: int) -> None:
        """Seek to an absolute granule position."""

    @abc.abstractmethod
    def next_packet(self) -> Optional[AudioPacket]:
        """Return the next packet, or None at the end of the stream."""

    def __iter__(self) -> Iterator[AudioPacket]:
        while (packet := self.next_packet()) is not None:
            yield packet