"""Audio sinks: where converted samples end up."""

from __future__ import annotations

import abc
import logging
import os
import shlex
import struct
import subprocess
import sys
from typing import BinaryIO, Optional

from .config import AudioFormat
from .convert import Converter
from .decoder import AudioPacket, OggDataPacket

_log = logging.getLogger(__name__)


class SinkError(Exception):
    """Base of all sink failures."""

    PREFIX = "Audio Sink Error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.PREFIX}: {self.detail}"


class SinkNotConnected(SinkError):
    PREFIX = "Audio Sink Error Not Connected"


class SinkConnectionRefused(SinkError):
    PREFIX = "Audio Sink Error Connection Refused"


class SinkWriteError(SinkError):
    PREFIX = "Audio Sink Error On Write"


class SinkInvalidParams(SinkError):
    PREFIX = "Audio Sink Error Invalid Parameters"


class Sink(abc.ABC):
    """An audio output; usable as a context manager that starts and stops it."""

    NAME: str = ""

    def start(self) -> None:
        """Prepare the output for writing."""

    def stop(self) -> None:
        """Finish output."""

    @abc.abstractmethod
    def write(self, packet: AudioPacket, converter: Converter) -> None:
        """Convert and output one packet."""

    def __enter__(self) -> "Sink":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def _encode(samples: list[float], audio_format: AudioFormat, converter: Converter) -> bytes:
    count = len(samples)
    if audio_format is AudioFormat.F64:
        return struct.pack(f"={count}d", *samples)
    if audio_format is AudioFormat.F32:
        return struct.pack(f"={count}f", *converter.f64_to_f32(samples))
    if audio_format is AudioFormat.S32:
        return struct.pack(f"={count}i", *converter.f64_to_s32(samples))
    if audio_format is AudioFormat.S24:
        return struct.pack(f"={count}i", *converter.f64_to_s24(samples))
    if audio_format is AudioFormat.S24_3:
        return b"".join(converter.f64_to_s24_3(samples))
    return struct.pack(f"={count}h", *converter.f64_to_s16(samples))


class BytesSink(Sink):
    """A sink that takes samples as raw bytes in its configured format."""

    def __init__(self, audio_format: AudioFormat = AudioFormat.S16) -> None:
        self.audio_format = audio_format

    def write(self, packet: AudioPacket, converter: Converter) -> None:
        if isinstance(packet, OggDataPacket):
            self.write_bytes(packet.oggdata())
        else:
            self.write_bytes(_encode(packet.samples(), self.audio_format, converter))

    @abc.abstractmethod
    def write_bytes(self, data: bytes) -> None:
        """Output raw bytes."""


class StdoutSink(BytesSink):
    """Writes to standard output, or to a file when a device path is given."""

    NAME = "pipe"

    def __init__(
        self, device: Optional[str] = None, audio_format: AudioFormat = AudioFormat.S16
    ) -> None:
        if device == "?":
            _log.info("Usage:")
            print("  Output to stdout: --backend pipe")
            print("  Output to file:   --backend pipe --device {filename}")
            sys.exit(0)
        _log.info("Using pipe sink with format: %s", audio_format.name)
        super().__init__(audio_format)
        self.file = device
        self._output: Optional[BinaryIO] = None

    def start(self) -> None:
        if self._output is not None:
            return
        if self.file is None:
            self._output = sys.stdout.buffer
            return
        try:
            # Created if missing, never truncated.
            fd = os.open(self.file, os.O_WRONLY | os.O_CREAT, 0o666)
            self._output = os.fdopen(fd, "wb")
        except OSError as e:
            raise SinkConnectionRefused(str(e)) from e

    def stop(self) -> None:
        if self._output is None:
            return
        try:
            self._output.flush()
        except OSError as e:
            raise SinkWriteError(str(e)) from e

    def write_bytes(self, data: bytes) -> None:
        if self._output is None:
            raise SinkNotConnected("Output is None")
        try:
            self._output.write(data)
            self._output.flush()
        except OSError as e:
            raise SinkWriteError(str(e)) from e


class SubprocessSink(BytesSink):
    """Pipes audio into the standard input of a shell command."""

    NAME = "subprocess"

    def __init__(
        self, device: Optional[str] = None, audio_format: AudioFormat = AudioFormat.S16
    ) -> None:
        if device == "?":
            _log.info("Usage: --backend subprocess --device {shell_command}")
            sys.exit(0)
        if device is None:
            _log.error("subprocess sink requires specifying a shell command")
            sys.exit(1)
        _log.info("Using subprocess sink with format: %s", audio_format.name)
        super().__init__(audio_format)
        self.shell_command = device
        self._child: Optional[subprocess.Popen] = None

    def start(self) -> None:
        try:
            args = shlex.split(self.shell_command)
        except ValueError as e:
            raise SinkInvalidParams(str(e)) from e
        if not args:
            raise SinkInvalidParams("empty shell command")
        try:
            self._child = subprocess.Popen(args, stdin=subprocess.PIPE)
        except OSError as e:
            raise SinkConnectionRefused(str(e)) from e

    def stop(self) -> None:
        child, self._child = self._child, None
        if child is None:
            return
        try:
            child.kill()
            child.wait()
        except OSError as e:
            raise SinkWriteError(str(e)) from e
        finally:
            if child.stdin is not None:
                try:
                    child.stdin.close()
                except OSError:
                    pass

    def write_bytes(self, data: bytes) -> None:
        if self._child is None:
            return
        stdin = self._child.stdin
        if stdin is None:
            raise SinkNotConnected("Child is None")
        try:
            stdin.write(data)
            stdin.flush()
        except OSError as e:
            raise SinkWriteError(str(e)) from e


BACKENDS: dict[str, type[Sink]] = {
    StdoutSink.NAME: StdoutSink,  # default goes first
    SubprocessSink.NAME: SubprocessSink,
}


def find_backend(name: Optional[str]) -> Optional[type[Sink]]:
    """Return the sink class named ``name``, the default for None, else None."""
    if name is None:
        return next(iter(BACKENDS.values()), None)
    return BACKENDS.get(name)