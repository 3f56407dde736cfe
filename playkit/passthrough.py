"""Decoder that passes Ogg Vorbis pages through without decoding them."""

from __future__ import annotations

import logging
import time
from typing import BinaryIO, Optional

from .decoder import AudioDecoder, AudioPacket, DecoderError, OggDataPacket
from .ogg import OggReadError, PacketReader, PacketWriteEndInfo, PacketWriter

_log = logging.getLogger(__name__)

_MAX_SERIAL = 0xFFFFFFFF


def _error(detail: object) -> DecoderError:
    return DecoderError(f"Passthrough Decoder Error: {detail}")


def _get_header(code: int, reader: PacketReader) -> bytes:
    try:
        packet = reader.read_packet_expected()
    except (OggReadError, OSError) as e:
        raise _error(e) from e
    if not packet.data:
        raise _error("Invalid Data")
    _log.debug("Vorbis header type %d", packet.data[0])
    if packet.data[0] != code:
        raise _error("Invalid Data")
    return packet.data


class PassthroughDecoder(AudioDecoder):
    """Re-packs the Ogg stream of a track into a fresh stream of its own."""

    def __init__(self, stream: BinaryIO) -> None:
        self._reader = PacketReader(stream)
        self._writer = PacketWriter()
        self._stream_serial = int(time.time() * 1000) & _MAX_SERIAL
        _log.info("Starting passthrough track with serial %d", self._stream_serial)

        self._ident = _get_header(1, self._reader)
        self._comment = _get_header(3, self._reader)
        self._setup = _get_header(5, self._reader)
        self._reader.delete_unread_packets()

        self._eos = False
        self._bos = False
        self._ofsgp_page = 0

    def _write(self, data: bytes, end_info: PacketWriteEndInfo, absgp: int) -> None:
        try:
            self._writer.write_packet(data, self._stream_serial, end_info, absgp)
        except ValueError as e:
            raise _error(e) from e

    def seek(self, absgp: int) -> None:
        # Close the previous stream if it never got its end.
        if self._bos and not self._eos:
            try:
                packet = self._reader.read_packet()
            except (OggReadError, OSError):
                packet = None
            if packet is not None:
                self._write(
                    packet.data,
                    PacketWriteEndInfo.END_STREAM,
                    packet.absgp_page() - self._ofsgp_page,
                )
            else:
                _log.warning("Cannot write EoS after seeking")

        self._eos = False
        self._bos = False
        self._ofsgp_page = 0
        self._stream_serial = (self._stream_serial + 1) & _MAX_SERIAL

        try:
            self._reader.seek_absgp(None, absgp)
            packet = self._reader.read_packet()
        except (OggReadError, OSError) as e:
            raise _error(e) from e
        if packet is None:
            raise _error("Packet is None")
        self._ofsgp_page = packet.absgp_page()
        _log.debug("Seek to offset page %d", self._ofsgp_page)

    def next_packet(self) -> Optional[AudioPacket]:
        if not self._bos:
            self._write(self._ident, PacketWriteEndInfo.END_PAGE, 0)
            self._write(self._comment, PacketWriteEndInfo.NORMAL_PACKET, 0)
            self._write(self._setup, PacketWriteEndInfo.END_PAGE, 0)
            self._bos = True
            _log.debug("Wrote Ogg headers")

        while True:
            try:
                packet = self._reader.read_packet()
            except OggReadError as e:
                if e.kind != OggReadError.NO_CAPTURE_PATTERN:
                    raise _error(e) from e
                packet = None
            except OSError as e:
                raise _error(e) from e
            if packet is None:
                _log.info("end of streaming")
                return None

            granule = packet.absgp_page()
            # Skip until there is audio with a usable granule position.
            if granule == 0 or granule == self._ofsgp_page:
                continue

            if packet.last_in_stream():
                self._eos = True
                end_info = PacketWriteEndInfo.END_STREAM
            elif packet.last_in_page():
                end_info = PacketWriteEndInfo.END_PAGE
            else:
                end_info = PacketWriteEndInfo.NORMAL_PACKET

            self._write(packet.data, end_info, granule - self._ofsgp_page)

            data = self._writer.take()
            if data:
                return OggDataPacket(data)