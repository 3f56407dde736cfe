"""Reading and writing of Ogg pages and the packets carried in them."""

from __future__ import annotations

import enum
import struct
from collections import deque
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

MAX_GRANULE = (1 << 64) - 1
_MAX_SERIAL = (1 << 32) - 1

_CAPTURE = b"OggS"
_HEADER = struct.Struct("<4sBBQIIIB")
_CRC_OFFSET = 22
_MAX_SEGMENTS = 255
_RESYNC_CHUNK = 4096

_FLAG_CONTINUED = 0x01
_FLAG_BOS = 0x02
_FLAG_EOS = 0x04


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for index in range(256):
        reg = index << 24
        for _ in range(8):
            reg = ((reg << 1) ^ 0x04C11DB7) if reg & 0x80000000 else (reg << 1)
            reg &= 0xFFFFFFFF
        table.append(reg)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


def _crc32(data: bytes) -> int:
    crc = 0
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[((crc >> 24) ^ byte) & 0xFF]
    return crc


class OggReadError(Exception):
    """Raised when an Ogg stream cannot be read."""

    NO_CAPTURE_PATTERN = "no capture pattern found"
    INVALID_VERSION = "invalid stream structure version"
    HASH_MISMATCH = "page checksum mismatch"
    UNEXPECTED_EOF = "unexpected end of stream"

    def __init__(self, kind: str, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind}: {detail}" if detail else kind)


class PacketWriteEndInfo(enum.Enum):
    """What follows a written packet: more packets, a page end or a stream end."""

    NORMAL_PACKET = "normal"
    END_PAGE = "end_page"
    END_STREAM = "end_stream"


@dataclass(frozen=True)
class OggPacket:
    """A packet read from an Ogg stream."""

    data: bytes
    stream_serial: int
    page_granule: int
    ends_page: bool
    ends_stream: bool

    def absgp_page(self) -> int:
        """Granule position of the page this packet ends on."""
        return self.page_granule

    def last_in_page(self) -> bool:
        return self.ends_page

    def last_in_stream(self) -> bool:
        return self.ends_stream


@dataclass
class _Page:
    offset: int
    flags: int
    granule: int
    serial: int
    segments: bytes
    body: bytes


class PacketReader:
    """Reads packets from a seekable binary stream of Ogg pages."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._queue: deque[OggPacket] = deque()
        self._partial: dict[int, bytearray] = {}

    def _find_capture(self, head: bytes) -> bytes:
        buffer = head
        while True:
            index = buffer.find(_CAPTURE)
            if index >= 0:
                return buffer[index:]
            buffer = buffer[-(len(_CAPTURE) - 1):]
            chunk = self._stream.read(_RESYNC_CHUNK)
            if not chunk:
                raise OggReadError(OggReadError.NO_CAPTURE_PATTERN)
            buffer += chunk

    def _read_page(self) -> Optional[_Page]:
        head = self._stream.read(_HEADER.size)
        if not head:
            return None
        if not head.startswith(_CAPTURE):
            found = self._find_capture(head)
            # Give back whatever was read past the header.
            extra = len(found) - _HEADER.size
            if extra > 0:
                self._stream.seek(-extra, 1)
                found = found[: _HEADER.size]
            head = found
            if len(head) < _HEADER.size:
                head += self._stream.read(_HEADER.size - len(head))
        offset = self._stream.tell() - len(head)
        if len(head) < _HEADER.size:
            raise OggReadError(OggReadError.UNEXPECTED_EOF, "truncated page header")

        _, version, flags, granule, serial, _, crc, count = _HEADER.unpack(head)
        if version != 0:
            raise OggReadError(OggReadError.INVALID_VERSION, str(version))
        segments = self._stream.read(count)
        if len(segments) < count:
            raise OggReadError(OggReadError.UNEXPECTED_EOF, "truncated segment table")
        size = sum(segments)
        body = self._stream.read(size)
        if len(body) < size:
            raise OggReadError(OggReadError.UNEXPECTED_EOF, "truncated page body")

        zeroed = head[:_CRC_OFFSET] + bytes(4) + head[_CRC_OFFSET + 4:]
        if _crc32(zeroed + segments + body) != crc:
            raise OggReadError(OggReadError.HASH_MISMATCH, f"page at offset {offset}")
        return _Page(offset, flags, granule, serial, segments, body)

    def _enqueue(self, page: _Page) -> None:
        partial = self._partial.pop(page.serial, None)
        if not page.flags & _FLAG_CONTINUED:
            buffer: Optional[bytearray] = bytearray()
        else:
            # A continuation without its start (e.g. after a seek) is dropped.
            buffer = partial

        finished: list[bytes] = []
        position = 0
        for lacing in page.segments:
            chunk = page.body[position : position + lacing]
            position += lacing
            if buffer is not None:
                buffer += chunk
            if lacing < 255:
                if buffer is not None:
                    finished.append(bytes(buffer))
                buffer = bytearray()

        if page.segments and page.segments[-1] == 255 and buffer is not None:
            self._partial[page.serial] = buffer

        eos = bool(page.flags & _FLAG_EOS)
        last = len(finished) - 1
        for index, data in enumerate(finished):
            self._queue.append(
                OggPacket(
                    data=data,
                    stream_serial=page.serial,
                    page_granule=page.granule,
                    ends_page=index == last,
                    ends_stream=index == last and eos,
                )
            )

    def read_packet(self) -> Optional[OggPacket]:
        """Return the next packet, or None at the end of the stream."""
        while not self._queue:
            page = self._read_page()
            if page is None:
                return None
            self._enqueue(page)
        return self._queue.popleft()

    def read_packet_expected(self) -> OggPacket:
        """Return the next packet, raising OggReadError at the end of the stream."""
        packet = self.read_packet()
        if packet is None:
            raise OggReadError(OggReadError.UNEXPECTED_EOF, "expected a packet")
        return packet

    def seek_absgp(self, serial: Optional[int], absgp: int) -> bool:
        """Position at the first page at or past ``absgp``; return whether one exists."""
        self.delete_unread_packets()
        self._stream.seek(0)
        while True:
            page = self._read_page()
            if page is None:
                return False
            if serial is not None and page.serial != serial:
                continue
            if page.granule == MAX_GRANULE:
                continue
            if page.granule >= absgp:
                self._stream.seek(page.offset)
                return True

    def delete_unread_packets(self) -> None:
        """Forget packets read from pages but not yet returned."""
        self._queue.clear()
        self._partial.clear()


@dataclass
class _StreamState:
    pending: list[tuple[int, bytes, Optional[int]]] = field(default_factory=list)
    sequence: int = 0
    continued: bool = False


class PacketWriter:
    """Packs packets into Ogg pages held in memory until taken."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._streams: dict[int, _StreamState] = {}

    def _emit(
        self, serial: int, state: _StreamState, segments: list[tuple[int, bytes, Optional[int]]],
        eos: bool,
    ) -> None:
        flags = 0
        if state.continued:
            flags |= _FLAG_CONTINUED
        if state.sequence == 0:
            flags |= _FLAG_BOS
        if eos:
            flags |= _FLAG_EOS
        granule = next((g for _, _, g in reversed(segments) if g is not None), MAX_GRANULE)
        table = bytes(lacing for lacing, _, _ in segments)
        body = b"".join(chunk for _, chunk, _ in segments)
        header = _HEADER.pack(
            _CAPTURE, 0, flags, granule, serial, state.sequence & _MAX_SERIAL, 0, len(segments)
        )
        crc = _crc32(header + table + body)
        header = header[:_CRC_OFFSET] + struct.pack("<I", crc) + header[_CRC_OFFSET + 4:]
        self._buffer += header + table + body
        state.sequence += 1
        state.continued = segments[-1][0] == 255

    def write_packet(
        self, data: bytes, serial: int, end_info: PacketWriteEndInfo, absgp: int
    ) -> None:
        """Add a packet to the stream ``serial``, flushing pages as ``end_info`` asks."""
        if not 0 <= absgp <= MAX_GRANULE:
            raise ValueError(f"granule position out of range: {absgp}")
        if not 0 <= serial <= _MAX_SERIAL:
            raise ValueError(f"stream serial out of range: {serial}")
        data = bytes(data)
        state = self._streams.setdefault(serial, _StreamState())

        full, rest = divmod(len(data), 255)
        for index in range(full):
            state.pending.append((255, data[index * 255 : (index + 1) * 255], None))
        state.pending.append((rest, data[full * 255 :], absgp))

        while len(state.pending) > _MAX_SEGMENTS:
            page, state.pending = state.pending[:_MAX_SEGMENTS], state.pending[_MAX_SEGMENTS:]
            self._emit(serial, state, page, eos=False)

        if end_info is not PacketWriteEndInfo.NORMAL_PACKET:
            eos = end_info is PacketWriteEndInfo.END_STREAM
            page, state.pending = state.pending, []
            self._emit(serial, state, page, eos=eos)
            if eos:
                del self._streams[serial]

    def take(self) -> bytes:
        """Return the pages written so far and clear them."""
        data = bytes(self._buffer)
        self._buffer.clear()
        return data