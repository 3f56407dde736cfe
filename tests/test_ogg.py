import io
import struct

import pytest

from playkit.ogg import (
    OggReadError,
    PacketReader,
    PacketWriteEndInfo,
    PacketWriter,
)

END_PAGE = PacketWriteEndInfo.END_PAGE
END_STREAM = PacketWriteEndInfo.END_STREAM
NORMAL = PacketWriteEndInfo.NORMAL_PACKET


def _read_all(data):
    reader = PacketReader(io.BytesIO(data))
    packets = []
    while (packet := reader.read_packet()) is not None:
        packets.append(packet)
    return packets


def _three_pages(serial=5):
    writer = PacketWriter()
    writer.write_packet(b"one", serial, END_PAGE, 100)
    writer.write_packet(b"two", serial, END_PAGE, 200)
    writer.write_packet(b"three", serial, END_STREAM, 300)
    return writer.take()


def test_page_header_layout():
    writer = PacketWriter()
    writer.write_packet(b"abc", 0x01020304, END_STREAM, 7)
    out = writer.take()
    assert out[:4] == b"OggS"
    assert out[4] == 0
    assert out[5] == 0x02 | 0x04
    assert struct.unpack_from("<Q", out, 6)[0] == 7
    assert struct.unpack_from("<I", out, 14)[0] == 0x01020304
    assert struct.unpack_from("<I", out, 18)[0] == 0
    assert out[26] == 1
    assert out[27] == 3
    assert out[28:] == b"abc"


def test_round_trip_packets():
    packets = _read_all(_three_pages())
    assert [p.data for p in packets] == [b"one", b"two", b"three"]
    assert [p.absgp_page() for p in packets] == [100, 200, 300]
    assert all(p.last_in_page() for p in packets)
    assert [p.last_in_stream() for p in packets] == [False, False, True]
    assert {p.stream_serial for p in packets} == {5}


def test_normal_packet_is_not_flushed():
    writer = PacketWriter()
    writer.write_packet(b"first", 9, NORMAL, 10)
    assert writer.take() == b""
    writer.write_packet(b"second", 9, END_PAGE, 20)
    packets = _read_all(writer.take())
    assert [p.data for p in packets] == [b"first", b"second"]
    assert [p.last_in_page() for p in packets] == [False, True]
    assert all(p.absgp_page() == 20 for p in packets)


def test_take_clears_buffer():
    writer = PacketWriter()
    writer.write_packet(b"x", 1, END_PAGE, 1)
    assert writer.take().startswith(b"OggS")
    assert writer.take() == b""


def test_packet_of_255_bytes_round_trips():
    writer = PacketWriter()
    payload = bytes(range(255))
    writer.write_packet(payload, 3, END_STREAM, 50)
    packets = _read_all(writer.take())
    assert [p.data for p in packets] == [payload]


def test_large_packet_spans_pages():
    writer = PacketWriter()
    payload = b"\x00" * 70000
    writer.write_packet(payload, 3, END_STREAM, 50)
    out = writer.take()
    second = out.find(b"OggS", 4)
    assert second > 0
    assert out[second + 5] & 0x01
    packets = _read_all(out)
    assert len(packets) == 1
    assert packets[0].data == payload
    assert packets[0].absgp_page() == 50
    assert packets[0].last_in_stream()


def test_empty_packet_round_trips():
    writer = PacketWriter()
    writer.write_packet(b"", 4, END_PAGE, 1)
    packets = _read_all(writer.take())
    assert [p.data for p in packets] == [b""]


def test_interleaved_streams():
    writer = PacketWriter()
    writer.write_packet(b"a", 1, END_PAGE, 10)
    writer.write_packet(b"b", 2, END_PAGE, 11)
    writer.write_packet(b"c", 1, END_STREAM, 12)
    packets = _read_all(writer.take())
    assert [(p.stream_serial, p.data) for p in packets] == [(1, b"a"), (2, b"b"), (1, b"c")]


def test_empty_stream():
    reader = PacketReader(io.BytesIO(b""))
    assert reader.read_packet() is None
    with pytest.raises(OggReadError) as info:
        reader.read_packet_expected()
    assert info.value.kind == OggReadError.UNEXPECTED_EOF


def test_garbage_has_no_capture_pattern():
    reader = PacketReader(io.BytesIO(b"xyz" * 10))
    with pytest.raises(OggReadError) as info:
        reader.read_packet()
    assert info.value.kind == OggReadError.NO_CAPTURE_PATTERN


def test_leading_garbage_is_skipped():
    packets = _read_all(b"junk" + _three_pages())
    assert [p.data for p in packets] == [b"one", b"two", b"three"]


def test_truncated_page():
    data = _three_pages()
    reader = PacketReader(io.BytesIO(data[:30]))
    with pytest.raises(OggReadError) as info:
        reader.read_packet()
    assert info.value.kind == OggReadError.UNEXPECTED_EOF


def test_corrupted_body_fails_checksum():
    data = bytearray(_three_pages())
    data[28] ^= 0xFF
    reader = PacketReader(io.BytesIO(bytes(data)))
    with pytest.raises(OggReadError) as info:
        reader.read_packet()
    assert info.value.kind == OggReadError.HASH_MISMATCH


def test_bad_version():
    data = bytearray(_three_pages())
    data[4] = 1
    reader = PacketReader(io.BytesIO(bytes(data)))
    with pytest.raises(OggReadError) as info:
        reader.read_packet()
    assert info.value.kind == OggReadError.INVALID_VERSION


def test_seek_absgp_finds_page():
    reader = PacketReader(io.BytesIO(_three_pages()))
    assert reader.read_packet().data == b"one"
    assert reader.seek_absgp(None, 150) is True
    packet = reader.read_packet()
    assert packet.data == b"two"
    assert packet.absgp_page() == 200


def test_seek_absgp_past_end():
    reader = PacketReader(io.BytesIO(_three_pages()))
    assert reader.seek_absgp(None, 1000) is False
    assert reader.read_packet() is None


def test_seek_absgp_other_serial():
    reader = PacketReader(io.BytesIO(_three_pages(serial=5)))
    assert reader.seek_absgp(6, 0) is False
    assert reader.seek_absgp(5, 0) is True
    assert reader.read_packet().data == b"one"


def test_delete_unread_packets():
    writer = PacketWriter()
    writer.write_packet(b"a", 1, NORMAL, 10)
    writer.write_packet(b"b", 1, END_PAGE, 10)
    writer.write_packet(b"c", 1, END_STREAM, 20)
    reader = PacketReader(io.BytesIO(writer.take()))
    assert reader.read_packet().data == b"a"
    reader.delete_unread_packets()
    assert reader.read_packet().data == b"c"


def test_write_rejects_negative_granule():
    writer = PacketWriter()
    with pytest.raises(ValueError):
        writer.write_packet(b"a", 1, END_PAGE, -1)


def test_bos_only_on_first_page():
    writer = PacketWriter()
    writer.write_packet(b"a", 1, END_PAGE, 1)
    first = writer.take()
    writer.write_packet(b"b", 1, END_PAGE, 2)
    second = writer.take()
    assert first[5] & 0x02
    assert not second[5] & 0x02
    assert struct.unpack_from("<I", second, 18)[0] == 1