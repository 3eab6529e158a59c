import struct

import pytest

from container import Container
from errors import InvalidInput, MalformedContainer
from huffman import FrequencyTable


def _header(entries, bit_count):
    out = struct.pack(">I", len(entries))
    for symbol, freq in entries:
        out += struct.pack(">BI", symbol, freq)
    return out + struct.pack(">Q", bit_count)


def test_pack_layout_is_big_endian():
    container = Container(
        FrequencyTable({ord("a"): 2, ord("b"): 1}), 3, bytes([0b01100000])
    )
    assert container.pack() == (
        b"\x00\x00\x00\x02"
        + b"a\x00\x00\x00\x02"
        + b"b\x00\x00\x00\x01"
        + b"\x00\x00\x00\x00\x00\x00\x00\x03"
        + b"\x60"
    )


def test_container_roundtrip_preserves_table_and_bit_count():
    table = FrequencyTable({0: 7, 97: 300, 255: 70000})
    container = Container(table, 17, b"\xAB\xCD\x80")
    parsed = Container.unpack(container.pack())
    assert parsed == container
    assert parsed.frequencies == table
    assert parsed.bit_count == 17


def test_empty_container():
    packed = Container(FrequencyTable(), 0, b"").pack()
    assert len(packed) == 12
    parsed = Container.unpack(packed)
    assert len(parsed.frequencies) == 0
    assert parsed.bit_count == 0
    assert parsed.payload == b""


@pytest.mark.parametrize("data", [b"", b"\x00\x00", b"\x00\x00\x00\x01a"])
def test_truncated_header_raises(data):
    with pytest.raises(MalformedContainer):
        Container.unpack(data)


def test_symbol_count_beyond_byte_alphabet_raises():
    with pytest.raises(MalformedContainer):
        Container.unpack(struct.pack(">I", 257) + b"\x00" * 2000)


def test_out_of_order_or_duplicate_symbols_raise():
    with pytest.raises(MalformedContainer):
        Container.unpack(_header([(98, 1), (97, 1)], 2) + b"\x40")
    with pytest.raises(MalformedContainer):
        Container.unpack(_header([(97, 1), (97, 1)], 2) + b"\x40")


def test_zero_frequency_raises():
    with pytest.raises(MalformedContainer):
        Container.unpack(_header([(97, 0), (98, 1)], 2) + b"\x40")


def test_bit_count_exceeding_payload_raises():
    with pytest.raises(MalformedContainer):
        Container.unpack(_header([(97, 1), (98, 1)], 9) + b"\x40")


def test_payload_longer_than_bit_count_raises():
    with pytest.raises(MalformedContainer):
        Container.unpack(_header([(97, 1), (98, 1)], 2) + b"\x40\x00")


def test_empty_table_with_payload_bits_raises():
    with pytest.raises(MalformedContainer):
        Container.unpack(_header([], 8) + b"\x00")


def test_pack_rejects_frequency_wider_than_32_bits():
    container = Container(FrequencyTable({97: 1 << 32}), 0, b"")
    with pytest.raises(InvalidInput):
        container.pack()
