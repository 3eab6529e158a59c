import random

import pytest

from codec import Decoder, Encoder, HuffmanCodec
from container import Container
from errors import CorruptStream, MalformedContainer, UnknownSymbol
from huffman import CodeTable, FrequencyTable, HuffmanTree


def _tree_for(data):
    return HuffmanTree.from_frequencies(FrequencyTable.from_data(data))


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"a",
        b"zzzz",
        b"aaaabbbccd",
        b"The quick brown fox jumps over the lazy dog. " * 5,
        bytes(range(256)) * 3,
        "héllo wörld ☃".encode("utf-8"),
    ],
)
def test_codec_roundtrip(data):
    codec = HuffmanCodec()
    assert codec.decompress(codec.compress(data)) == data


def test_codec_roundtrip_random_bytes():
    rng = random.Random(99)
    codec = HuffmanCodec()
    for _ in range(25):
        alphabet = rng.sample(range(256), rng.randint(1, 20))
        data = bytes(rng.choice(alphabet) for _ in range(rng.randint(0, 300)))
        assert codec.decompress(codec.compress(data)) == data


def test_encode_known_payload():
    container = HuffmanCodec().encode(b"aaaabbbccd")
    assert container.bit_count == 19
    assert container.payload == bytes([0b00001010, 0b10111111, 0b11000000])
    assert HuffmanCodec().decode(container) == b"aaaabbbccd"


def test_empty_input_is_empty_payload():
    container = HuffmanCodec().encode(b"")
    assert container.bit_count == 0
    assert container.payload == b""
    assert len(container.frequencies) == 0
    assert HuffmanCodec().decompress(container.pack()) == b""


def test_single_symbol_input():
    container = HuffmanCodec().encode(b"zzzz")
    assert container.bit_count == 4
    assert container.payload == b"\x00"
    assert HuffmanCodec().decode(container) == b"zzzz"


def test_corrupted_last_byte_is_detected():
    codec = HuffmanCodec()
    packed = bytearray(codec.compress(b"aaaabbbccd"))
    packed[-1] ^= 0xFF
    with pytest.raises(CorruptStream):
        codec.decompress(bytes(packed))


def test_corrupted_code_bits_in_last_byte_end_mid_code():
    codec = HuffmanCodec()
    packed = bytearray(codec.compress(b"aaaabbbccd"))
    # Flip only the three valid bits; "110" (d) becomes "001" (a, a, ...).
    packed[-1] ^= 0b11100000
    with pytest.raises(CorruptStream, match="middle of a code"):
        codec.decompress(bytes(packed))


def test_non_zero_padding_is_detected():
    codec = HuffmanCodec()
    packed = bytearray(codec.compress(b"aaaabbbccd"))
    packed[-1] |= 0x1F
    with pytest.raises(CorruptStream, match="Padding"):
        codec.decompress(bytes(packed))


def test_swapped_codes_of_equal_length_are_detected():
    # c=111 and d=110: same length and bit count, different counts.
    table = FrequencyTable.from_data(b"aaaabbbccd")
    codes = CodeTable.from_tree(HuffmanTree.from_frequencies(table))
    payload, bit_count = Encoder(codes).encode(b"aaaabbbcdd")
    container = Container(table, bit_count, payload)
    assert bit_count == 19
    with pytest.raises(CorruptStream, match="counts differ"):
        HuffmanCodec().decode(container)


def test_corruption_that_walks_cleanly_is_still_detected():
    # One "10" (b) re-encoded as "00" (aa): same bit count, valid walk.
    table = FrequencyTable.from_data(b"aaaabbbccd")
    codes = CodeTable.from_tree(HuffmanTree.from_frequencies(table))
    payload, bit_count = Encoder(codes).encode(b"aaaaaabbccd")
    container = Container(table, bit_count, payload)
    with pytest.raises(CorruptStream):
        HuffmanCodec().decode(container)


def test_codec_progress_reaches_total(progress_recorder):
    data = b"abracadabra"
    codec = HuffmanCodec()
    on_prog, calls = progress_recorder
    packed = codec.compress(data, on_progress=on_prog)
    assert calls[-1] == (len(data), len(data))
    calls.clear()
    assert codec.decompress(packed, on_progress=on_prog) == data
    assert calls[-1] == (len(data), len(data))


def test_decompress_malformed_container_raises():
    with pytest.raises(MalformedContainer):
        HuffmanCodec().decompress(b"\x00\x00")


def test_encoder_unknown_symbol_raises():
    codes = CodeTable.from_tree(_tree_for(b"ab"))
    with pytest.raises(UnknownSymbol):
        Encoder(codes).encode(b"abc")


def test_decoder_ignores_padding_bits():
    tree = _tree_for(b"aaaabbbccd")
    # "0" is a complete code for 'a'; the seven set pad bits must be ignored.
    assert Decoder(tree).decode(bytes([0b01111111]), 1) == b"a"


def test_decoder_stream_ending_mid_code_raises():
    tree = _tree_for(b"aaaabbbccd")
    with pytest.raises(CorruptStream):
        Decoder(tree).decode(bytes([0b11000000]), 2)


def test_decoder_missing_child_raises():
    tree = _tree_for(b"zzzz")
    with pytest.raises(CorruptStream):
        Decoder(tree).decode(bytes([0b01000000]), 2)


def test_decoder_bit_count_beyond_payload_raises():
    tree = _tree_for(b"ab")
    with pytest.raises(CorruptStream):
        Decoder(tree).decode(b"\x00", 9)


def test_decoder_zero_bits_decodes_nothing():
    assert Decoder(_tree_for(b"ab")).decode(b"", 0) == b""
