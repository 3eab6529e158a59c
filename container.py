"""Serialized form of an encoded stream.

Layout (big-endian)::

    [4 bytes]  distinct-symbol count N
    N times:   [1 byte] symbol, [4 bytes] frequency   (ascending symbol)
    [8 bytes]  valid bit count of the payload
    [...]      payload, MSB-first, last byte zero-padded

A decoder rebuilds the frequency table from the header and reruns the
deterministic tree construction, so the tree shape itself is never stored.
"""
import struct

from errors import InvalidInput, MalformedContainer
from huffman import FrequencyTable, MAX_SYMBOL

COUNT_FORMAT = ">I"  #: Distinct-symbol count
ENTRY_FORMAT = ">BI"  #: Symbol byte followed by its frequency
BIT_COUNT_FORMAT = ">Q"  #: Valid bits in the payload

MAX_FREQUENCY = 0xFFFFFFFF
MAX_SYMBOLS = MAX_SYMBOL + 1


def payload_size(bit_count: int) -> int:
    """Number of bytes needed to hold ``bit_count`` packed bits."""
    return (bit_count + 7) // 8


class Container:
    """Frequency table, valid bit count and packed payload of one stream.

    :ivar frequencies: Symbol counts of the encoded input.
    :type frequencies: FrequencyTable
    :ivar bit_count: Number of meaningful payload bits.
    :type bit_count: int
    :ivar payload: Packed code bits.
    :type payload: bytes
    """

    def __init__(self, frequencies: FrequencyTable, bit_count: int,
                 payload: bytes):
        """Create a container, checking that its fields agree.

        :raises MalformedContainer: If the payload length does not match
            ``bit_count`` or an empty table comes with payload bits.
        """
        if bit_count < 0:
            raise MalformedContainer(f"Negative bit count {bit_count}")
        if len(payload) * 8 < bit_count:
            raise MalformedContainer(
                f"Valid bit count {bit_count} exceeds the "
                f"{len(payload) * 8} payload bits available"
            )
        if len(payload) != payload_size(bit_count):
            raise MalformedContainer(
                f"Payload of {len(payload)} bytes does not match "
                f"valid bit count {bit_count}"
            )
        if not frequencies and bit_count:
            raise MalformedContainer(
                "Container with no symbols cannot carry payload bits"
            )
        self.frequencies = frequencies
        self.bit_count = bit_count
        self.payload = bytes(payload)

    def pack(self) -> bytes:
        """Serialize the container.

        :returns: Header followed by the payload.
        :rtype: bytes
        :raises InvalidInput: If a frequency does not fit in 32 bits.
        """
        out = bytearray(struct.pack(COUNT_FORMAT, len(self.frequencies)))
        for symbol, freq in self.frequencies.items():
            if freq > MAX_FREQUENCY:
                raise InvalidInput(
                    f"Frequency {freq} of symbol {symbol} "
                    f"does not fit the 32-bit header field"
                )
            out += struct.pack(ENTRY_FORMAT, symbol, freq)
        out += struct.pack(BIT_COUNT_FORMAT, self.bit_count)
        out += self.payload
        return bytes(out)

    @classmethod
    def unpack(cls, data: bytes) -> "Container":
        """Parse bytes produced by :meth:`pack`.

        :param data: Serialized container.
        :type data: bytes
        :returns: The parsed container.
        :rtype: Container
        :raises MalformedContainer: If the header is truncated, lists symbols
            out of order or with zero frequency, or disagrees with the
            payload length.
        """
        count_size = struct.calcsize(COUNT_FORMAT)
        entry_size = struct.calcsize(ENTRY_FORMAT)
        bit_count_size = struct.calcsize(BIT_COUNT_FORMAT)

        if len(data) < count_size:
            raise MalformedContainer("Truncated header: missing symbol count")
        (count,) = struct.unpack_from(COUNT_FORMAT, data, 0)
        if count > MAX_SYMBOLS:
            raise MalformedContainer(
                f"Symbol count {count} exceeds the {MAX_SYMBOLS} byte values"
            )

        header_size = count_size + count * entry_size + bit_count_size
        if len(data) < header_size:
            raise MalformedContainer(
                f"Header declares {count} symbols but only "
                f"{len(data)} bytes are available"
            )

        counts = {}
        previous = -1
        offset = count_size
        for _ in range(count):
            symbol, freq = struct.unpack_from(ENTRY_FORMAT, data, offset)
            offset += entry_size
            if symbol <= previous:
                raise MalformedContainer(
                    f"Symbol {symbol} is out of ascending order"
                )
            if freq == 0:
                raise MalformedContainer(f"Symbol {symbol} has zero frequency")
            counts[symbol] = freq
            previous = symbol

        (bit_count,) = struct.unpack_from(BIT_COUNT_FORMAT, data, offset)
        offset += bit_count_size

        return cls(FrequencyTable(counts), bit_count, data[offset:])

    def __eq__(self, other):
        if not isinstance(other, Container):
            return NotImplemented
        return (
            self.frequencies == other.frequencies
            and self.bit_count == other.bit_count
            and self.payload == other.payload
        )

    def __repr__(self):
        return (
            f"Container(symbols={len(self.frequencies)}, "
            f"bit_count={self.bit_count}, payload={len(self.payload)}B)"
        )
