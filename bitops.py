from typing import Optional


class BitWriter:
    """MSB-first bit packer.

    Accumulates codes bit by bit into whole bytes and remembers how many of
    the emitted bits are meaningful, so the zero padding of the final byte
    can be told apart from data.

    :ivar buffer: Fully packed bytes.
    :type buffer: bytearray
    :ivar bit_buffer: Scratch register holding the pending partial byte.
    :type bit_buffer: int
    :ivar bit_count: Number of pending bits in ``bit_buffer`` (0-7).
    :type bit_count: int
    """

    def __init__(self):
        """Initialize an empty bit writer.

        :returns: None
        :rtype: None
        """
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0

    @property
    def bits_written(self) -> int:
        """Total number of valid bits written so far, padding excluded.

        :rtype: int
        """
        return len(self.buffer) * 8 + self.bit_count

    def write_bit(self, bit: int):
        """Append a single bit.

        :param bit: ``0`` or ``1``; only the lowest bit is used.
        :type bit: int
        :returns: None
        :rtype: None
        """
        self.bit_buffer = (self.bit_buffer << 1) | (bit & 1)
        self.bit_count += 1
        if self.bit_count == 8:
            self.buffer.append(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0

    def write_bits(self, value: int, nbits: int):
        """Write the lowest ``nbits`` of ``value``, most significant first.

        :param value: Integer whose bits will be written.
        :type value: int
        :param nbits: Number of bits from ``value`` to write.
        :type nbits: int
        :returns: None
        :rtype: None
        """
        for i in range(nbits - 1, -1, -1):
            self.write_bit(value >> i)

    def flush(self) -> bytes:
        """Return the packed bytes, zero-padding the last partial byte.

        The writer can keep being used afterwards; the padding is only
        applied to the returned copy.

        :returns: Packed payload.
        :rtype: bytes
        """
        if self.bit_count == 0:
            return bytes(self.buffer)
        tail = self.bit_buffer << (8 - self.bit_count)
        return bytes(self.buffer) + bytes([tail])


class BitReader:
    """MSB-first bit reader bounded by a valid bit count.

    Reading stops at ``limit`` bits even when the underlying data holds
    more, so trailing pad bits are never handed out as data.

    :ivar data: Packed payload.
    :type data: bytes
    :ivar limit: Number of readable bits.
    :type limit: int
    :ivar pos: Number of bits consumed so far.
    :type pos: int
    """

    def __init__(self, data: bytes, limit: Optional[int] = None):
        """Create a bit reader over ``data``.

        :param data: Source data to read from.
        :type data: bytes
        :param limit: Number of valid bits; defaults to every bit of ``data``.
        :type limit: int | None
        :raises ValueError: If ``limit`` exceeds the bits available.
        """
        available = len(data) * 8
        if limit is None:
            limit = available
        if limit < 0 or limit > available:
            raise ValueError(
                f"Bit limit {limit} outside payload of {available} bits"
            )
        self.data = data
        self.limit = limit
        self.pos = 0

    @property
    def remaining(self) -> int:
        return self.limit - self.pos

    def read_bit(self) -> int:
        """Read the next bit.

        :returns: ``0`` or ``1``.
        :rtype: int
        :raises EOFError: If the valid bit count is exhausted.
        """
        if self.pos >= self.limit:
            raise EOFError("Unexpected end of data")
        byte = self.data[self.pos >> 3]
        bit = (byte >> (7 - (self.pos & 7))) & 1
        self.pos += 1
        return bit

    def read_bits(self, nbits: int) -> int:
        """Read ``nbits`` bits and return them as an integer, MSB first.

        :param nbits: Number of bits to read.
        :type nbits: int
        :returns: The integer value composed of the next ``nbits`` bits.
        :rtype: int
        :raises EOFError: If fewer than ``nbits`` valid bits remain.
        """
        if nbits > self.remaining:
            raise EOFError("Unexpected end of data")
        result = 0
        for _ in range(nbits):
            result = (result << 1) | self.read_bit()
        return result
