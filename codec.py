from typing import Callable, Optional, Tuple

from bitops import BitReader, BitWriter
from container import Container
from errors import CorruptStream
from huffman import CodeTable, FrequencyTable, HuffmanTree

ProgressCallback = Callable[[int, int], None]


class Encoder:
    """Maps input bytes through a code table into a packed bitstream.

    :ivar code_table: Codes for every symbol that will be encoded.
    :type code_table: CodeTable
    """

    def __init__(self, code_table: CodeTable):
        self.code_table = code_table

    def encode(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Tuple[bytes, int]:
        """Encode ``data`` symbol by symbol.

        :param data: Input bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
                            called with the number of input bytes encoded.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Pair ``(payload, bit_count)``; the payload's last byte is
                  zero-padded past ``bit_count``.
        :rtype: Tuple[bytes, int]
        :raises UnknownSymbol: If a byte of ``data`` has no code.
        """
        writer = BitWriter()
        total = len(data)
        for done, symbol in enumerate(data, 1):
            code, length = self.code_table.encode_symbol(symbol)
            writer.write_bits(code, length)
            if on_progress is not None:
                on_progress(done, total)
        return writer.flush(), writer.bits_written


class Decoder:
    """Walks a Huffman tree bit by bit to recover the encoded bytes.

    :ivar tree: The tree the payload was encoded with.
    :type tree: HuffmanTree
    """

    def __init__(self, tree: HuffmanTree):
        self.tree = tree

    def decode(
        self,
        payload: bytes,
        bit_count: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Decode the first ``bit_count`` bits of ``payload``.

        Starting at the root, each bit selects a child; reaching a leaf
        emits its symbol and returns to the root. Bits past ``bit_count``
        are padding and are never read.

        :param payload: Packed code bits.
        :type payload: bytes
        :param bit_count: Number of valid bits in ``payload``.
        :type bit_count: int
        :param on_progress: Optional callback ``on_progress(done, total)``
                            called with the number of symbols recovered.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Decoded bytes.
        :rtype: bytes
        :raises CorruptStream: If ``bit_count`` exceeds the payload, a bit
            leads to a missing child, or the bits end in the middle of a code.
        """
        try:
            reader = BitReader(payload, bit_count)
        except ValueError as e:
            raise CorruptStream(str(e)) from e

        tree = self.tree
        total = tree[tree.root].freq
        output = bytearray()
        node = tree.root

        for _ in range(bit_count):
            child = tree.child(node, reader.read_bit())
            if child is None:
                raise CorruptStream(
                    f"No branch for bit {reader.pos - 1} of the payload"
                )
            leaf = tree[child]
            if not leaf.is_leaf:
                node = child
                continue
            output.append(leaf.symbol)
            node = tree.root
            if on_progress is not None:
                on_progress(min(len(output), total), total)

        if node != tree.root:
            raise CorruptStream("Payload ends in the middle of a code")
        return bytes(output)


class HuffmanCodec:
    """Static Huffman compressor producing self-describing containers."""

    def encode(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Container:
        """Count, build the tree, derive codes and encode ``data``.

        Empty input yields a container with no symbols and no payload.

        :param data: Input bytes.
        :type data: bytes
        :param on_progress: Forwarded to :meth:`Encoder.encode`.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Container holding the frequency table and payload.
        :rtype: Container
        """
        frequencies = FrequencyTable.from_data(data)
        if not frequencies:
            return Container(frequencies, 0, b"")

        tree = HuffmanTree.from_frequencies(frequencies)
        code_table = CodeTable.from_tree(tree)
        payload, bit_count = Encoder(code_table).encode(data, on_progress)
        return Container(frequencies, bit_count, payload)

    def decode(
        self,
        container: Container,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Rebuild the tree from ``container`` and decode its payload.

        The pad bits after ``bit_count`` must be zero, and the decoded bytes
        must reproduce the container's frequency table exactly, which
        catches payload damage that still happens to walk the tree cleanly.

        :param container: Container produced by :meth:`encode`.
        :type container: Container
        :param on_progress: Forwarded to :meth:`Decoder.decode`.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Original bytes.
        :rtype: bytes
        :raises CorruptStream: If the padding is not zero or the payload does
            not decode to input matching the frequency table.
        """
        frequencies = container.frequencies
        if not frequencies:
            return b""

        pad_bits = -container.bit_count % 8
        if pad_bits and container.payload[-1] & ((1 << pad_bits) - 1):
            raise CorruptStream(
                "Padding of the last payload byte is not zero"
            )

        tree = HuffmanTree.from_frequencies(frequencies)
        data = Decoder(tree).decode(
            container.payload, container.bit_count, on_progress
        )
        if len(data) != frequencies.total:
            raise CorruptStream(
                f"Decoded {len(data)} symbols, "
                f"expected {frequencies.total}"
            )
        if FrequencyTable.from_data(data) != frequencies:
            raise CorruptStream(
                "Decoded symbol counts differ from the frequency table"
            )
        return data

    def compress(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Encode ``data`` and serialize the resulting container."""
        return self.encode(data, on_progress).pack()

    def decompress(
        self,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Parse a serialized container and decode it.

        :raises MalformedContainer: If the container header is invalid.
        :raises CorruptStream: If the payload is damaged.
        """
        return self.decode(Container.unpack(data), on_progress)
