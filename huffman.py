import heapq
from collections import Counter
from collections.abc import Mapping
from typing import Dict, Iterator, List, Optional, Tuple

from errors import InvalidInput, UnknownSymbol

LEFT = 0  #: Bit emitted for, and consumed by, a step to the left child
RIGHT = 1  #: Bit emitted for, and consumed by, a step to the right child
MAX_SYMBOL = 0xFF  #: Symbols are single bytes


class FrequencyTable(Mapping):
    """Read-only mapping from byte symbol to its occurrence count.

    Iteration always yields symbols in ascending order, which is the order
    leaves enter the tree arena and the order the container stores them.

    :ivar total: Sum of all counts, i.e. the length of the counted input.
    :type total: int
    """

    def __init__(self, counts: Optional[Mapping] = None):
        """Create a table from an existing ``symbol -> count`` mapping.

        :param counts: Mapping of byte values to counts of at least one.
        :type counts: Mapping | None
        :raises InvalidInput: If a key is not a byte value or a count is
            below one.
        """
        counts = dict(counts or {})
        for symbol, count in counts.items():
            if not isinstance(symbol, int) or not 0 <= symbol <= MAX_SYMBOL:
                raise InvalidInput(f"Symbol {symbol!r} is not a byte value")
            if not isinstance(count, int) or count < 1:
                raise InvalidInput(
                    f"Symbol {symbol} has invalid count {count!r}"
                )
        self._counts: Dict[int, int] = {s: counts[s] for s in sorted(counts)}
        self.total = sum(self._counts.values())

    @classmethod
    def from_data(cls, data: bytes) -> "FrequencyTable":
        """Count every byte of ``data``.

        :param data: Input bytes, possibly empty.
        :type data: bytes
        :returns: The frequency table of ``data``.
        :rtype: FrequencyTable
        """
        return cls(Counter(data))

    def __getitem__(self, symbol: int) -> int:
        return self._counts[symbol]

    def __iter__(self) -> Iterator[int]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self):
        return f"FrequencyTable({self._counts!r})"


class HuffmanNode:
    """Node of a Huffman tree stored in a :class:`HuffmanTree` arena.

    :ivar symbol: Byte value held by a leaf; ``None`` for internal nodes.
    :type symbol: int | None
    :ivar freq: Combined frequency of the subtree rooted at this node.
    :type freq: int
    :ivar left: Arena index of the left child, if any.
    :type left: int | None
    :ivar right: Arena index of the right child, if any.
    :type right: int | None
    """

    def __init__(self, symbol=None, freq=0, left=None, right=None):
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def child(self, bit: int) -> Optional[int]:
        """Arena index reached by following ``bit`` from this node.

        :param bit: :data:`LEFT` or :data:`RIGHT`.
        :type bit: int
        :returns: Child index, or ``None`` when that branch is missing.
        :rtype: int | None
        """
        return self.left if bit == LEFT else self.right

    def __eq__(self, other):
        if not isinstance(other, HuffmanNode):
            return NotImplemented
        return (self.symbol, self.freq, self.left, self.right) == (
            other.symbol, other.freq, other.left, other.right
        )

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol}, freq={self.freq})"
        return (
            f"HuffmanNode(freq={self.freq}, "
            f"left={self.left}, right={self.right})"
        )


class HuffmanTree:
    """Huffman tree kept as a flat arena of nodes linked by index.

    Leaves occupy the first slots in ascending symbol order, internal
    nodes follow in the order they were merged.

    :ivar nodes: The node arena.
    :type nodes: List[HuffmanNode]
    :ivar root: Arena index of the root node.
    :type root: int
    """

    def __init__(self, nodes: List[HuffmanNode], root: int):
        self.nodes = nodes
        self.root = root

    @classmethod
    def from_frequencies(cls, frequencies: FrequencyTable) -> "HuffmanTree":
        """Build a Huffman tree by greedy priority-queue merging.

        The queue is keyed on ``(freq, arena_index)``: the two lightest
        nodes are merged first, and equal frequencies go to the node that
        entered the arena first. The first node popped becomes the left
        child. A lone symbol is hung as the left child of a synthetic root
        so that it still receives a one-bit code.

        :param frequencies: Non-empty frequency table.
        :type frequencies: FrequencyTable
        :returns: The Huffman tree for ``frequencies``.
        :rtype: HuffmanTree
        :raises InvalidInput: If ``frequencies`` is empty.
        """
        if not frequencies:
            raise InvalidInput(
                "Cannot build a Huffman tree from an empty frequency table"
            )

        nodes = [
            HuffmanNode(symbol=symbol, freq=freq)
            for symbol, freq in frequencies.items()
        ]

        if len(nodes) == 1:
            nodes.append(HuffmanNode(freq=nodes[0].freq, left=0))
            return cls(nodes, 1)

        heap = [(node.freq, index) for index, node in enumerate(nodes)]
        heapq.heapify(heap)

        while len(heap) > 1:
            left_freq, left = heapq.heappop(heap)
            right_freq, right = heapq.heappop(heap)
            merged = HuffmanNode(
                freq=left_freq + right_freq, left=left, right=right
            )
            nodes.append(merged)
            heapq.heappush(heap, (merged.freq, len(nodes) - 1))

        return cls(nodes, heap[0][1])

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> HuffmanNode:
        return self.nodes[index]

    def child(self, index: int, bit: int) -> Optional[int]:
        """Follow one edge down from the node at ``index``."""
        return self.nodes[index].child(bit)

    def depths(self) -> Dict[int, int]:
        """Depth of every leaf, keyed by its symbol.

        :returns: Mapping ``symbol -> depth``.
        :rtype: Dict[int, int]
        """
        return {
            self.nodes[index].symbol: depth
            for index, depth in self._leaf_depths()
        }

    def weighted_path_length(self) -> int:
        """Sum of ``freq * depth`` over all leaves.

        This is the number of payload bits the tree produces for the input
        it was built from.

        :rtype: int
        """
        return sum(
            self.nodes[index].freq * depth
            for index, depth in self._leaf_depths()
        )

    def _leaf_depths(self) -> Iterator[Tuple[int, int]]:
        stack = [(self.root, 0)]
        while stack:
            index, depth = stack.pop()
            node = self.nodes[index]
            if node.is_leaf:
                yield index, depth
                continue
            for child in (node.left, node.right):
                if child is not None:
                    stack.append((child, depth + 1))


class CodeTable:
    """Mapping from symbol to its Huffman code.

    Codes are stored as ``(code, length)`` pairs where ``code`` holds the
    bits MSB-first in an integer, the form :meth:`BitWriter.write_bits`
    consumes.

    :ivar codes: Mapping ``symbol -> (code, length)``.
    :type codes: Dict[int, Tuple[int, int]]
    """

    def __init__(self, codes: Dict[int, Tuple[int, int]]):
        self.codes = codes

    @classmethod
    def from_tree(cls, tree: HuffmanTree) -> "CodeTable":
        """Derive codes by a depth-first walk of ``tree``.

        Each left edge appends :data:`LEFT`, each right edge :data:`RIGHT`;
        the bits gathered on the way to a leaf form that leaf's code.

        :param tree: Tree produced by :meth:`HuffmanTree.from_frequencies`.
        :type tree: HuffmanTree
        :returns: Codes for every leaf of ``tree``.
        :rtype: CodeTable
        """
        codes: Dict[int, Tuple[int, int]] = {}
        cls._walk(tree, tree.root, 0, 0, codes)
        return cls({symbol: codes[symbol] for symbol in sorted(codes)})

    @classmethod
    def _walk(cls, tree, index, code, length, codes):
        node = tree[index]
        if node.is_leaf:
            codes[node.symbol] = (code, length)
            return
        if node.left is not None:
            cls._walk(tree, node.left, (code << 1) | LEFT, length + 1, codes)
        if node.right is not None:
            cls._walk(tree, node.right, (code << 1) | RIGHT, length + 1, codes)

    def encode_symbol(self, symbol: int) -> Tuple[int, int]:
        """Get the code for ``symbol``.

        :param symbol: Symbol to encode.
        :type symbol: int
        :returns: Tuple ``(code, length)``.
        :rtype: Tuple[int, int]
        :raises UnknownSymbol: If ``symbol`` has no code.
        """
        try:
            return self.codes[symbol]
        except KeyError:
            raise UnknownSymbol(symbol) from None

    def __contains__(self, symbol) -> bool:
        return symbol in self.codes

    def lengths(self) -> Dict[int, int]:
        return {symbol: length for symbol, (_, length) in self.codes.items()}

    def as_bit_strings(self) -> Dict[int, str]:
        """Render every code as a string of ``'0'`` and ``'1'`` characters."""
        return {
            symbol: format(code, f"0{length}b")
            for symbol, (code, length) in self.codes.items()
        }

    def average_length(self, frequencies: FrequencyTable) -> float:
        """Mean code length in bits, weighted by ``frequencies``.

        :param frequencies: Table the codes were derived from.
        :type frequencies: FrequencyTable
        :returns: Average bits per symbol, ``0.0`` for an empty table.
        :rtype: float
        """
        if not frequencies.total:
            return 0.0
        bits = sum(
            freq * self.encode_symbol(symbol)[1]
            for symbol, freq in frequencies.items()
        )
        return bits / frequencies.total
