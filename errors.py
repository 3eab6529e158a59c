class HuffmanError(ValueError):
    """Base class for every error raised by the Huffman coder."""


class InvalidInput(HuffmanError):
    """A frequency table or symbol sequence cannot be coded.

    Raised when the tree builder receives an empty table, or when a
    frequency table holds a non-byte symbol or a count below one.
    """


class UnknownSymbol(HuffmanError):
    """The encoder met a symbol that has no code in the code table.

    :ivar symbol: The offending symbol.
    :type symbol: int
    """

    def __init__(self, symbol: int):
        super().__init__(f"No Huffman code for symbol {symbol!r}")
        self.symbol = symbol


class CorruptStream(HuffmanError):
    """The packed payload does not describe a valid walk through the tree."""


class MalformedContainer(HuffmanError):
    """The container header is inconsistent with the bytes available."""
