import argparse
import sys

from typing import List, Optional
from codec import HuffmanCodec
from errors import HuffmanError
from huffman import CodeTable, FrequencyTable, HuffmanTree

EXIT_OK = 0
EXIT_MISSING_INPUT = 1  #: Input file could not be read
EXIT_CODEC_ERROR = 2  #: Input was read but could not be coded


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Static Huffman encoder/decoder for single files"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    encode = subparsers.add_parser(
        "encode", aliases=["e"], help="Huffman-encode a file"
    )
    encode.add_argument("input", help="File to encode")
    encode.add_argument(
        "-o", "--output", required=True, help="Encoded output file path"
    )
    encode.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    decode = subparsers.add_parser(
        "decode", aliases=["d"], help="Decode a file produced by encode"
    )
    decode.add_argument("input", help="Encoded file to decode")
    decode.add_argument(
        "-o", "--output", required=True, help="Decoded output file path"
    )
    decode.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    roundtrip = subparsers.add_parser(
        "roundtrip",
        aliases=["r"],
        help="Encode a file, decode the result and compare",
    )
    roundtrip.add_argument("input", help="File to encode")
    roundtrip.add_argument(
        "--encoded",
        default="encoded.huf",
        help="Where to write the encoded file (default: encoded.huf)",
    )
    roundtrip.add_argument(
        "--decoded",
        default="decoded.txt",
        help="Where to write the decoded file (default: decoded.txt)",
    )
    roundtrip.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    codes = subparsers.add_parser(
        "codes", aliases=["c"], help="Print the code table of a file"
    )
    codes.add_argument("input", help="File to analyse")

    return parser


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


def _fmt_symbol(symbol: int) -> str:
    """Printable label for a byte symbol, e.g. ``'a'`` or ``0x0a``."""
    char = chr(symbol)
    if char.isprintable() and symbol < 0x80:
        return repr(char)
    return f"0x{symbol:02x}"


class Progress:
    """Callable progress reporter for one encode or decode pass.

    Only redraws when the whole-percent value changes.

    :ivar label: Action label (e.g. "Encoding" or "Decoding").
    :type label: str
    :ivar path: File name displayed next to the percentage.
    :type path: str
    """

    def __init__(self, label: str, path: str) -> None:
        self.label = label
        self.path = path
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display.

        :param done: Units processed so far.
        :type done: int
        :param total: Total units for this pass.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        _print_progress(f"{self.label} {self.path}  {_fmt_pct(done, total)}")

    def finish(self) -> None:
        if self._last_reported >= 0:
            sys.stdout.write("\n")
            sys.stdout.flush()


def _read_file(path: str) -> Optional[bytes]:
    """Read a whole file, reporting a missing one on the console.

    :param path: File to read.
    :type path: str
    :returns: File contents, or ``None`` if it does not exist.
    :rtype: Optional[bytes]
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except FileNotFoundError:
        print(f"[!] Input file not found: {path}")
        return None


def _write_file(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)


def _print_sizes(before: int, after: int) -> None:
    print("Size before compression: ", _fmt_bytes(before))
    print("Size after compression: ", _fmt_bytes(after))
    print(f"Compression ratio: {before / after:.2f}")


def encode_file(input_path: str, output_path: str,
                hide_progress: bool) -> int:
    """Encode ``input_path`` into a container written to ``output_path``.

    :param input_path: File to encode.
    :type input_path: str
    :param output_path: Destination of the encoded container.
    :type output_path: str
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :returns: Process exit status.
    :rtype: int
    """
    data = _read_file(input_path)
    if data is None:
        return EXIT_MISSING_INPUT
    progress = None if hide_progress else Progress("Encoding", input_path)
    encoded = HuffmanCodec().compress(data, on_progress=progress)
    if progress is not None:
        progress.finish()
    _write_file(output_path, encoded)
    _print_sizes(len(data), len(encoded))
    return EXIT_OK


def decode_file(input_path: str, output_path: str,
                hide_progress: bool) -> int:
    """Decode the container in ``input_path`` into ``output_path``.

    :param input_path: Encoded container file.
    :type input_path: str
    :param output_path: Destination of the decoded bytes.
    :type output_path: str
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :returns: Process exit status.
    :rtype: int
    """
    encoded = _read_file(input_path)
    if encoded is None:
        return EXIT_MISSING_INPUT
    progress = None if hide_progress else Progress("Decoding", input_path)
    try:
        data = HuffmanCodec().decompress(encoded, on_progress=progress)
    except HuffmanError as e:
        print(f"[!] Cannot decode {input_path}: {e}")
        return EXIT_CODEC_ERROR
    finally:
        if progress is not None:
            progress.finish()
    _write_file(output_path, data)
    print(f"Decoded {_fmt_bytes(len(data))} to {output_path}")
    return EXIT_OK


def roundtrip_file(input_path: str, encoded_path: str, decoded_path: str,
                   hide_progress: bool) -> int:
    """Encode a file, decode what was written and compare with the input.

    :returns: Process exit status; :data:`EXIT_CODEC_ERROR` on mismatch.
    :rtype: int
    """
    status = encode_file(input_path, encoded_path, hide_progress)
    if status != EXIT_OK:
        return status
    status = decode_file(encoded_path, decoded_path, hide_progress)
    if status != EXIT_OK:
        return status

    with open(input_path, "rb") as original, open(decoded_path, "rb") as out:
        if original.read() != out.read():
            print("[!] Decoded output differs from the input")
            return EXIT_CODEC_ERROR
    print(f"Encoding and decoding complete. Check {encoded_path} "
          f"and {decoded_path} files.")
    return EXIT_OK


def show_codes(input_path: str) -> int:
    """Print symbol, frequency and code bits for every byte in a file.

    :param input_path: File to analyse.
    :type input_path: str
    :returns: Process exit status.
    :rtype: int
    """
    data = _read_file(input_path)
    if data is None:
        return EXIT_MISSING_INPUT
    frequencies = FrequencyTable.from_data(data)
    if not frequencies:
        print("Input is empty, no codes assigned.")
        return EXIT_OK

    code_table = CodeTable.from_tree(HuffmanTree.from_frequencies(frequencies))
    bit_strings = code_table.as_bit_strings()
    for symbol, freq in frequencies.items():
        print(f"{_fmt_symbol(symbol):>6}  {freq:>10}  {bit_strings[symbol]}")
    print(f"Average code length: "
          f"{code_table.average_length(frequencies):.3f} bits/symbol")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments to parse instead of ``sys.argv``.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.cmd in ["encode", "e"]:
        return encode_file(args.input, args.output, args.no_progress)
    if args.cmd in ["decode", "d"]:
        return decode_file(args.input, args.output, args.no_progress)
    if args.cmd in ["roundtrip", "r"]:
        return roundtrip_file(
            args.input, args.encoded, args.decoded, args.no_progress
        )
    return show_codes(args.input)


if __name__ == "__main__":
    sys.exit(main())
