"""
Frequency table serialization

Each populated symbol of a tree becomes one 4-byte record: symbol then
frequency, both unsigned 16-bit big-endian. Records are written in ascending
symbol order with no header or terminator, so the record count is len(data) // 4.
"""

import struct
from typing import List, Tuple

from huffman import HuffmanTree, InvalidInput

RECORD = struct.Struct(">HH")
MAX_VALUE = 0xFFFF


def serialize(tree: HuffmanTree) -> bytes:
    out = bytearray()
    for symbol in sorted(tree.leaves):
        frequency = tree.leaves[symbol].frequency
        if frequency > MAX_VALUE:
            raise InvalidInput(f"frequency {frequency} of symbol {symbol!r} does not fit in 16 bits")
        out += RECORD.pack(symbol, frequency)
    return bytes(out)


def deserialize(data: bytes) -> Tuple[List[int], List[int]]:
    if len(data) % RECORD.size:
        raise InvalidInput(f"frequency table length {len(data)} is not a multiple of {RECORD.size}")
    symbols: List[int] = []
    frequencies: List[int] = []
    for symbol, frequency in RECORD.iter_unpack(data):
        symbols.append(symbol)
        frequencies.append(frequency)
    return symbols, frequencies


def tree_from_bytes(data: bytes) -> HuffmanTree:
    symbols, frequencies = deserialize(data)
    return HuffmanTree(symbols, frequencies)
