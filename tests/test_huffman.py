import random

import pytest

from bitstream import BitReader, BitWriter
from huffman import (
    END_OF_TEXT,
    INTERNAL_SYMBOL,
    INVALID_TREE,
    HuffmanTree,
    IncompleteCode,
    InvalidInput,
    Node,
    SymbolNotFound,
    build_huffman_tree,
    put_path,
)

A, B, C = ord('a'), ord('b'), ord('c')


class ListSink:
    def __init__(self):
        self.bits = []

    def put_next(self, bit):
        self.bits.append(bit)


def abc_tree():
    return HuffmanTree([A, B, C], [5, 2, 1])


def walk(node):
    yield node
    if not node.is_leaf:
        yield from walk(node.left)
        yield from walk(node.right)


def test_abc_codes():
    tree = abc_tree()
    assert tree.path_of(A) == "1"
    assert tree.path_of(B) == "01"
    assert tree.path_of(C) == "001"
    assert tree.path_of(END_OF_TEXT) == "000"


def test_abc_code_lengths_follow_frequencies():
    tree = abc_tree()
    lengths = {s: len(tree.path_of(s)) for s in (A, B, C, END_OF_TEXT)}
    assert lengths[A] <= lengths[B] <= lengths[C]
    assert abs(lengths[C] - lengths[END_OF_TEXT]) <= 1


def test_two_symbols_equal_frequency():
    tree = HuffmanTree([ord('A'), ord('B')], [1, 1])
    assert tree.path_of(ord('B')) == "1"
    assert tree.path_of(END_OF_TEXT) == "00"
    assert tree.path_of(ord('A')) == "01"
    assert all(len(code) <= 2 for _, code in tree.code_table())


def test_internal_nodes_use_out_of_range_symbol():
    root, _ = build_huffman_tree([A, B, C], [5, 2, 1])
    assert root.symbol == INTERNAL_SYMBOL
    assert not root.is_leaf


def test_every_internal_node_has_two_children():
    tree = HuffmanTree([A, B, C, ord('d')], [4, 4, 2, 7])
    for node in walk(tree.root):
        assert (node.left is None) == (node.right is None)


def test_frequency_conservation():
    tree = HuffmanTree([A, B, C, ord('d'), ord('e')], [9, 3, 3, 1, 12])
    for node in walk(tree.root):
        if not node.is_leaf:
            assert node.frequency == node.left.frequency + node.right.frequency
    assert tree.root.frequency == sum(leaf.frequency for leaf in tree.leaves.values())


def test_leaf_index_holds_end_marker_and_positive_symbols():
    tree = HuffmanTree([A, B, C, ord('z')], [3, 0, 1, 0])
    assert sorted(tree.leaves) == [END_OF_TEXT, A, C]
    assert tree.frequency_of(END_OF_TEXT) == 0
    assert tree.frequency_of(A) == 3
    assert B not in tree


def test_build_is_deterministic_regardless_of_order():
    symbols = list(range(1, 41))
    rng = random.Random(7)
    frequencies = [rng.randrange(1, 6) for _ in symbols]
    reference = HuffmanTree(symbols, frequencies)

    pairs = list(zip(symbols, frequencies))
    for seed in range(5):
        random.Random(seed).shuffle(pairs)
        tree = HuffmanTree([s for s, _ in pairs], [f for _, f in pairs])
        assert tree.codes == reference.codes


def test_higher_frequency_never_has_longer_code():
    symbols = [A, B, C, ord('d'), ord('e'), ord('f')]
    frequencies = [45, 13, 12, 16, 9, 5]
    tree = HuffmanTree(symbols, frequencies)
    for s1, f1 in zip(symbols, frequencies):
        for s2, f2 in zip(symbols, frequencies):
            if f1 > f2:
                assert len(tree.path_of(s1)) <= len(tree.path_of(s2))


def test_from_frequency_table():
    tree = HuffmanTree.from_frequency_table({A: 5, B: 2, C: 1})
    assert tree.codes == abc_tree().codes


@pytest.mark.parametrize("symbols, frequencies", [
    ([A, B], [1]),
    ([A], [1, 2]),
    ([A, B], [3, -1]),
    ([A, A], [1, 2]),
    ([END_OF_TEXT, A], [4, 1]),
    (["A", "B"], [1, 1]),
    ([INTERNAL_SYMBOL, 5], [1, 1]),
    ([-7], [2]),
    ([0x10000], [1]),
    ([1.5], [1]),
    ([True], [1]),
])
def test_invalid_input(symbols, frequencies):
    with pytest.raises(InvalidInput):
        HuffmanTree(symbols, frequencies)


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        build_huffman_tree([A], [-3])


def test_end_marker_listed_at_zero_is_accepted():
    tree = HuffmanTree([END_OF_TEXT, A], [0, 2])
    assert sorted(tree.leaves) == [END_OF_TEXT, A]


def test_empty_table_gives_lone_end_marker_leaf():
    tree = HuffmanTree([], [])
    assert tree.root.is_leaf
    assert tree.root.symbol == END_OF_TEXT
    assert tree.path_of(END_OF_TEXT) == ""


def test_lone_leaf_decode_consumes_no_bits():
    tree = HuffmanTree([A], [0])
    bits = iter([1, 0, 1])
    assert tree.decode(bits) == END_OF_TEXT
    assert list(bits) == [1, 0, 1]
    assert tree.decode(iter([])) == END_OF_TEXT


def test_encode_pushes_bits_in_order():
    sink = ListSink()
    abc_tree().encode(C, sink)
    assert sink.bits == [0, 0, 1]


def test_encode_missing_symbol_writes_nothing():
    sink = ListSink()
    with pytest.raises(SymbolNotFound) as excinfo:
        abc_tree().encode(ord('q'), sink)
    assert excinfo.value.symbol == ord('q')
    assert sink.bits == []


def test_search_missing_symbol():
    with pytest.raises(SymbolNotFound):
        abc_tree().search_path(ord("q"))


def test_search_path_matches_path_table():
    tree = HuffmanTree(list(range(1, 30)), [i % 7 + 1 for i in range(1, 30)])
    for symbol in tree.leaves:
        assert tree.search_path(symbol) == tree.path_of(symbol)


def test_empty_tree():
    tree = HuffmanTree.empty()
    assert tree.root is None
    assert tree.codes == {}
    assert len(tree) == 0
    assert tree.decode(iter([0, 1])) == INVALID_TREE
    with pytest.raises(SymbolNotFound):
        tree.path_of(END_OF_TEXT)
    with pytest.raises(SymbolNotFound):
        tree.search_path(END_OF_TEXT)


def test_round_trip_every_symbol():
    tree = HuffmanTree([A, B, C, ord('d')], [10, 1, 1, 3])
    for symbol in tree.leaves:
        sink = ListSink()
        tree.encode(symbol, sink)
        assert tree.decode(iter(sink.bits)) == symbol


def test_nonzero_bits_go_right():
    tree = abc_tree()
    assert tree.decode(iter([7])) == A
    assert tree.decode(iter([0, 2])) == B


def test_truncated_stream_raises_incomplete_code():
    tree = abc_tree()
    with pytest.raises(IncompleteCode) as excinfo:
        tree.decode(iter([0, 0]))
    assert excinfo.value.bits == "00"
    with pytest.raises(EOFError):
        tree.decode(iter([]))


def test_decode_consecutive_symbols_from_one_stream():
    tree = abc_tree()
    bits = iter([1, 0, 1, 0, 0, 1])
    assert [tree.decode(bits), tree.decode(bits), tree.decode(bits)] == [A, B, C]


def test_text_round_trip_through_bitstream():
    text = [ord(ch) for ch in "abracadabra"]
    symbols = sorted(set(text))
    tree = HuffmanTree(symbols, [text.count(s) for s in symbols])

    writer = BitWriter()
    tree.encode_text(text, writer)
    packed, pad_bits = writer.flush()
    assert tree.decode_text(BitReader(packed, pad_bits)) == text


def test_text_round_trip_with_search_encoder():
    text = [A, A, B, C, A]
    tree = abc_tree()
    sink = ListSink()
    for symbol in text + [END_OF_TEXT]:
        put_path(tree.search_path(symbol), sink)
    assert sink.bits[-3:] == [0, 0, 0]
    assert tree.decode_text(sink.bits) == text


def test_decode_text_without_end_marker_is_incomplete():
    tree = abc_tree()
    with pytest.raises(IncompleteCode):
        tree.decode_text([1, 1])


def test_decode_text_on_empty_tree():
    with pytest.raises(InvalidInput):
        HuffmanTree.empty().decode_text([])


def test_code_table_lists_leaves_left_to_right():
    assert abc_tree().code_table() == [(END_OF_TEXT, "000"), (C, "001"), (B, "01"), (A, "1")]


def test_print_code_table(capsys):
    abc_tree().print_code_table()
    out = capsys.readouterr().out.splitlines()
    assert out[1:-1] == ["EndOfText:000", "c:001", "b:01", "a:1"]


def test_print_code_table_empty_tree(capsys):
    HuffmanTree.empty().print_code_table()
    assert "the tree is still empty" in capsys.readouterr().out


def test_node_ordering_uses_frequency_then_symbol():
    assert Node(A, 1) < Node(B, 2)
    assert Node(A, 2) < Node(B, 2)
    assert Node.merge(Node(A, 1), Node(B, 1)) < Node(C, 2)
