import heapq
import logging
from itertools import count

logger = logging.getLogger(__name__)

END_OF_TEXT = 0 # reserved symbol marking the end of encoded content
INTERNAL_SYMBOL = -1 # placeholder symbol for internal nodes, outside the alphabet
INVALID_TREE = 0x7FFFFFFF # returned by decode on a tree with no root
MAX_SYMBOL = 0xFFFF


class HuffmanError(Exception):
    pass


class InvalidInput(HuffmanError, ValueError):
    pass


class SymbolNotFound(HuffmanError, KeyError):
    def __init__(self, symbol):
        super().__init__(symbol)
        self.symbol = symbol

    def __str__(self):
        return f"symbol {self.symbol!r} is not in the Huffman tree"


class IncompleteCode(HuffmanError, EOFError):
    """
    Raised when the bit source runs out before a leaf is reached
    `bits` holds the partial path that was consumed
    """
    def __init__(self, bits):
        super().__init__(f"bit stream ended after partial code {bits!r}")
        self.bits = bits


class Node: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # meaningful only at leaves
        self.frequency = frequency
        self.left = left
        self.right = right

    @classmethod
    def merge(cls, left, right):
        return cls(INTERNAL_SYMBOL, left.frequency + right.frequency, left, right)

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    @property
    def sort_key(self):
        return (self.frequency, self.symbol)

    def __lt__(self, other):
        return self.sort_key < other.sort_key

    def __repr__(self):
        if self.is_leaf:
            return f"Node(symbol={self.symbol!r}, frequency={self.frequency})"
        return f"Node(frequency={self.frequency})"


def _check_table(symbols, frequencies):
    if len(symbols) != len(frequencies):
        raise InvalidInput(f"{len(symbols)} symbols but {len(frequencies)} frequencies")
    seen = set()
    for symbol, frequency in zip(symbols, frequencies):
        if frequency < 0:
            raise InvalidInput(f"negative frequency {frequency} for symbol {symbol!r}")
        if frequency == 0:
            continue
        if symbol == END_OF_TEXT:
            raise InvalidInput(f"symbol {END_OF_TEXT} is reserved for the end-marker")
        if isinstance(symbol, bool) or not isinstance(symbol, int) or not 1 <= symbol <= MAX_SYMBOL:
            raise InvalidInput(f"symbol {symbol!r} is not an integer in 1..{MAX_SYMBOL}")
        if symbol in seen:
            raise InvalidInput(f"symbol {symbol!r} listed more than once")
        seen.add(symbol)


def build_huffman_tree(symbols, frequencies): # symbols and frequencies: parallel sequences
    """
    Greedy Huffman merge over (frequency, symbol) keys
    Returns (root, leaves) where leaves maps every symbol, end-marker included, to its leaf
    """
    _check_table(symbols, frequencies)

    # the counter only orders internal nodes that tie on (frequency, symbol)
    tie = count()
    leaves = {}
    priority_queue = []
    for symbol, frequency in zip(symbols, frequencies):
        if frequency > 0:
            node = Node(symbol, frequency)
            leaves[symbol] = node
            priority_queue.append((node.sort_key, next(tie), node))

    end_marker = Node(END_OF_TEXT, 0)
    leaves[END_OF_TEXT] = end_marker
    priority_queue.append((end_marker.sort_key, next(tie), end_marker))
    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        _, _, e1 = heapq.heappop(priority_queue)
        _, _, e2 = heapq.heappop(priority_queue)
        merged = Node.merge(e1, e2)
        heapq.heappush(priority_queue, (merged.sort_key, next(tie), merged))

    root = priority_queue[0][2]
    logger.debug("built Huffman tree: %d leaves, total frequency %d", len(leaves), root.frequency)
    return root, leaves


class HuffmanTree:
    """
    Static Huffman tree over integer symbols

    Encoding pushes bits into a sink with a put_next(bit) method, decoding reads
    bits from an iterator. The tree is not modified after construction, so one
    instance can serve any number of encode/decode calls.
    """

    def __init__(self, symbols=(), frequencies=()):
        self._attach(*build_huffman_tree(list(symbols), list(frequencies)))

    def _attach(self, root, leaves):
        self.root = root
        self.leaves = leaves
        self.codes = generate_huffman_codes(root)

    @classmethod
    def _from_root(cls, root, leaves):
        tree = cls.__new__(cls)
        tree._attach(root, leaves)
        return tree

    @classmethod
    def from_frequency_table(cls, frequency_table): # frequency_table: dict of symbol -> frequency
        symbols = list(frequency_table.keys())
        return cls(symbols, [frequency_table[s] for s in symbols])

    @classmethod
    def empty(cls):
        return cls._from_root(None, {})

    def __contains__(self, symbol):
        return symbol in self.codes

    def __len__(self):
        return len(self.leaves)

    def frequency_of(self, symbol) -> int:
        leaf = self.leaves.get(symbol)
        if leaf is None:
            raise SymbolNotFound(symbol)
        return leaf.frequency

    # Encoding

    def path_of(self, symbol) -> str:
        try:
            return self.codes[symbol]
        except KeyError:
            raise SymbolNotFound(symbol) from None

    def search_path(self, symbol) -> str:
        # Same result as path_of, found by walking the whole tree
        def search(node, path):
            if node.is_leaf:
                return path if node.symbol == symbol else None
            found = search(node.left, path + "0")
            if found is None:
                found = search(node.right, path + "1")
            return found

        path = search(self.root, "") if self.root is not None else None
        if path is None:
            raise SymbolNotFound(symbol)
        return path

    def encode(self, symbol, sink):
        put_path(self.path_of(symbol), sink)

    def encode_text(self, symbols, sink):
        """Encode every symbol followed by the end-marker"""
        for symbol in symbols:
            self.encode(symbol, sink)
        self.encode(END_OF_TEXT, sink)

    # Decoding

    def decode(self, bits) -> int:
        """
        Decode one symbol from an iterator of bits

        Returns INVALID_TREE when the tree has no root. Raises IncompleteCode if
        the bits run out on an internal node. Pass an iterator, not a list, when
        decoding several symbols from the same stream.
        """
        if self.root is None:
            return INVALID_TREE
        bits = iter(bits)
        node = self.root
        consumed = []
        while not node.is_leaf:
            bit = next(bits, None)
            if bit is None:
                raise IncompleteCode("".join(consumed))
            if bit == 0:
                node = node.left
                consumed.append("0")
            else:
                node = node.right
                consumed.append("1")
        return node.symbol

    def decode_text(self, bits) -> list:
        """Decode symbols until the end-marker, which is not included in the result"""
        if self.root is None:
            raise InvalidInput("cannot decode with an empty tree")
        bits = iter(bits)
        decoded = []
        while True:
            symbol = self.decode(bits)
            if symbol == END_OF_TEXT:
                return decoded
            decoded.append(symbol)

    # Listing

    def code_table(self):
        return list(self.codes.items())

    def print_code_table(self):
        print("**** Huffman Tree: Character Codes ****")
        if self.root is None:
            print("No character codes: the tree is still empty")
        for symbol, code in self.code_table():
            if symbol == END_OF_TEXT:
                print(f"EndOfText:{code}")
            else:
                print(f"{_label(symbol)}:{code}")
        print("***************************************")


def put_path(path, sink): # path: string of '0'/'1', pushed into the sink one bit at a time
    for bit in path:
        sink.put_next(1 if bit == "1" else 0)


def _label(symbol):
    try:
        return chr(symbol)
    except (TypeError, ValueError):
        return repr(symbol)


def generate_huffman_codes(root): # root: root of the Huffman tree
    codes = {} # dicts keep insertion order, so codes list leaves left to right
    def generate_codes_helper(node, current_code): # pre-order walk, left before right
        if node is None:
            return

        # Leaf node -> assign code
        if node.is_leaf:
            codes[node.symbol] = current_code
            return

        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    logger.debug("generated %d Huffman codes", len(codes))
    return codes # return the mapping of symbols to their corresponding Huffman codes
