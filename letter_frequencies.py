from typing import Dict, Iterable, List, Union

from huffman import END_OF_TEXT, InvalidInput


class LetterFrequencies:
    """
    Counts how often each symbol occurs

    Text is counted by code point. letters keeps the order in which symbols were
    first seen and frequencies is parallel to it, which is the shape
    HuffmanTree(symbols, frequencies) takes.
    """

    def __init__(self, source: Union[str, Iterable[int]] = ()):
        self.letters: List[int] = []
        self.frequencies: List[int] = []
        self._index: Dict[int, int] = {}
        self.update(source)

    def update(self, source: Union[str, Iterable[int]]) -> None:
        symbols = (ord(ch) for ch in source) if isinstance(source, str) else source
        for symbol in symbols:
            if symbol == END_OF_TEXT:
                raise InvalidInput(f"symbol {END_OF_TEXT} is reserved for the end-marker")
            i = self._index.get(symbol)
            if i is None:
                self._index[symbol] = len(self.letters)
                self.letters.append(symbol)
                self.frequencies.append(1)
            else:
                self.frequencies[i] += 1

    def get_frequency(self, symbol: int) -> int:
        i = self._index.get(symbol)
        return 0 if i is None else self.frequencies[i]

    def total(self) -> int:
        return sum(self.frequencies)

    def as_dict(self) -> Dict[int, int]:
        return dict(zip(self.letters, self.frequencies))
