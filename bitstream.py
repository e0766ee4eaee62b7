from typing import Iterator, Tuple


class BitWriter: # bit sink, packs bits MSB first
    def __init__(self):
        self.out = bytearray()
        self.acc = 0
        self.acc_bits = 0
        self.bits_written = 0

    def put_next(self, bit: int) -> None:
        self.acc = (self.acc << 1) | (1 if bit else 0)
        self.acc_bits += 1
        self.bits_written += 1
        if self.acc_bits == 8:
            self.out.append(self.acc & 0xFF)
            self.acc = 0
            self.acc_bits = 0

    def flush(self) -> Tuple[bytes, int]:
        """
        Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
        The writer can keep accepting bits afterwards only if pad_bits was 0
        """
        pad_bits = 0
        if self.acc_bits != 0:
            pad_bits = 8 - self.acc_bits
            self.out.append((self.acc << pad_bits) & 0xFF)
            self.acc = 0
            self.acc_bits = 0
        return bytes(self.out), pad_bits


class BitReader: # bit source, forward only
    def __init__(self, data: bytes, pad_bits: int = 0):
        if not 0 <= pad_bits < 8:
            raise ValueError(f"pad_bits must be in 0..7, got {pad_bits}")
        self.data = data
        self.total_bits = max(0, len(data) * 8 - pad_bits)
        self.i = 0

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        i = self.i
        if i >= self.total_bits:
            raise StopIteration
        self.i = i + 1
        return (self.data[i >> 3] >> (7 - (i & 7))) & 1

    def has_next(self) -> bool:
        return self.i < self.total_bits
