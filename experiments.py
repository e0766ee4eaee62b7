"""
Experiment driver: Huffman path table vs tree search encoding

Runs repeated experiments over synthetic symbol streams and records build,
encode and decode times, compressed size and the size of the serialized
frequency table for both encoder pipelines

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 16 --exp2_max_kb 64
  python experiments.py --outdir results --runs 5 --exp1_generators uniform256,zipf128,english_like
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import freq_codec
from bitstream import BitReader, BitWriter
from huffman import END_OF_TEXT, HuffmanTree, IncompleteCode, put_path
from letter_frequencies import LetterFrequencies

PIPELINES = ("path_table", "tree_search")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def table_fits(tree: HuffmanTree) -> bool:
    # serialized records only hold 16-bit frequencies
    return all(leaf.frequency <= freq_codec.MAX_VALUE for leaf in tree.leaves.values())

def mean_code_length(tree: HuffmanTree) -> float:
    total = sum(leaf.frequency for leaf in tree.leaves.values())
    if total == 0:
        return 0.0
    return sum(leaf.frequency * len(tree.path_of(s)) for s, leaf in tree.leaves.items()) / total


# Synthetic dataset generators
# Symbols start at 1, symbol 0 is the end-marker

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> List[int]:
    rng = random.Random(seed)
    return [rng.randrange(1, alphabet + 1) for _ in range(size)]

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> List[int]:
    rng = random.Random(seed)
    other_symbols = [i for i in range(1, 257) if i != dominant]
    return [dominant if rng.random() < dom_frac else rng.choice(other_symbols) for _ in range(size)]

def _sample_cdf(rng: random.Random, weights: Sequence[float], symbols: Sequence[int], size: int) -> List[int]:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    out = []
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        out.append(symbols[lo])
    return out

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> List[int]:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample_cdf(rng, weights, range(1, alphabet + 1), size)

def gen_english_like(size: int, seed: int = 0) -> List[int]:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        "\n"
    )
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample_cdf(rng, weights, [ord(ch) for ch in chars], size)

def gen_wide(size: int, alphabet: int = 4096, seed: int = 0) -> List[int]:
    # spread over the 16-bit range, like CJK text
    rng = random.Random(seed)
    base = 0x4E00
    weights = [1.0 / (i + 1) for i in range(alphabet)]
    return _sample_cdf(rng, weights, range(base, base + alphabet), size)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], List[int]]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "wide4096": lambda size, seed: gen_wide(size, alphabet=4096, seed=seed),
}

def generate_dataset(name: str, size: int, seed: int) -> List[int]:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    input_symbols: int
    run_id: int
    pipeline: str  # "path_table" or "tree_search"
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bits: int
    compressed_bytes: int
    pad_bits: int
    table_bytes: int
    mean_code_length: float

    table_roundtrip_ok: int  # 1, 0, or -1 when frequencies exceed 16 bits
    correctness_ok: int  # 1 or 0


def run_one(data: List[int], pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {PIPELINES}")
    lf = LetterFrequencies(data)

    # build
    t0 = now_ns()
    tree = HuffmanTree(lf.letters, lf.frequencies)
    t1 = now_ns()
    build_ms = ns_to_ms(t1 - t0)

    # frequency table, decoder side rebuilds its own tree from it
    table_bytes = len(tree.leaves) * freq_codec.RECORD.size
    decoder_tree = tree
    table_roundtrip_ok = -1
    if table_fits(tree):
        table = freq_codec.serialize(tree)
        decoder_tree = freq_codec.tree_from_bytes(table)
        table_roundtrip_ok = 1 if decoder_tree.codes == tree.codes else 0

    # encode
    t2 = now_ns()
    writer = BitWriter()
    if pipeline == "tree_search":
        for symbol in data + [END_OF_TEXT]:
            put_path(tree.search_path(symbol), writer)
    else:
        tree.encode_text(data, writer)
    compressed_bits = writer.bits_written
    packed, pad_bits = writer.flush()
    t3 = now_ns()
    encode_ms = ns_to_ms(t3 - t2)

    # decode
    t4 = now_ns()
    try:
        decoded = decoder_tree.decode_text(BitReader(packed, pad_bits))
    except IncompleteCode:
        decoded = None
    t5 = now_ns()
    decode_ms = ns_to_ms(t5 - t4)

    return MetricRow(
        exp_name="",
        dataset_name="",
        input_symbols=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(lf.letters),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        compressed_bits=compressed_bits,
        compressed_bytes=len(packed),
        pad_bits=pad_bits,
        table_bytes=table_bytes,
        mean_code_length=mean_code_length(tree),
        table_roundtrip_ok=table_roundtrip_ok,
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


SUMMARY_METRICS = ("build_ms", "encode_ms", "decode_ms", "total_ms", "compressed_bytes", "mean_code_length")

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, input_symbols, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.input_symbols, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "input_symbols", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "input_symbols": size,
                "pipeline": pipeline,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def _line_chart(x, series: Dict[str, List[float]], xlabel: str, ylabel: str, title: str, out: Path,
                xticklabels=None) -> None:
    plt.figure()
    for label, y in series.items():
        plt.plot(x, y, marker="o", label=label)
    if xticklabels is not None:
        plt.xticks(x, xticklabels, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    if len(series) > 1:
        plt.legend()
    plt.tight_layout()
    plt.savefig(out, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))
    _line_chart(x, {"huffman": [mean_for(d, "path_table", "mean_code_length") for d in datasets]},
                "", "Bits per Symbol", "Experiment 1: Mean Code Length by Distribution",
                outdir / "exp1_code_length.png", xticklabels=datasets)
    _line_chart(x, {p: [mean_for(d, p, "encode_ms") for d in datasets] for p in PIPELINES},
                "", "Encode Time (ms)", "Experiment 1: Encode Time by Distribution",
                outdir / "exp1_encode_time.png", xticklabels=datasets)
    _line_chart(x, {p: [mean_for(d, p, "total_ms") for d in datasets] for p in PIPELINES},
                "", "Total Time (ms) (build + encode + decode)", "Experiment 1: Total Runtime by Distribution",
                outdir / "exp1_total_time.png", xticklabels=datasets)


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.input_symbols for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.input_symbols == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        _line_chart(sizes, {p: [mean_size(s, p, "encode_ms") for s in sizes] for p in PIPELINES},
                    "Input Size (symbols)", "Encode Time (ms)", f"Experiment 2: Encode Time vs Size ({dist})",
                    outdir / f"exp2_encode_time_{dist}.png")
        _line_chart(sizes, {p: [mean_size(s, p, "decode_ms") for s in sizes] for p in PIPELINES},
                    "Input Size (symbols)", "Decode Time (ms)", f"Experiment 2: Decode Time vs Size ({dist})",
                    outdir / f"exp2_decode_time_{dist}.png")
        _line_chart(sizes, {"huffman": [mean_size(s, "path_table", "compressed_bytes") / max(1, s) for s in sizes]},
                    "Input Size (symbols)", "Compressed Bytes per Symbol",
                    f"Experiment 2: Compressed Size vs Size ({dist})",
                    outdir / f"exp2_compressed_size_{dist}.png")


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Benchmark Huffman path table vs tree search encoding")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=32, help="Experiment 1 input size in K symbols")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like,wide4096",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=1, help="Experiment 2 min size in K symbols (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=64, help="Experiment 2 max size in K symbols (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap

def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                data = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                for pipeline in PIPELINES:
                    row = run_one(data, pipeline)
                    row.exp_name = "exp1_distribution"
                    row.dataset_name = gen_name
                    row.run_id = run_id
                    rows.append(row)

    # Experiment 2: size scaling (multiple sizes, powers of 2)
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.exp2_min_kb) * 1024
        while s <= max(1, args.exp2_max_kb) * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size in sizes:
                for run_id in range(1, args.runs + 1):
                    data = generate_dataset(gen_name, size, args.seed + 10_000 + size + run_id)
                    for pipeline in PIPELINES:
                        row = run_one(data, pipeline)
                        row.exp_name = "exp2_size_scaling"
                        row.dataset_name = gen_name
                        row.run_id = run_id
                        rows.append(row)
    return rows

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows = run_experiments(args)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
