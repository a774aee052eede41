"""
Benchmark harness for the Huffman coder

Encodes synthetic datasets, decodes them again with either the code-table
decoder or the tree-walk decoder, and records timing and compression metrics

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 64 --exp2_max_kb 512
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,single_symbol --no_exp2
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import matplotlib.pyplot as plt

import huffman as huff
from bitpack import pack_bits, unpack_bits

PIPELINES = ("table", "tree")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def shannon_entropy(ft: Dict[int, int]) -> float:
    # lower bound on average bits per symbol for this frequency table
    total = sum(ft.values())
    if total == 0:
        return 0.0
    return -sum((f / total) * math.log2(f / total) for f in ft.values())


# Synthetic dataset generators

def _sample_cdf(rng: random.Random, cdf: List[float]) -> int:
    r = rng.random()
    lo, hi = 0, len(cdf) - 1
    while lo < hi:
        mid = (lo + hi) // 2
        if r <= cdf[mid]:
            hi = mid
        else:
            lo = mid + 1
    return lo

def _cdf(weights: List[float]) -> List[float]:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)
    cdf[-1] = 1.0 # guard against float drift
    return cdf

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    other_symbols = [i for i in range(256) if i != dominant]
    return bytes(dominant if rng.random() < dom_frac else rng.choice(other_symbols) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    cdf = _cdf([1.0 / ((i + 1) ** s) for i in range(alphabet)])
    return bytes(_sample_cdf(rng, cdf) for _ in range(size))

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
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
    cdf = _cdf(weights)
    return bytes(ord(chars[_sample_cdf(rng, cdf)]) for _ in range(size))

def gen_single_symbol(size: int, symbol: int = ord('A')) -> bytes:
    return bytes([symbol]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    """
    Unknown dataset names fall back to uniform256; the returned name says so
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_uniform256", gen_uniform(size_bytes, alphabet=256, seed=seed)
    return name, fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "table" or "tree"
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bytes: int
    pad_bits: int
    compression_ratio: float
    avg_code_length: float
    entropy_bits: float

    correctness_ok: int  # 1 or 0


def run_one(data: bytes, pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {PIPELINES}, got {pipeline!r}")

    # build: frequencies -> tree -> codes
    t0 = now_ns()
    ft = huff.count_frequencies(data)
    root = huff.build_huffman_tree(ft)
    code_map = huff.generate_huffman_codes(root)
    t1 = now_ns()

    # encode: codes -> bit string -> packed bytes
    packed, pad_bits = pack_bits(huff.encode_with_codes(data, code_map))
    t2 = now_ns()

    # decode: packed bytes -> bit string -> symbols
    bits = unpack_bits(packed, pad_bits)
    if pipeline == "table":
        decoded = huff.huffman_decode(bits, code_map)
    else:
        decoded = huff.decode_with_tree(bits, root)
    t3 = now_ns()

    build_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    decode_ms = ns_to_ms(t3 - t2)

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(ft),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        compressed_bytes=len(packed),
        pad_bits=pad_bits,
        compression_ratio=len(packed) / max(1, len(data)),
        avg_code_length=huff.average_code_length(code_map, ft),
        entropy_bits=shannon_entropy(ft),
        correctness_ok=1 if bytes(decoded) == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = ("compression_ratio", "avg_code_length", "build_ms", "encode_ms", "decode_ms", "total_ms")

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs", "entropy_bits"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
                "entropy_bits": statistics.mean(x.entropy_bits for x in items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(out)


# Plotting

def _mean_of(rows: List[MetricRow], field: str, **match) -> float:
    vals = [getattr(r, field) for r in rows if all(getattr(r, k) == v for k, v in match.items())]
    return statistics.mean(vals) if vals else float("nan")

def _line_chart(x, series: Dict[str, List[float]], path: Path, title: str, ylabel: str,
                xticks: Optional[List[str]] = None, xlabel: Optional[str] = None) -> None:
    plt.figure()
    for label, y in series.items():
        plt.plot(x, y, marker="o", label=label)
    if xticks is not None:
        plt.xticks(x, xticks, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    ratio = {"huffman": [_mean_of(exp_rows, "compression_ratio", dataset_name=d, pipeline="table") for d in datasets]}
    _line_chart(x, ratio, outdir / "exp1_compression_ratio.png",
                "Experiment 1: Compression Ratio by Distribution", "Compressed Bytes / Original Bytes", datasets)

    decode = {p: [_mean_of(exp_rows, "decode_ms", dataset_name=d, pipeline=p) for d in datasets] for p in PIPELINES}
    _line_chart(x, decode, outdir / "exp1_decode_time.png",
                "Experiment 1: Decode Time by Distribution", "Decode Time (ms)", datasets)

    # how close the prefix code gets to the entropy bound
    bits = {
        "avg code length": [_mean_of(exp_rows, "avg_code_length", dataset_name=d, pipeline="table") for d in datasets],
        "entropy": [_mean_of(exp_rows, "entropy_bits", dataset_name=d, pipeline="table") for d in datasets],
    }
    _line_chart(x, bits, outdir / "exp1_code_length_vs_entropy.png",
                "Experiment 1: Bits per Symbol", "Bits per Symbol", datasets)


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        for field, ylabel in (("encode_ms", "Encode Time (ms)"),
                              ("decode_ms", "Decode Time (ms)"),
                              ("total_ms", "Total Time (ms) (build + encode + decode)")):
            series = {p: [_mean_of(dist_rows, field, file_size_bytes=s, pipeline=p) for s in sizes] for p in PIPELINES}
            _line_chart(sizes, series, outdir / f"exp2_{field}_{dist}.png",
                        f"Experiment 2: {ylabel} vs Size ({dist})", ylabel, xlabel="File Size (bytes)")


def plot_experiment_3(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp3_decoder_compare"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))
    series = {p: [_mean_of(exp_rows, "total_ms", dataset_name=d, pipeline=p) for d in datasets] for p in PIPELINES}
    _line_chart(x, series, outdir / "exp3_total_time.png",
                "Experiment 3: End-to-End Time by Dataset", "Total Time (ms) (build + encode + decode)", datasets)


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Benchmark the Huffman coder on synthetic data")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_exp3", action="store_true", help="Disable experiment 3 (decoder compare)")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=64, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str,
                    default="uniform256,zipf128,repetitive90,english_like,single_symbol",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=256, help="Experiment 2 max size in KB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    def run_all(exp_name: str, dataset_name: str, data: bytes, run_id: int) -> None:
        for pipeline in PIPELINES:
            row = run_one(data, pipeline)
            row.exp_name = exp_name
            row.dataset_name = dataset_name
            row.run_id = run_id
            rows.append(row)

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                run_all("exp1_distribution", dataset_name, data, run_id)
        print(f"Experiment 1 done ({len(rows)} rows)")

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.exp2_min_kb) * 1024
        while s <= max(1, args.exp2_max_kb) * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id)
                    run_all("exp2_size_scaling", dataset_name, data, run_id)
        print(f"Experiment 2 done ({len(rows)} rows)")

    # Experiment 3: table decoder vs tree decoder on mixed data
    if not args.no_exp3:
        size_b = max(1, args.exp1_size_kb) * 1024
        for gen_name in ("english_like", "uniform256", "zipf64", "repetitive99"):
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 200_000 + run_id)
                run_all("exp3_decoder_compare", f"{dataset_name}_{size_b // 1024}kb", data, run_id)
        print(f"Experiment 3 done ({len(rows)} rows)")

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)
        plot_experiment_3(rows, outdir)
        print("Charts saved in:", outdir.resolve())

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
