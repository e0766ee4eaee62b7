import csv

import pytest

import experiments


@pytest.mark.parametrize("name", sorted(experiments.GENERATOR_REGISTRY))
def test_generators_avoid_end_marker(name):
    data = experiments.generate_dataset(name, 500, seed=1)
    assert len(data) == 500
    assert all(1 <= s <= 0xFFFF for s in data)


def test_unknown_generator():
    with pytest.raises(ValueError):
        experiments.generate_dataset("nope", 10, seed=1)


@pytest.mark.parametrize("pipeline", experiments.PIPELINES)
def test_run_one_round_trips(pipeline):
    data = experiments.generate_dataset("english_like", 2000, seed=3)
    row = experiments.run_one(data, pipeline)
    assert row.correctness_ok == 1
    assert row.table_roundtrip_ok == 1
    assert row.table_bytes == 4 * (row.unique_symbols + 1)
    assert row.compressed_bytes * 8 - row.pad_bits == row.compressed_bits
    assert row.mean_code_length > 0


def test_pipelines_produce_identical_output():
    data = experiments.generate_dataset("zipf64", 1000, seed=5)
    a = experiments.run_one(data, "path_table")
    b = experiments.run_one(data, "tree_search")
    assert a.compressed_bits == b.compressed_bits


def test_run_one_rejects_unknown_pipeline():
    with pytest.raises(ValueError):
        experiments.run_one([1, 2], "huffman+obst")


def test_main_writes_csv(tmp_path):
    rc = experiments.main([
        "--outdir", str(tmp_path), "--runs", "1", "--no_plots",
        "--exp1_size_kb", "1", "--exp1_generators", "zipf64",
        "--exp2_min_kb", "1", "--exp2_max_kb", "2", "--exp2_generators", "uniform128",
    ])
    assert rc == 0
    with (tmp_path / "metrics.csv").open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    # exp1: 1 dataset, exp2: 2 sizes, each with both pipelines
    assert len(rows) == 6
    assert all(r["correctness_ok"] == "1" for r in rows)
    with (tmp_path / "summary.csv").open(newline="", encoding="utf-8") as f:
        assert len(list(csv.DictReader(f))) == 6


def test_main_writes_charts(tmp_path):
    experiments.main([
        "--outdir", str(tmp_path), "--runs", "1", "--no_exp2",
        "--exp1_size_kb", "1", "--exp1_generators", "uniform128,zipf64",
    ])
    assert (tmp_path / "exp1_encode_time.png").exists()
    assert (tmp_path / "exp1_code_length.png").exists()
