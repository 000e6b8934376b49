import csv

import pytest

from evaluation_dna import DNAEvaluation, load_instances, main
from sequencers_dna import AntColonySequencer, ReferenceSequencer
from aco_dna import ACOParameters

from conftest import CYCLE_FRAGMENTS

# 4-mers of ACGTTGCAAT plus one wrong ending
OTHER_FRAGMENTS = ["ACGT", "CGTT", "GTTG", "TTGC", "TGCA", "GCAA", "CAAT", "ACGA"]


@pytest.fixture
def instance_dir(tmp_path):
    (tmp_path / "cycle.5-0").write_text("\n".join(CYCLE_FRAGMENTS) + "\n")
    (tmp_path / "other.7+1").write_text("\n".join(OTHER_FRAGMENTS) + "\n")
    (tmp_path / "broken.txt").write_text("ACGT\nCGTA\n")
    return tmp_path


def test_load_instances_skips_broken_files(instance_dir, capsys):
    paths = [str(instance_dir / name) for name in ["other.7+1", "broken.txt", "cycle.5-0", "missing.3-1"]]
    instances = load_instances(paths, num_threads=3)
    assert [instance.name for instance in instances] == ["other.7+1", "cycle.5-0"]
    assert instances[0].n == 10
    assert instances[0].size == 8
    out = capsys.readouterr().out
    assert "Skipping" in out and "broken.txt" in out and "missing.3-1" in out


def test_evaluation_writes_csv(instance_dir, tmp_path_factory):
    output = tmp_path_factory.mktemp("out") / "results.csv"
    sequencers = [ReferenceSequencer(), AntColonySequencer(ACOParameters(iterations=10, ants=5), seed=0)]
    evaluation = DNAEvaluation(sequencers, instance_dir=str(instance_dir), num_threads=2,
                               output_csv_path=str(output))
    results = evaluation.evaluate()

    assert [row['instance_name'] for row in results] == ["cycle.5-0", "other.7+1"]
    assert results[0]["Reference Sequencer_used"] == 5
    assert results[1]["Reference Sequencer_used"] == 7

    with open(output, newline='') as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 2
    assert "Ant Colony Sequencer_accuracy" in rows[0]
    assert 0.0 < float(rows[0]["Ant Colony Sequencer_accuracy"]) <= 1.0


def test_evaluation_requires_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        DNAEvaluation([ReferenceSequencer()], instance_dir=str(tmp_path / "nope"))


def test_main(instance_dir, tmp_path_factory, capsys):
    output = tmp_path_factory.mktemp("cli") / "cli.csv"
    code = main([str(instance_dir), "-o", str(output), "-i", "5", "-a", "4", "--seed", "1",
                 "--tabu-iterations", "5", "--compare"])
    assert code == 0
    assert output.exists()
    assert "RUNNING COMPARISON BETWEEN" in capsys.readouterr().out
