import numpy as np
import pytest

from instance_dna import ErrorType, Instance, InstanceFormatError, UNREACHABLE, parse_filename
from solution_dna import output_length

CYCLE_WEIGHTS = [
    [UNREACHABLE, 1, 2, 3, 4],
    [4, UNREACHABLE, 1, 2, 3],
    [4, 4, UNREACHABLE, 1, 2],
    [3, 3, 3, UNREACHABLE, 1],
    [4, 4, 2, 3, UNREACHABLE],
    [4, 4, 4, 4, 4],
]


@pytest.mark.parametrize("name, expected", [
    ("9.200-40", (200, ErrorType.NEGATIVE_RANDOM, 40)),
    ("10.500-8", (500, ErrorType.NEGATIVE_REPEAT, 8)),
    ("18.200+80", (200, ErrorType.POSITIVE_RANDOM, 80)),
    ("35.200+8", (200, ErrorType.POSITIVE_WRONG_ENDING, 8)),
    ("53.500+20.txt", (500, ErrorType.POSITIVE_WRONG_ENDING, 20)),
])
def test_parse_filename(name, expected):
    assert parse_filename(name) == expected


@pytest.mark.parametrize("name", ["instance.txt", "noext", "1.abc-3", "2.10+x"])
def test_parse_filename_rejects_unexpected_names(name):
    with pytest.raises(InstanceFormatError):
        parse_filename(name)


def test_overlap_weights(cycle_instance):
    assert cycle_instance.weights.shape == (6, 5)
    assert cycle_instance.weights.tolist() == CYCLE_WEIGHTS
    assert cycle_instance.start == 5
    assert cycle_instance.adj_matrix.shape == (5, 5)
    assert cycle_instance.weight(3, 4) == 1


def test_weights_are_read_only(cycle_instance):
    with pytest.raises(ValueError):
        cycle_instance.weights[0, 1] = 7


def test_output_assembly(cycle_instance):
    chain = [0, 1, 2, 3, 4]
    assert cycle_instance.output(chain) == "AAACGTAC"
    assert cycle_instance.output_length(chain) == 8
    assert cycle_instance.output([4, 0]) == "GTACAAAC"
    assert cycle_instance.output([]) == ""


def test_output_length_matches_assembled_string(random_instance):
    rng = np.random.default_rng(1)
    for _ in range(10):
        chain = list(rng.permutation(random_instance.size)[:12])
        assert len(random_instance.output(chain)) == output_length(chain, random_instance)


def test_unequal_lengths_rejected():
    with pytest.raises(InstanceFormatError):
        Instance(["ACGT", "ACG"], n=10)


def test_empty_instance():
    instance = Instance([], n=10)
    assert instance.size == 0
    assert instance.weights.shape == (1, 0)


def test_from_file(tmp_path):
    path = tmp_path / "53.10-2"
    path.write_text("ACGT\nCGTA\n\nGTAC\nTACG\n")
    instance = Instance.from_file(str(path))
    assert instance.name == "53.10-2"
    assert instance.size == 4
    assert instance.l == 4
    assert instance.s == 10
    assert instance.n == 13
    assert instance.error_type is ErrorType.NEGATIVE_REPEAT
    assert instance.best_solution_size == 8


def test_from_file_positive_errors(tmp_path):
    path = tmp_path / "1.6+80"
    path.write_text("ACGT\nCGTA\n")
    instance = Instance.from_file(str(path))
    assert instance.error_type is ErrorType.POSITIVE_RANDOM
    assert instance.best_solution_size == 6


def test_from_file_rejects_empty_file(tmp_path):
    path = tmp_path / "1.6+2"
    path.write_text("\n\n")
    with pytest.raises(InstanceFormatError):
        Instance.from_file(str(path))
