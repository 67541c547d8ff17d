import argparse

import pytest

from pigmix.__main__ import build_parser, main, parse_color
from pigmix.core.color_science import LabColor
from pigmix.evaluation.dataset_io import read_training_set


def test_parse_color_accepts_lab_and_hex():
    assert parse_color("52.4,61.3,44.5") == LabColor(52.4, 61.3, 44.5)
    assert parse_color("#000000") == LabColor.from_hex("#000000")


def test_parse_color_rejects_garbage():
    with pytest.raises(argparse.ArgumentTypeError):
        parse_color("1,2")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_color("#zzzzzz")


def test_unknown_optimizer_rejected_by_parser():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["predict", "#FF0000", "--optimizer", "BFGS"])


def test_dataset_command(tmp_path, capsys):
    output = tmp_path / "training.csv"
    assert main(["dataset", str(output), "--mode", "random", "--max-items", "5", "--seed", "1"]) == 0
    assert len(read_training_set(output)) == 5
    assert "Wrote 5 items" in capsys.readouterr().out


def test_samples_command(tmp_path, capsys):
    training = tmp_path / "training.csv"
    results = tmp_path / "results.csv"
    main(["dataset", str(training), "--mode", "random", "--max-items", "2", "--seed", "1"])
    code = main(["samples", str(training), str(results), "--optimizer", "Nelder-Mead",
                 "--params", '{"max_evaluations": 50}'])
    assert code == 0
    assert results.exists()
    assert "2 samples" in capsys.readouterr().out


def test_missing_training_file_is_reported(tmp_path, capsys):
    code = main(["samples", str(tmp_path / "nope.csv"), str(tmp_path / "out.csv")])
    assert code == 1
    assert "Error" in capsys.readouterr().err


def test_unknown_palette_is_reported(capsys):
    assert main(["--palette", "no-such-palette", "predict", "#FF0000"]) == 1
    assert "Unknown palette" in capsys.readouterr().err
