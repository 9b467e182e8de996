import json

import numpy as np
import pytest

from mbreaction.io.cuts import CutRegion, load_cut


@pytest.fixture
def cut_file(tmp_path):
    p = tmp_path / "cuts.json"
    p.write_text(json.dumps({
        "beam": {"x": [0.0, 4.0, 4.0, 0.0], "y": [0.0, 0.0, 2.0, 2.0]},
        "tri": {"x": [0.0, 10.0, 0.0], "y": [0.0, 0.0, 10.0]},
    }))
    return p


def test_contains(cut_file):
    cut = load_cut(cut_file, "tri")
    assert cut.name == "tri"
    assert cut.n_points == 3
    assert cut.contains(1.0, 1.0)
    assert not cut.contains(6.0, 6.0)
    np.testing.assert_array_equal(
        cut.contains_points([1.0, 6.0, 2.0], [1.0, 6.0, 7.0]), [True, False, True]
    )


def test_missing_name(cut_file):
    with pytest.raises(KeyError):
        load_cut(cut_file, "target")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_cut(tmp_path / "nope.json", "beam")


def test_unsupported_suffix(tmp_path):
    p = tmp_path / "cuts.txt"
    p.write_text("0 0\n1 0\n1 1\n")
    with pytest.raises(ValueError):
        load_cut(p, "beam")


def test_degenerate_polygon():
    with pytest.raises(ValueError):
        CutRegion("line", [0.0, 1.0], [0.0, 1.0])
    with pytest.raises(ValueError):
        CutRegion("ragged", [0.0, 1.0, 2.0], [0.0, 1.0])


def test_root_cut_needs_name(tmp_path):
    uproot = pytest.importorskip("uproot")
    p = tmp_path / "cuts.root"
    with uproot.recreate(p) as f:
        f["other"] = "not a cut"
    with pytest.raises(KeyError):
        load_cut(p, "beam")
