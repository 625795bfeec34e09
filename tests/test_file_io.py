import pandas as pd
import pytest

from complaint_classification.utils import file_io


def test_workspace_round_trip(tmp_path):
    path = tmp_path / "snap" / "workspace.joblib"
    frame = pd.DataFrame({"product": ["Mortgage"], "n": [3]})
    file_io.save_workspace({"counts": frame, "seed": 1234}, path)
    loaded = file_io.load_workspace(path)
    assert loaded["seed"] == 1234
    pd.testing.assert_frame_equal(loaded["counts"], frame)


def test_update_workspace_merges(tmp_path):
    path = tmp_path / "workspace.joblib"
    file_io.update_workspace(path, first=1)
    merged = file_io.update_workspace(path, second=2, first=10)
    assert merged == {"first": 10, "second": 2}
    assert file_io.load_workspace(path) == merged


def test_load_workspace_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        file_io.load_workspace(tmp_path / "nope.joblib")


def test_csv_and_json_helpers(tmp_path):
    frame = pd.DataFrame({"a": [1, 2]})
    file_io.write_csv(frame, tmp_path / "nested" / "a.csv")
    pd.testing.assert_frame_equal(file_io.read_csv(tmp_path / "nested" / "a.csv"), frame)
    file_io.write_json({"k": [1, 2]}, tmp_path / "a.json")
    assert file_io.read_json(tmp_path / "a.json") == {"k": [1, 2]}


def test_read_csv_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        file_io.read_csv(tmp_path / "missing.csv")
