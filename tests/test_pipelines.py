import pandas as pd

from complaint_classification import config, pipelines
from complaint_classification.utils import file_io

from conftest import SMALL_GRIDS


def test_run_all_end_to_end(project_dirs):
    results = pipelines.run_all(param_grids=SMALL_GRIDS, n_jobs=1)

    assert results is not None
    assert results["best_model_name"] in SMALL_GRIDS

    processed, out, figures = project_dirs["processed"], project_dirs["results"], project_dirs["figures"]
    for name in ("complaints_train.csv", "complaints_test_processed.csv"):
        assert (processed / name).exists()
    for name in (
        "product_counts.csv",
        "term_frequencies.csv",
        "classification_report.txt",
        "cv_metrics.csv",
        "holdout_metrics.csv",
        "confusion_matrix.csv",
        "variable_importance.csv",
        "test_predictions.csv",
        "test_predictions.json",
        "best_model.joblib",
    ):
        assert (out / name).exists(), name
    assert {p.name for p in figures.glob("*.png")} == {
        "product_counts.png",
        "top_terms.png",
        "variable_importance.png",
        "cv_metrics.png",
        "confusion_matrix.png",
    }

    predictions = pd.read_csv(out / "test_predictions.csv", dtype={"complaint_id": str})
    assert predictions["complaint_id"].tolist() == [str(i) for i in range(100, 108)]
    assert set(predictions["predicted_product"]) <= set(config.PRODUCTS)

    report = (out / "classification_report.txt").read_text(encoding="utf-8")
    assert f"Selected model: {results['best_model_name']}" in report

    workspace = file_io.load_workspace(config.WORKSPACE_FILE)
    assert {"complaints_train", "document_term_matrix", "final_model", "test_predictions"} <= set(workspace)
    assert workspace["document_term_matrix"].shape[0] == 48


def test_stages_resume_from_files(project_dirs):
    pipelines.run_data_loading()
    assert set(file_io.load_workspace(config.WORKSPACE_FILE)) == {"complaints_train", "complaints_test"}

    # classification needs the processed tables
    assert pipelines.run_classification(param_grids={"cart": {"clf__max_depth": [None]}}) is None

    pipelines.run_data_processing()
    results = pipelines.run_classification(param_grids={"cart": {"clf__max_depth": [None]}})
    assert results["best_model_name"] == "cart"
    assert "final_model" in file_io.load_workspace(config.WORKSPACE_FILE)


def test_stages_return_none_without_inputs(project_dirs, tmp_path, monkeypatch, caplog):
    empty = tmp_path / "no_extracts"
    empty.mkdir()
    monkeypatch.setattr(config, "RAW_DATA_DIR", empty)
    with caplog.at_level("ERROR"):
        assert pipelines.run_data_loading() is None
        assert pipelines.run_all(param_grids=SMALL_GRIDS, n_jobs=1) is None
    assert "Expected complaint extract not found" in caplog.text
    assert pipelines.run_data_processing() is None
    assert not config.WORKSPACE_FILE.exists()
