import numpy as np
import pandas as pd

from complaint_classification.analysis import visualizations


def test_individual_plots(tmp_path):
    products = pd.DataFrame({"product": ["Mortgage", "Mortgage", "Student loan"]})
    freqs = pd.DataFrame({
        "product": ["Mortgage", "Mortgage", "Student loan"],
        "term": ["escrow", "mortgag", "nan"],
        "n": [5, 9, 4],
    })
    importance = pd.DataFrame({"feature": ["term__escrow", "meta__state_CA"], "importance": [0.7, 0.1]})
    metrics = pd.DataFrame({
        "model": ["cart", "cart", "random_forest", "random_forest"],
        "metric": ["accuracy", "roc_auc", "accuracy", "roc_auc"],
        "mean": [0.8, 0.85, 0.9, 0.95],
    })
    paths = [
        visualizations.plot_product_counts(products, tmp_path / "counts.png"),
        visualizations.plot_top_terms(freqs, tmp_path / "terms.png"),
        visualizations.plot_variable_importance(importance, tmp_path / "vip.png"),
        visualizations.plot_confusion_matrix(np.array([[3, 1], [0, 4]]), ["Mortgage", "Student loan"], tmp_path / "cm.png"),
        visualizations.plot_cv_metrics(metrics, tmp_path / "cv.png"),
    ]
    for path in paths:
        assert path.exists()
        assert path.stat().st_size > 0


def test_generate_plots_skips_missing_inputs(tmp_path):
    written = visualizations.generate_plots(tmp_path / "results", tmp_path / "figures", processed_dir=tmp_path)
    assert written == []
    assert (tmp_path / "figures").is_dir()


def test_top_terms_skips_empty_table(tmp_path, caplog):
    results = tmp_path / "results"
    results.mkdir()
    (results / "term_frequencies.csv").write_text("product,term,n\n", encoding="utf-8")
    with caplog.at_level("WARNING"):
        written = visualizations.generate_plots(results, tmp_path / "figures")
    assert written == []
    assert not (tmp_path / "figures" / "top_terms.png").exists()
    assert "No term frequencies to plot" in caplog.text
