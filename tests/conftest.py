from __future__ import annotations

import pandas as pd
import pytest

from complaint_classification import config

PRODUCT_SENTENCES = {
    "Credit card or prepaid card": [
        "I was charged incorrectly on my credit card statement of {$94.05}.",
        "Unauthorized transactions appeared on my credit card account on XX/XX/2019.",
        "The credit card annual fee is too expensive and the billing error was never resolved.",
        "My prepaid card was frozen and the card issuer refused to refund the charges.",
    ],
    "Mortgage": [
        "The mortgage servicer applied my escrow payment to the wrong month.",
        "Mortgage payments keep increasing because of an escrow shortage.",
        "The bank denied my mortgage modification and started foreclosure on my home.",
        "My mortgage statement does not reflect the payments I made on the house.",
    ],
    "Student loan": [
        "My student loan servicer is unresponsive to my requests for deferment.",
        "Navient placed my student loan in default after the grace period ended.",
        "The student loan interest rates are too high and forbearance was denied.",
        "My federal student loan payments were not applied to the principal balance.",
    ],
    "Vehicle loan or lease": [
        "My car loan application was denied without proper explanation by the dealer.",
        "The auto lender repossessed my vehicle even though I paid the car note.",
        "The vehicle lease terms were changed without notice and the dealer added fees.",
        "The car loan interest rate on my truck is higher than the dealer promised.",
    ],
}

PRODUCT_COMPANIES = {
    "Credit card or prepaid card": ["CAPITAL ONE FINANCIAL CORPORATION", "SYNCHRONY FINANCIAL"],
    "Mortgage": ["WELLS FARGO & COMPANY", "Ocwen Financial Corporation"],
    "Student loan": ["Navient Solutions, LLC.", "AES/PHEAA"],
    "Vehicle loan or lease": ["ALLY FINANCIAL INC.", "Santander Consumer USA Holdings Inc."],
}

STATES = ["CA", "TX", "NY", "FL", "GA", "OH"]
ZIPS = ["941XX", "770XX", "100XX", "331XX", "303XX", None]
FILLERS = [
    "I called XXXX times and nobody helped me.",
    "I filed a dispute and sent a letter on XX/XX/XXXX.",
    "This has caused me a lot of stress and I want it fixed.",
]

# Tiny grids keep the end-to-end tests quick.
SMALL_GRIDS = {
    "cart": {"clf__max_depth": [None, 5]},
    "random_forest": {"clf__n_estimators": [25], "clf__max_features": ["sqrt"]},
    "logistic_regression": {"clf__C": [1.0], "clf__l1_ratio": [0.0, 0.5]},
}


def make_raw_train(per_product: int = 12) -> pd.DataFrame:
    """Labelled extract in the course CSV's raw column layout."""
    rows = []
    for product, sentences in PRODUCT_SENTENCES.items():
        for i in range(per_product):
            narrative = " ".join([
                "I filed this complaint because",
                sentences[i % 4],
                sentences[(i + 1) % 4],
                FILLERS[i % 3],
            ])
            rows.append({
                "Product": product,
                "Consumer complaint narrative": narrative,
                "Company": PRODUCT_COMPANIES[product][i % 2],
                "State": STATES[i % len(STATES)],
                "ZIP code": ZIPS[i % len(ZIPS)],
                "Submitted via": "Web",
            })
    return pd.DataFrame(rows)


def make_raw_test() -> pd.DataFrame:
    """Unlabelled extract: `problem_id` instead of `Product`, one unseen lender."""
    rows = []
    for i, (product, sentences) in enumerate(PRODUCT_SENTENCES.items()):
        for j in range(2):
            rows.append({
                "Consumer complaint narrative": f"{sentences[j + 1]} {FILLERS[j]}",
                "Company": "Brand New Lender LLC" if j else PRODUCT_COMPANIES[product][0],
                "State": "AK" if j else STATES[i],
                "ZIP code": "995XX" if j else ZIPS[i],
                "Submitted via": "Web",
                "problem_id": 100 + 2 * i + j,
            })
    return pd.DataFrame(rows)


@pytest.fixture
def raw_train() -> pd.DataFrame:
    return make_raw_train()


@pytest.fixture
def raw_test() -> pd.DataFrame:
    return make_raw_test()


@pytest.fixture
def raw_dir(tmp_path, raw_train, raw_test):
    """Directory holding both course extracts."""
    directory = tmp_path / "raw_data"
    directory.mkdir()
    raw_train.to_csv(directory / config.TRAIN_FILE, index=False)
    raw_test.to_csv(directory / config.TEST_FILE, index=False)
    return directory


@pytest.fixture
def project_dirs(tmp_path, raw_dir, monkeypatch):
    """Point every configured location at a temporary project."""
    processed = tmp_path / "tidy_data"
    results = tmp_path / "results"
    figures = results / "figures"
    for d in (processed, results, figures):
        d.mkdir(parents=True, exist_ok=True)
    monkeypatch.setattr(config, "RAW_DATA_DIR", raw_dir)
    monkeypatch.setattr(config, "PROCESSED_DATA_DIR", processed)
    monkeypatch.setattr(config, "RESULTS_DIR", results)
    monkeypatch.setattr(config, "FIGURES_DIR", figures)
    monkeypatch.setattr(config, "WORKSPACE_FILE", processed / "workspace.joblib")
    monkeypatch.setattr(config, "STOPWORDS_SOURCE", "sklearn")
    monkeypatch.setattr(config, "TERM_WEIGHTING", "count")
    monkeypatch.setattr(config, "N_JOBS", 1)
    return {"raw": raw_dir, "processed": processed, "results": results, "figures": figures}
