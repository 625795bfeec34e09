"""
Project configuration settings.

Edit the variables in this module, or set the matching environment
variables (a `.env` file in the working directory is read too), to
point the pipeline at your data directories and change modelling
defaults.  Keeping configuration in one place makes it easy to
override default behaviour without modifying individual modules.
"""

from pathlib import Path
import os

from dotenv import load_dotenv

load_dotenv()

# Base directory for storing input and output data.
BASE_DIR: Path = Path(
    os.getenv("COMPLAINTS_BASE_DIR", Path(__file__).resolve().parents[1])
)

###############################################################################
# Directory paths
###############################################################################

# The course extracts (train/test complaint CSVs) live here
RAW_DATA_DIR: Path = BASE_DIR / "data" / "raw_data"

# Cleaned tables and the workspace snapshot
PROCESSED_DATA_DIR: Path = BASE_DIR / "data" / "tidy_data"

# Reports, metrics, predictions and fitted models
RESULTS_DIR: Path = BASE_DIR / "results"

# PNG plots
FIGURES_DIR: Path = RESULTS_DIR / "figures"

# Create directories if they do not already exist
for _dir in (RAW_DATA_DIR, PROCESSED_DATA_DIR, RESULTS_DIR, FIGURES_DIR):
    _dir.mkdir(parents=True, exist_ok=True)

###############################################################################
# Input files
###############################################################################

TRAIN_FILE: str = "data_complaints_train.csv"
TEST_FILE: str = "data_complaints_test.csv"

# Serialized snapshot of every named object produced by the stages
WORKSPACE_FILE: Path = PROCESSED_DATA_DIR / "workspace.joblib"

###############################################################################
# Modelling
###############################################################################

PRODUCTS: tuple[str, ...] = (
    "Credit card or prepaid card",
    "Mortgage",
    "Student loan",
    "Vehicle loan or lease",
)

RANDOM_SEED: int = 1234
TRAIN_PROPORTION: float = 2 / 3
CV_FOLDS: int = 4

# Core count for cross-validation inside GridSearchCV (-1 uses every core)
N_JOBS: int = int(os.getenv("COMPLAINTS_N_JOBS", "-1"))

# Terms missing from more than this share of documents are dropped
MAX_TERM_SPARSITY: float = 0.99

# Company/state/zip values seen fewer times than this are pooled together
METADATA_MIN_FREQUENCY: int = 5

# "nltk" or "sklearn"
STOPWORDS_SOURCE: str = os.getenv("COMPLAINTS_STOPWORDS", "nltk")

# "count" (raw document-term counts) or "tfidf"
TERM_WEIGHTING: str = os.getenv("COMPLAINTS_WEIGHTING", "count")
