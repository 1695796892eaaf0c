from importlib import metadata

try:
    __version__ = metadata.version("audiogrowth")
except Exception:
    __version__ = "unknown"

from .utils.logger import LoggerManager
from .config import AnalysisConfig
from .errors import (
    AudiogrowthError,
    IngestionError,
    InsufficientDataError,
    DegenerateDataError,
    ConvergenceError,
    ComparisonPreconditionError,
    NestingError,
    ModelConsistencyError,
)
from .models import LogisticModel, FixedAsymptoteLogistic, FreeAsymptoteLogistic, make_model
from .data import Observation, FittableDataset, ingest, simulate_cohort
from .metrics import DerivedMetric, derive_metrics
from .analysis import AnalysisReport, run_analysis
