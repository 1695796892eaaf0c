#########################################################################################
##
##                               EXCEPTION HIERARCHY
##                                   (errors.py)
##
#########################################################################################

"""Typed failures of the fitting pipeline.

Only :class:`IngestionError` is fatal to an analysis run. Everything else is
raised at the level of a single partition or a single comparison and is
recorded by the caller next to the successful results.
"""


# EXCEPTIONS ============================================================================

class AudiogrowthError(Exception):
    """Base class for all package errors."""


class IngestionError(AudiogrowthError):
    """Malformed input table or unmapped group label."""


class InsufficientDataError(AudiogrowthError):
    """Dataset too small for the number of free parameters."""

    def __init__(self, message: str, n_observations: int = 0):
        super().__init__(message)
        self.n_observations = n_observations


class DegenerateDataError(AudiogrowthError):
    """Independent variable without variance."""


class ConvergenceError(AudiogrowthError):
    """Every optimizer start failed to converge."""

    def __init__(self, message: str, n_starts: int = 0):
        super().__init__(message)
        self.n_starts = n_starts


class ComparisonPreconditionError(AudiogrowthError):
    """Model comparison attempted on missing or non-converged fits."""


class NestingError(ComparisonPreconditionError):
    """The compared parameterizations are not properly nested."""


class ModelConsistencyError(AudiogrowthError):
    """Forward and inverse model functions disagree."""
