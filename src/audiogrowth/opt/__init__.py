#########################################################################################
##
##                       CURVE FITTING AND MODEL COMPARISON API
##                                  (opt/__init__.py)
##
#########################################################################################

from .parameter_estimator import (
    Parameter,
    GroupedParameterization,
    EstimatorResult,
    FitResult,
    ParameterEstimator,
    fit_multistart,
)
from .sensitivity import (
    ParameterInterval,
    SensitivityResult,
    confidence_intervals,
    covariance_matrix,
    profile_intervals,
)
from .grouped import GroupedFitResult, SkipRecord, fit_groups, fit_partitions
from .comparison import (
    ComparisonResult,
    NestedFit,
    compare_nested,
    compare_pair,
    f_test,
    fit_nested_family,
    nested_family,
)
