#########################################################################################
##
##               audiogrowth example: multi-start fit of a single series
##
##  Model:   threshold(age) = 130 / (1 + exp(-scale * (age - midpoint)))
##  Fit:     scale and midpoint from noisy cross-sectional thresholds
##
##  The simplest use of the package: one dataset, one model, one fit.
##  Start here before looking at the grouped and nested examples.
##
#########################################################################################

# IMPORTS ===============================================================================

import numpy as np

from audiogrowth import FittableDataset, FixedAsymptoteLogistic, derive_metrics
from audiogrowth.opt import ParameterEstimator, confidence_intervals


# Run Example ===========================================================================

if __name__ == '__main__':

    # Synthetic thresholds: true scale = 0.08, midpoint = 50 years
    rng = np.random.default_rng(1)
    age = rng.uniform(5.0, 90.0, 60)
    threshold = 130.0 / (1.0 + np.exp(-0.08 * (age - 50.0))) + rng.normal(0.0, 2.0, 60)

    ds = FittableDataset(
        age=age,
        threshold=threshold,
        subject_id=[f"s{i:03d}" for i in range(60)],
        domain=["example"] * 60,
        variant=["example"] * 60,
        name="single series",
    )

    model = FixedAsymptoteLogistic(130.0)
    est = ParameterEstimator(ds, model)

    # Best of 200 random starts
    fit = est.fit_multistart(n_starts=200, seed=0)
    fit.display()

    est.sensitivity(fit).display()

    for iv in confidence_intervals(fit, 0.95):
        print(f"{iv.name:10s} {iv.estimate:10.4g}  [{iv.lower:.4g}, {iv.upper:.4g}]")

    for m in derive_metrics(fit, onset_threshold=25.0):
        print(f"{m.name:10s} {m.estimate:10.4g}  [{m.lower:.4g}, {m.upper:.4g}] {m.unit}")
