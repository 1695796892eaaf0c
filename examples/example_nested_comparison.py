#########################################################################################
##
##               audiogrowth example: nested model comparison
##
##  Models:  M0  shared scale and midpoint
##           M1  per-domain midpoint, shared scale
##           M2  per-domain midpoint and scale
##  Test:    extra-sum-of-squares F-test between adjacent models
##
##  The three domains differ in midpoint but share their scale, so M1
##  should improve on M0 while M2 should not improve on M1.
##
#########################################################################################

# IMPORTS ===============================================================================

from audiogrowth import FixedAsymptoteLogistic, ingest, simulate_cohort
from audiogrowth.opt import compare_nested, fit_nested_family
from audiogrowth.report import comparison_table


# Run Example ===========================================================================

if __name__ == '__main__':

    curves = {"A": (0.07, 40.0), "B": (0.07, 55.0), "C": (0.07, 70.0)}
    frame = simulate_cohort(curves, n_subjects=40, noise=2.5, seed=3)
    ds = ingest(frame, {g: g for g in curves})

    nested = fit_nested_family(
        ds,
        FixedAsymptoteLogistic(130.0),
        key="domain",
        n_starts=100,
        seed=0,
    )

    for nf in nested:
        if nf.fit is not None:
            nf.fit.display()

    print(comparison_table(compare_nested(nested)).to_string(index=False))
    print(comparison_table(compare_nested(nested, all_pairs=True)).to_string(index=False))
