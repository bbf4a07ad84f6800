"""Named constants for the chemistry evolution core.

These replace magic numbers in the driver, the integrators and the
conservation makeup.
"""

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------
ONE_YEAR = 3.15576e7        # Julian year (s)

# ---------------------------------------------------------------------------
# Status codes returned by integrators, the makeup and the driver
# ---------------------------------------------------------------------------
STATUS_OK = 0
STATUS_FAIL = -1            # conservation infeasible or every integrator failed
STATUS_TIMEOUT = 1          # wall-clock budget exhausted (soft stop)
STATUS_STEP_FAILED = 1      # integrator could not meet the tolerance

# ---------------------------------------------------------------------------
# Driver defaults
# ---------------------------------------------------------------------------
WALL_CLOCK_LIMIT = 3600.0   # CPU seconds per evolve call
LOG_GROWTH = 1.5            # re-log each time the age grows by this factor
MIN_COVERAGE = 0.1          # fraction of te that still counts as completed
SCALE_FLOOR = 1.0e-20       # floor of the per-species error scale
MAX_RETRIES = 40            # trial steps per integrator call
MAX_MAKEUP_FACTOR = 2.0 ** 52  # largest deficit scale-up, 1 / float64 epsilon

# ---------------------------------------------------------------------------
# Semi-implicit extrapolation (Bader-Deuflhard)
# ---------------------------------------------------------------------------
BS_KMAXX = 7
BS_NSEQ = (2, 6, 10, 14, 22, 34, 50, 70)
BS_SAFE1 = 0.25
BS_SAFE2 = 0.7
BS_REDMAX = 1.0e-5
BS_REDMIN = 0.7
BS_SCALMX = 0.1
TINY = 1.0e-30

# ---------------------------------------------------------------------------
# Kaps-Rentrop Rosenbrock stepper
# ---------------------------------------------------------------------------
KR_SAFETY = 0.9
KR_GROW = 1.5
KR_PGROW = -0.25
KR_SHRNK = 0.5
KR_PSHRNK = -1.0 / 3.0
KR_ERRCON = 0.1296          # (GROW / SAFETY) ** (1 / PGROW)
