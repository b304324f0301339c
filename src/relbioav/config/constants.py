"""Global constants for relative bioavailability simulation and analysis."""

from __future__ import annotations

# PK parameters and treatment labels
PK_PARAMETERS = ("AUC0_tz", "AUCINF_pred", "Cmax")
REFERENCE_TREATMENT = "R"
TEST_TREATMENT = "T"
TREATMENT_LEVELS = (REFERENCE_TREATMENT, TEST_TREATMENT)

# Simulation defaults
DEFAULT_SEED = 646997
DEFAULT_N_SUBJECTS_PERIOD = 16
DEFAULT_N_SUBJECTS_PARALLEL = 80
DEFAULT_DROP_SUBJECTS = (5, 6)
DEFAULT_DROP_PERIOD = 2
DEFAULT_CROSSOVER_SEQUENCES = ("TR", "RT")
DEFAULT_FIXED_SEQUENCE = ("R", "T")

# Log-scale population means per (Treatment, Parameter)
MU_LOG = {
    ("T", "AUC0_tz"): 6.146901,
    ("T", "AUCINF_pred"): 6.173306,
    ("T", "Cmax"): 5.098963,
    ("R", "AUC0_tz"): 6.248518,
    ("R", "AUCINF_pred"): 6.265877,
    ("R", "Cmax"): 5.088447,
}

# Between-/within-subject SDs on the log scale (period designs)
BETWEEN_SD = {"AUC0_tz": 0.3100274, "AUCINF_pred": 0.3078800, "Cmax": 0.2241883}
WITHIN_SD = {"AUC0_tz": 0.1033928, "AUCINF_pred": 0.1015943, "Cmax": 0.1650787}

# Single SD per parameter (parallel design)
PARALLEL_SD = {"AUC0_tz": 0.33, "AUCINF_pred": 0.33, "Cmax": 0.25}

# Analysis conventions
CONFIDENCE_LEVEL = 0.90
BE_LIMITS_PCT = (80.0, 125.0)
FOREST_X_LIMITS = (60.0, 130.0)
FOREST_REF_LINES = (80.0, 100.0, 125.0)

# Table formatting
MEAN_DECIMALS = 2
GCV_DECIMALS = 1

# Display groups
PRIMARY_GROUP = "Primary endpoints"
SECONDARY_GROUP = "Secondary endpoint"
OTHER_GROUP = "Other"
DEFAULT_ENDPOINT_MAP = (
    ("AUC0_tz", PRIMARY_GROUP),
    ("Cmax", PRIMARY_GROUP),
    ("AUCINF_pred", SECONDARY_GROUP),
)
FOREST_PARAMETER_ORDER = ("Cmax", "AUC0_tz", "AUCINF_pred")

# Final table schema
FINAL_TABLE_COLUMNS = (
    "Parameter", "Treatment", "Group", "n", "adj_gmean", "adj_gse",
    "ratio", "gse", "lower", "upper", "gCV",
)
