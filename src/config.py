"""
config.py
---------
Single source of truth for every project-level constant.
Edit DATA_DIR before running to point at your ledger export folder.
"""

DATA_DIR   = "data"     # folder containing transactions.csv + subscriptions.csv
OUTPUT_DIR = "outputs"  # directory for the JSON response, CSV export and charts

TRANSACTIONS_FILE  = "transactions.csv"
SUBSCRIPTIONS_FILE = "subscriptions.csv"
REPORT_FILE        = "revenue_analytics.json"
RISK_EXPORT_FILE   = "churn_risks.csv"

# Trend / forecast windows
TREND_MONTHS     = 12   # trailing calendar months in the MRR trend
FORECAST_WINDOW  = 6    # trailing months fed to the regression
FORECAST_HORIZON = 3    # months projected forward
MIN_FORECAST_POINTS = 2
OPTIMISTIC_FACTOR   = 1.2
CONSERVATIVE_FACTOR = 0.8

MAX_CHURN_RISKS = 50    # response cap, highest risk first

# Ledger normalisation
PENDING_STATUSES = {"open", "draft"}   # unpaid but not failed
ACTIVE_STATUS    = "active"
MISSING_LABEL    = "—"
TRUE_STRINGS     = {"true", "t", "1", "yes", "y"}

# Churn-risk heuristic: (lower bound exclusive, points)
RECENCY_BANDS = [(60, 40), (45, 30), (35, 20)]
FAILURE_BANDS = [(0.30, 30), (0.15, 15)]
SINGLE_PAYMENT_POINTS = 20
FEW_PAYMENTS_POINTS   = 10
LOW_LTV_THRESHOLD     = 100
LOW_LTV_POINTS        = 10
MAX_RISK_SCORE        = 100

# Score → level, checked top-down
RISK_LEVELS = [(60, "critical"), (35, "high"), (15, "medium")]
DEFAULT_RISK_LEVEL = "low"
AT_RISK_LEVELS = {"critical", "high"}

# Entry-point authorisation
ADMIN_ROLES = {"admin", "owner"}

# Synthetic ledger defaults (simulate.py)
RANDOM_STATE = 42

NAVY  = "#1E2761"
TEAL  = "#028090"
CORAL = "#F96167"
GOLD  = "#F9C74F"
GRAY  = "#64748B"
LIGHT = "#CADCFC"

PLOT_STYLE = {
    "figure.facecolor": "white",
    "axes.facecolor":   "white",
    "axes.spines.top":  False,
    "axes.spines.right": False,
    "axes.grid":        False,
    "font.size":        11,
}

RISK_COLORS = {
    "critical": CORAL,
    "high":     GOLD,
    "medium":   TEAL,
    "low":      GRAY,
}
