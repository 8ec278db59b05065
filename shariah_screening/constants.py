"""
Global constants for the screening engine.

Centralizes thresholds and tuning values used by the normalizer,
methodology scorers and aggregators.
"""

# Methodology defaults (percent of the relevant denominator)
DEFAULT_DEBT_THRESHOLD_PCT = 33.0  # Conventional debt / max(market cap, total assets)
DEFAULT_CASH_INV_THRESHOLD_PCT = 33.0  # Cash + interest-bearing investments
DEFAULT_NPIN_THRESHOLD_PCT = 5.0  # Non-permissible income share of revenue

DEFAULT_METHODOLOGY_VERSION = "default"

# Revenue composition
RESIDUAL_SEGMENT_EPSILON_PCT = 0.5  # Gaps below this are rounding noise
RESIDUAL_SEGMENT_NAME = "Other non-halal"
TOP_SEGMENT_LIMIT = 5  # Segments shown in the breakdown table
MAX_PCT = 100.0

# Portfolio
WEIGHT_TOLERANCE = 1e-6  # Allowed drift when checking weight conservation

# Repository paging
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 50

# Concurrency
DEFAULT_MAX_WORKERS = 8

# Display
MEMO_DOC_URL_TEMPLATE = "https://docs.google.com/document/d/{doc_id}/view"
NOT_AVAILABLE = "N/A"
