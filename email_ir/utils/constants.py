"""
Email IR Constants

Application-wide constants and configuration values.
"""

# ============================================================================
# Pipeline Steps
# ============================================================================

STEP_FETCH = "fetch-email"
STEP_HEADER = "header-analysis"
STEP_BEHAVIORAL = "behavioral-analysis"
STEP_INTENT = "intent-analysis"
STEP_TRIAGE = "triage"
STEP_FEATURES = "feature-extraction"
STEP_RISK = "risk-assessment"
STEP_REPORT = "reporting"

ANALYSIS_STEPS = (STEP_HEADER, STEP_BEHAVIORAL, STEP_INTENT)

# ============================================================================
# Header Signals
# ============================================================================

# Case-insensitive substrings that mark a phishing simulation, matched
# against header names and values
SIMULATION_MARKERS = (
    "x-phish-test",
    "x-phishtest",
    "phishing-test",
    "phishing-simulation",
    "phish-simulation",
    "security-awareness",
    "x-simulation",
    "x-keepnet",
    "x-phishme",
    "x-knowbe4",
    "x-gophish",
    "x-lucy",
)

SIMULATION_RESULT_MARKER = "simulation"

LIST_UNSUBSCRIBE_HEADERS = ("list-unsubscribe", "list-unsubscribe-post")

AUTHENTICATION_RESULTS_HEADER = "authentication-results"

# Scan verdicts
MALICIOUS_VERDICTS = ("malicious", "phishing")
ERROR_VERDICT = "error"
CLEAN_VERDICT = "clean"

BLOCKLISTED_REPUTATIONS = ("blocklisted", "blacklisted", "malicious")

# ============================================================================
# Degraded Fetch
# ============================================================================

FETCH_STATUS_HEADER = "x-email-ir-fetch-status"
FETCH_STATUS_FAILED = "failed"
DEGRADED_SENDER = "unknown@unavailable.local"
DEGRADED_RESULT = "insufficient_data"
DEGRADED_CONFIDENCE_CAP = 0.3

# ============================================================================
# Reporting
# ============================================================================

STATUS_ANALYSIS_COMPLETE = "Analysis Complete"
UNVERIFIED_LINK_PLACEHOLDER = "[unverified link removed]"
HUMAN_REVIEW_FLAG = "HUMAN REVIEW REQUIRED"

MIN_HIGH_RISK_ACTIONS = 2
MAX_ACTIONS_PER_BUCKET = 5
