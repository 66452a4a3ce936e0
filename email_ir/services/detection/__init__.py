"""
Email IR Detection Module

Deterministic checks and decision rules that sit on top of model output:
- Header signals (simulation markers, unsubscribe headers, scan verdicts)
- Triage conflict resolution
- Feature extraction
- Risk decision table and engine-blind floor
"""

from .header_signals import (
    apply_header_overrides,
    engine_indicators_present,
    find_simulation_markers,
    has_list_unsubscribe,
    has_malicious_attachment,
    is_fetch_degraded,
    is_simulation,
    summarize_scans,
)

from .triage_rules import TriageRules, TriageSignals

from .feature_extraction import extract_features, build_analysis_summary

from .risk_rules import RiskRules

__all__ = [
    # Header signals
    'apply_header_overrides',
    'engine_indicators_present',
    'find_simulation_markers',
    'has_list_unsubscribe',
    'has_malicious_attachment',
    'is_fetch_degraded',
    'is_simulation',
    'summarize_scans',

    # Rules
    'TriageRules',
    'TriageSignals',
    'RiskRules',

    # Features
    'extract_features',
    'build_analysis_summary',
]
