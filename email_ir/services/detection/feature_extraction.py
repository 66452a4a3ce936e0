"""
Email IR Feature Extraction

Pure merge of the triage result and the three stage findings into the
flat feature set consumed by risk assessment. No I/O, no inference.
"""

from email_ir.models.decision import FeatureSet, TriageResult

from .header_signals import engine_indicators_present


def build_analysis_summary(result: TriageResult) -> str:
    """One line per analysis stage."""
    return "\n".join([
        f"Header authentication: {result.header.header_summary}",
        f"Body behavioral signals: {result.behavioral.behavioral_summary}",
        f"Intent analysis: {result.intent.intent_summary}",
    ])


def extract_features(result: TriageResult) -> FeatureSet:
    """
    Flatten a triage result into decision features.

    Args:
        result: Triage verdict with the three findings passed through

    Returns:
        FeatureSet carrying every prior output forward
    """
    intent = result.intent
    behavioral = result.behavioral

    return FeatureSet(
        intent=intent.intent,
        urgency=behavioral.urgency_level,
        authority_impersonation=intent.authority_impersonation,
        financial_request=intent.financial_request,
        credential_request=intent.credential_request,
        emotional_pressure=behavioral.emotional_pressure,
        social_engineering_pattern=behavioral.social_engineering_pattern,
        engine_indicators_present=engine_indicators_present(result.original_email),
        analysis_summary=build_analysis_summary(result),
        original_email=result.original_email,
        triage=result.verdict,
        header=result.header,
        behavioral=behavioral,
        intent_analysis=intent,
    )
