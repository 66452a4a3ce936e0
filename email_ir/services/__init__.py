"""
Email IR Services Package

Business logic modules for the incident-response pipeline:
- source: Notified-email fetcher
- ai: Inference client and model-backed stages
- detection: Deterministic header signals and decision rules
- analysis: Pipeline orchestrator and run context
- soc: Response playbooks
- storage: Report persistence
"""

# Services are imported explicitly when needed to avoid circular imports
# Example: from email_ir.services.analysis import EmailIRPipeline

__all__ = [
    'source',
    'ai',
    'detection',
    'analysis',
    'soc',
    'storage',
]
