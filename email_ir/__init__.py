"""
Email IR

Email incident-response analysis pipeline.
"""

__version__ = "1.0.0"
