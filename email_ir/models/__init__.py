"""
Email IR Data Models Package

Pydantic models for data validation and serialization.
"""

from .email import *
from .findings import *
from .decision import *
from .report import *
from .requests import *
