"""Verdict schemas for the structured evaluators."""

from schemas.business import BusinessVerdict
from schemas.technical import TechnicalVerdict

__all__ = ["BusinessVerdict", "TechnicalVerdict"]
