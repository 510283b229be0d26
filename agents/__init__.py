# Agents module for Deployment Assessor
from .technical_evaluator import TechnicalProfile, create_technical_evaluator
from .business_evaluator import BusinessProfile, create_business_evaluator
from .intent_guard import IntentGuard, IntentVerdict
