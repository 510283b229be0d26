"""
Evaluation pipeline module.

Provides the EvaluationOrchestrator and the Frame contract of its output channel.
"""
from .frames import Frame
from .orchestrator import EvaluationOrchestrator

__all__ = ['EvaluationOrchestrator', 'Frame']
