"""
Coach - AI Running Coach Feedback
=================================

Turns run telemetry into spoken coaching:
- Real-time nudges while running
- Post-run summaries when per-kilometer splits are sent
- Pre-written fallback sentences whenever the LLM call fails
- Training plan generation

Key Design Principles:
1. Backend computes the statistics - LLM only phrases them
2. Provider-agnostic LLM interface
3. Feedback endpoint never fails
"""

from coach.feedback import FeedbackGenerator, clean_feedback_text
from coach.llm_client import LLMClient, DashScopeClient, GeminiClient, RemoteGenerationError
from coach.training_plan import TrainingPlanGenerator

__all__ = [
    'FeedbackGenerator',
    'clean_feedback_text',
    'LLMClient',
    'DashScopeClient',
    'GeminiClient',
    'RemoteGenerationError',
    'TrainingPlanGenerator',
]
