"""
FastAPI Router for the Running Coach
Endpoints for real-time / post-run feedback and training plan generation
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from config import Settings
from coach.schemas import (
    CoachFeedbackRequest, CoachFeedbackResponse,
    TrainingPlanRequest, TrainingPlanResponse,
    Language, normalize_language,
)
from coach.feedback import FeedbackGenerator, utc_timestamp
from coach.training_plan import TrainingPlanGenerator
from coach.llm_client import LLMClient, RemoteGenerationError, build_llm_client


logger = logging.getLogger(__name__)

router = APIRouter(tags=["coach"])


# ============ Dependencies ============

def get_llm_client() -> LLMClient:
    return build_llm_client(Settings)


def get_feedback_generator(llm_client: LLMClient = Depends(get_llm_client)) -> FeedbackGenerator:
    return FeedbackGenerator(
        llm_client,
        temperature=Settings.COACH_TEMPERATURE,
        max_tokens=Settings.COACH_MAX_TOKENS
    )


def get_plan_generator() -> TrainingPlanGenerator:
    llm_client = build_llm_client(Settings, timeout=Settings.PLAN_LLM_TIMEOUT)
    return TrainingPlanGenerator(
        llm_client,
        temperature=Settings.PLAN_TEMPERATURE,
        max_tokens=Settings.COACH_MAX_TOKENS
    )


# ============ Feedback Endpoint ============

@router.post("/coach-feedback", response_model=CoachFeedbackResponse)
async def coach_feedback(
    request: Request,
    generator: FeedbackGenerator = Depends(get_feedback_generator)
):
    """
    Real-time nudge or post-run summary (when kmSplits is sent).
    Always answers 200 with success=true, even when generation fails.
    """
    language = Language.ZH_HANS
    try:
        payload = await request.json()
        if isinstance(payload, dict):
            language = normalize_language(payload.get("language"))
        body = CoachFeedbackRequest.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid coach feedback request, using fallback: {e}")
        return generator.fallback_response(language)

    return await run_in_threadpool(generator.generate, body)


# ============ Training Plan Endpoint ============

@router.post("/generate-training-plan", response_model=TrainingPlanResponse)
async def generate_training_plan(
    request: TrainingPlanRequest,
    generator: TrainingPlanGenerator = Depends(get_plan_generator)
):
    """
    Generate a multi-week training plan.
    """
    try:
        plan = await run_in_threadpool(generator.generate, request)
    except RemoteGenerationError as e:
        logger.error(f"Training plan generation failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e), "timestamp": utc_timestamp()}
        )

    return TrainingPlanResponse(plan=plan, timestamp=utc_timestamp())
