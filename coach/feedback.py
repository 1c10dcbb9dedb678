"""
Coach Feedback Generator
========================

telemetry -> statistics block -> prompts -> LLM -> sanitized text.

The generator never raises: if anything on the way fails, the runner hears
one of the pre-written fallback sentences instead. The coaching voice must
not go silent mid-run.
"""

import logging
import random
import re
from datetime import datetime, timezone
from typing import List, Optional

from coach.schemas import CoachFeedbackRequest, CoachFeedbackResponse, Language
from coach.stats_builder import build_stats_description, analyze_splits, classify_scene
from coach.prompts import build_system_prompt, build_user_prompt
from coach.llm_client import LLMClient, Message, RemoteGenerationError


logger = logging.getLogger(__name__)

MAX_FEEDBACK_CHARS = 300

_EDGE_QUOTES = re.compile(r"\A[\"']|[\"']\Z")
_NEWLINES = re.compile(r"\n+")
_WHITESPACE = re.compile(r"\s+")

# Style-independent on purpose: the failure path does not look at coachStyle.
FALLBACK_FEEDBACK = {
    Language.ZH_HANS: [
        "配速稳定，保持节奏，你做得很好！",
        "继续坚持，你已经跑了这么远了！",
        "呼吸均匀，保持这个状态！",
        "很棒的表现，继续加油！",
        "注意配速，不要太快也不要太慢。",
        "保持节奏，稳定前进！",
        "你的状态不错，继续保持！",
        "专注呼吸，放松肩膀，跑得更轻松。",
    ],
    Language.EN: [
        "Steady pace, keep the rhythm, you're doing great!",
        "Keep going, look how far you've come already!",
        "Breathe evenly and hold this feeling!",
        "Great effort, keep it up!",
        "Watch your pace, not too fast and not too slow.",
        "Hold the rhythm and keep moving forward!",
        "You're in good shape, keep it going!",
        "Focus on your breathing, relax your shoulders, run light.",
    ],
}


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def clean_feedback_text(text: str) -> str:
    """
    Sanitize raw model output for voice playback.

    Trim, drop one layer of surrounding quotes, fold newlines and whitespace
    runs into single spaces, truncate to MAX_FEEDBACK_CHARS. Never ends or
    starts on a space, so a second pass is a no-op.
    """
    cleaned = _EDGE_QUOTES.sub("", text.strip()).strip()
    cleaned = _NEWLINES.sub(" ", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned[:MAX_FEEDBACK_CHARS].rstrip()


def get_fallback_feedback(
    language: Language = Language.ZH_HANS,
    rng: Optional[random.Random] = None
) -> str:
    """Pick a pre-written sentence uniformly at random."""
    chooser = rng or random
    return chooser.choice(FALLBACK_FEEDBACK[language])


class FeedbackGenerator:
    """
    Turns a telemetry snapshot into coach feedback.

    Stateless between calls; one instance may serve many requests.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = 0.8,
        max_tokens: int = 2000,
        rng: Optional[random.Random] = None
    ):
        self.llm_client = llm_client
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.rng = rng

    def build_messages(self, request: CoachFeedbackRequest) -> List[Message]:
        """System + user messages for the request's mode, style and language."""
        post_run = request.is_post_run
        stats = build_stats_description(request)
        return [
            {
                "role": "system",
                "content": build_system_prompt(request.coach_style, post_run, request.language),
            },
            {
                "role": "user",
                "content": build_user_prompt(stats, request.coach_style, post_run, request.language),
            },
        ]

    def generate(self, request: CoachFeedbackRequest) -> CoachFeedbackResponse:
        """Generate feedback. Always returns a successful response."""
        mode = "post_run" if request.is_post_run else "realtime"
        logger.info(
            f"Coach feedback request: distance={request.distance}km, "
            f"pace={request.current_pace}min/km, mode={mode}, style={request.coach_style.value}"
        )

        try:
            scene = None
            if request.is_post_run:
                scene = classify_scene(analyze_splits(request.km_splits), request)
                logger.info(f"Post-run scene: {scene}")

            messages = self.build_messages(request)
            response = self.llm_client.generate(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
            feedback = clean_feedback_text(response.text)
            if not feedback:
                raise RemoteGenerationError("Model returned only quotes/whitespace")

            logger.info(f"Coach feedback generated ({response.model}): {feedback[:50]}...")
            return CoachFeedbackResponse(feedback=feedback, scene=scene, timestamp=utc_timestamp())
        except Exception as e:
            logger.error(f"Coach feedback generation failed, using fallback: {e}")
            return self.fallback_response(request.language)

    def fallback_response(self, language: Language = Language.ZH_HANS) -> CoachFeedbackResponse:
        return CoachFeedbackResponse(
            feedback=get_fallback_feedback(language, self.rng),
            scene=None,
            timestamp=utc_timestamp()
        )
