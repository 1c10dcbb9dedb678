"""
Pydantic Schemas for the Running Coach
Request/Response models for feedback, training plans, TTS and account endpoints
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from enum import Enum


class CoachStyle(str, Enum):
    ENCOURAGING = "encouraging"
    STRICT = "strict"
    CALM = "calm"


class Language(str, Enum):
    ZH_HANS = "zh-Hans"
    EN = "en"


def normalize_style(value: Any) -> CoachStyle:
    if isinstance(value, CoachStyle):
        return value
    if isinstance(value, str):
        try:
            return CoachStyle(value.strip().lower())
        except ValueError:
            pass
    return CoachStyle.ENCOURAGING


def normalize_language(value: Any) -> Language:
    if isinstance(value, Language):
        return value
    if isinstance(value, str):
        if value.strip().lower().startswith("en"):
            return Language.EN
    return Language.ZH_HANS


# ============ Request Schemas ============

class CoachFeedbackRequest(BaseModel):
    """Run telemetry snapshot sent by the app."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    current_pace: float = Field(..., gt=0, alias="currentPace")  # min/km
    target_pace: Optional[float] = Field(default=None, gt=0, alias="targetPace")
    distance: float = Field(..., ge=0)  # km covered so far
    total_distance: Optional[float] = Field(default=None, gt=0, alias="totalDistance")
    duration: float = Field(..., ge=0)  # seconds
    heart_rate: Optional[int] = Field(default=None, gt=0, alias="heartRate")
    coach_style: CoachStyle = Field(default=CoachStyle.ENCOURAGING, alias="coachStyle")
    km_splits: Optional[List[float]] = Field(default=None, alias="kmSplits")  # sec per km
    training_type: Optional[str] = Field(default=None, alias="trainingType")
    goal_name: Optional[str] = Field(default=None, alias="goalName")
    language: Language = Language.ZH_HANS

    @field_validator("coach_style", mode="before")
    @classmethod
    def default_unknown_style(cls, value):
        return normalize_style(value)

    @field_validator("language", mode="before")
    @classmethod
    def default_unknown_language(cls, value):
        return normalize_language(value)

    @field_validator("km_splits")
    @classmethod
    def splits_positive(cls, value):
        if value is not None and any(split <= 0 for split in value):
            raise ValueError("kmSplits must contain positive seconds per km")
        return value

    @property
    def is_post_run(self) -> bool:
        """Splits present means the run is over: summary mode."""
        return bool(self.km_splits)


class TrainingPlanRequest(BaseModel):
    """Request to generate a multi-week training plan."""
    model_config = ConfigDict(populate_by_name=True)

    goal: str = Field(..., min_length=1, max_length=200)
    avg_pace: Optional[float] = Field(default=None, gt=0, alias="avgPace")
    max_distance: Optional[float] = Field(default=None, gt=0, alias="maxDistance")
    weekly_runs: int = Field(default=3, ge=1, le=7, alias="weeklyRuns")
    duration_weeks: int = Field(..., ge=1, le=52, alias="durationWeeks")


class TTSRequest(BaseModel):
    """Text to synthesize for the voice coach."""
    text: Optional[str] = None
    voice: str = "cherry"

    @field_validator("voice", mode="before")
    @classmethod
    def default_missing_voice(cls, value):
        if isinstance(value, str) and value.strip():
            return value
        return "cherry"


# ============ Response Schemas ============

class CoachFeedbackResponse(BaseModel):
    """Feedback envelope. success is always True."""
    success: bool = True
    feedback: str
    scene: Optional[str] = None
    timestamp: str


class DailyTask(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    day_of_week: int = Field(..., alias="dayOfWeek")
    type: str
    target_distance: Optional[float] = Field(default=None, alias="targetDistance")
    target_pace: Optional[str] = Field(default=None, alias="targetPace")
    description: str = ""


class WeekPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    week_number: int = Field(..., alias="weekNumber")
    theme: str = ""
    daily_tasks: List[DailyTask] = Field(default_factory=list, alias="dailyTasks")


class TrainingPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    goal: str
    duration_weeks: int = Field(..., alias="durationWeeks")
    difficulty: str = "beginner"
    weekly_plans: List[WeekPlan] = Field(..., alias="weeklyPlans")
    tips: List[str] = Field(default_factory=list)


class TrainingPlanResponse(BaseModel):
    success: bool = True
    plan: Dict[str, Any]
    timestamp: str
