"""
Training Plan Generator
=======================

Asks the LLM for a multi-week plan as JSON. If the answer cannot be parsed,
a simple progressive plan is built locally instead.
"""

import json
import logging
import math
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from coach.schemas import TrainingPlanRequest, TrainingPlan
from coach.llm_client import LLMClient


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "你是一位专业的跑步教练，擅长制定科学、个性化的跑步训练计划。"
    "你需要根据用户目标和历史数据，生成详细的周训练计划，并以 JSON 格式返回。"
)

DEFAULT_TIPS = [
    "循序渐进，不要急于求成",
    "每周增加跑量不超过10%",
    "感觉不适立即停止",
    "保证充足的睡眠和营养",
]

FALLBACK_TIPS = [
    "循序渐进，不要急于求成",
    "每周增加跑量不超过10%",
    "跑前热身，跑后拉伸",
    "保证充足的休息和营养",
]

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")


class TrainingPlanParseError(ValueError):
    """Model answer is not a usable training plan."""


def build_user_context(
    avg_pace: Optional[float],
    max_distance: Optional[float],
    weekly_runs: Optional[int]
) -> str:
    """Describe the runner's current level."""
    parts = []

    if avg_pace:
        mins = math.floor(avg_pace)
        secs = math.floor((avg_pace - mins) * 60)
        parts.append(f"平均配速: {mins}'{secs}\"/km")
    else:
        parts.append("平均配速: 无历史数据（新手）")

    if max_distance:
        parts.append(f"最长跑步距离: {max_distance:.1f}km")
    else:
        parts.append("最长跑步距离: 无历史数据")

    parts.append(f"每周跑步频率: {weekly_runs or 3}次")

    return "\n".join(parts)


def build_plan_prompt(goal: str, duration_weeks: int, user_context: str) -> str:
    example = {
        "goal": goal,
        "durationWeeks": duration_weeks,
        "difficulty": "beginner|intermediate|advanced",
        "weeklyPlans": [
            {
                "weekNumber": 1,
                "theme": "适应期 - 建立跑步习惯",
                "dailyTasks": [
                    {"dayOfWeek": 1, "type": "easy_run", "targetDistance": 3.0,
                     "targetPace": "6'30\"", "description": "轻松跑3公里，配速不要求，重点是完成"},
                    {"dayOfWeek": 6, "type": "long_run", "targetDistance": 4.0,
                     "targetPace": "7'00\"", "description": "周末长跑4公里，慢慢跑"},
                ],
            }
        ],
        "tips": ["每次跑步前做5-10分钟热身", "跑后拉伸很重要，预防受伤"],
    }
    example_json = json.dumps(example, ensure_ascii=False, indent=2)

    return f"""请为用户生成一个 {duration_weeks} 周的跑步训练计划。

**用户目标**：{goal}

**用户当前水平**：
{user_context}

**要求**：
1. 根据用户目标和当前水平，制定科学的渐进式训练计划
2. 每周3-5次训练，包含不同类型的训练：轻松跑、节奏跑、间歇跑、长距离跑、休息日
3. 难度递增合理，避免运动损伤
4. 包含每周训练主题和具体任务

**请严格按照以下 JSON 格式返回**（只返回 JSON，不要其他文字）：

```json
{example_json}
```

**任务类型说明**：
- easy_run: 轻松跑（恢复性训练）
- tempo_run: 节奏跑（提高乳酸阈值）
- interval: 间歇跑（提高速度）
- long_run: 长距离跑（提高耐力）
- rest: 休息日
- cross_training: 交叉训练（游泳、骑行等）

**星期编号**：1=周一, 2=周二, ..., 7=周日"""


def parse_plan_response(text: str, duration_weeks: int) -> Dict[str, Any]:
    """
    Extract and validate the plan JSON from the model answer.

    Raises:
        TrainingPlanParseError if no usable plan is found
    """
    json_str = text
    match = _JSON_FENCE.search(text)
    if match:
        json_str = match.group(1)

    try:
        raw = json.loads(json_str.strip())
    except json.JSONDecodeError as e:
        raise TrainingPlanParseError(f"Plan is not valid JSON: {e}") from e

    if not isinstance(raw, dict) or not isinstance(raw.get("weeklyPlans"), list):
        raise TrainingPlanParseError("Plan has no weeklyPlans list")

    if len(raw["weeklyPlans"]) != duration_weeks:
        logger.warning(f"Expected {duration_weeks} weeks, model returned {len(raw['weeklyPlans'])}")

    if not raw.get("tips"):
        raw["tips"] = list(DEFAULT_TIPS)

    try:
        plan = TrainingPlan.model_validate(raw)
    except ValidationError as e:
        raise TrainingPlanParseError(f"Plan does not match schema: {e}") from e

    return plan.model_dump(by_alias=True, exclude_none=True)


def _week_theme(week: int) -> str:
    if week <= 2:
        return "适应期"
    elif week <= 4:
        return "基础期"
    elif week <= 6:
        return "提高期"
    return "巩固期"


def generate_fallback_plan(goal: str, weeks: int) -> Dict[str, Any]:
    """Three runs a week, +0.5 km per week."""
    weekly_plans = []
    for week in range(1, weeks + 1):
        base = 3 + (week - 1) * 0.5
        weekly_plans.append({
            "weekNumber": week,
            "theme": _week_theme(week),
            "dailyTasks": [
                {"dayOfWeek": 1, "type": "easy_run", "targetDistance": base,
                 "targetPace": "6'30\"", "description": f"轻松跑{base:.1f}公里"},
                {"dayOfWeek": 3, "type": "easy_run", "targetDistance": base + 0.5,
                 "targetPace": "6'30\"", "description": f"轻松跑{base + 0.5:.1f}公里"},
                {"dayOfWeek": 6, "type": "long_run", "targetDistance": base + 1,
                 "targetPace": "7'00\"", "description": f"周末长跑{base + 1:.1f}公里"},
            ],
        })

    return {
        "goal": goal,
        "durationWeeks": weeks,
        "difficulty": "beginner",
        "weeklyPlans": weekly_plans,
        "tips": list(FALLBACK_TIPS),
    }


class TrainingPlanGenerator:
    """Generates training plans through the LLM."""

    def __init__(self, llm_client: LLMClient, temperature: float = 0.7, max_tokens: int = 2000):
        self.llm_client = llm_client
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(self, request: TrainingPlanRequest) -> Dict[str, Any]:
        """
        Generate a plan.

        RemoteGenerationError from the client propagates; parse failures
        fall back to the local plan.
        """
        logger.info(f"Training plan request: {request.goal}, {request.duration_weeks} weeks")

        user_context = build_user_context(request.avg_pace, request.max_distance, request.weekly_runs)
        prompt = build_plan_prompt(request.goal, request.duration_weeks, user_context)
        response = self.llm_client.generate(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )

        try:
            plan = parse_plan_response(response.text, request.duration_weeks)
        except TrainingPlanParseError as e:
            logger.error(f"Could not parse model plan, using fallback plan: {e}")
            plan = generate_fallback_plan(request.goal, request.duration_weeks)

        logger.info(f"Training plan generated: {len(plan['weeklyPlans'])} weeks")
        return plan
