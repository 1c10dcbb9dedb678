"""
Training Plan Generator Tests
=============================
"""

import json

import pytest

from coach.llm_client import MockLLMClient, RemoteGenerationError
from coach.schemas import TrainingPlanRequest
from coach.training_plan import (
    DEFAULT_TIPS, TrainingPlanGenerator, TrainingPlanParseError,
    build_user_context, generate_fallback_plan, parse_plan_response,
)


PLAN = {
    "goal": "5km入门",
    "durationWeeks": 2,
    "difficulty": "beginner",
    "weeklyPlans": [
        {"weekNumber": 1, "theme": "适应期", "dailyTasks": [
            {"dayOfWeek": 1, "type": "easy_run", "targetDistance": 3.0,
             "targetPace": "6'30\"", "description": "轻松跑3公里"},
        ]},
        {"weekNumber": 2, "theme": "适应期", "dailyTasks": [
            {"dayOfWeek": 2, "type": "rest", "description": "休息"},
        ]},
    ],
    "tips": ["跑前热身"],
}


class TestUserContext:

    def test_with_history(self):
        context = build_user_context(6.5, 8.25, 4)
        assert context.split("\n") == [
            "平均配速: 6'30\"/km",
            "最长跑步距离: 8.2km",
            "每周跑步频率: 4次",
        ]

    def test_beginner(self):
        context = build_user_context(None, None, None)
        assert "无历史数据（新手）" in context
        assert "每周跑步频率: 3次" in context


class TestParsePlan:

    def test_fenced_json(self):
        text = "Here is your plan:\n```json\n" + json.dumps(PLAN, ensure_ascii=False) + "\n```"
        plan = parse_plan_response(text, 2)

        assert plan["goal"] == "5km入门"
        assert len(plan["weeklyPlans"]) == 2
        assert plan["weeklyPlans"][0]["dailyTasks"][0]["targetDistance"] == 3.0
        assert plan["tips"] == ["跑前热身"]

    def test_bare_json_and_default_tips(self):
        raw = dict(PLAN, tips=[])
        plan = parse_plan_response(json.dumps(raw), 2)
        assert plan["tips"] == DEFAULT_TIPS

    def test_week_count_mismatch_is_accepted(self):
        plan = parse_plan_response(json.dumps(PLAN), 4)
        assert len(plan["weeklyPlans"]) == 2

    @pytest.mark.parametrize("text", [
        "Sorry, I cannot help with that.",
        json.dumps({"goal": "5k"}),
        json.dumps({"goal": "5k", "durationWeeks": 1, "weeklyPlans": [{"theme": "no number"}]}),
    ])
    def test_unusable_answers(self, text):
        with pytest.raises(TrainingPlanParseError):
            parse_plan_response(text, 1)


class TestFallbackPlan:

    def test_progression(self):
        plan = generate_fallback_plan("10km", 8)

        assert plan["difficulty"] == "beginner"
        assert [w["theme"] for w in plan["weeklyPlans"]] == [
            "适应期", "适应期", "基础期", "基础期", "提高期", "提高期", "巩固期", "巩固期",
        ]
        week3 = plan["weeklyPlans"][2]["dailyTasks"]
        assert [t["dayOfWeek"] for t in week3] == [1, 3, 6]
        assert [t["targetDistance"] for t in week3] == [4.0, 4.5, 5.0]
        assert week3[2]["description"] == "周末长跑5.0公里"


class TestTrainingPlanGenerator:

    def request(self):
        return TrainingPlanRequest.model_validate({"goal": "5km入门", "durationWeeks": 2})

    def test_model_plan(self):
        llm = MockLLMClient(text="```json\n" + json.dumps(PLAN) + "\n```")
        plan = TrainingPlanGenerator(llm).generate(self.request())

        assert plan["weeklyPlans"][1]["dailyTasks"][0]["type"] == "rest"
        system, user = llm.last_messages
        assert "训练计划" in system["content"]
        assert "2 周" in user["content"]
        assert llm.last_temperature == 0.7

    def test_unparsable_answer_uses_fallback(self):
        llm = MockLLMClient(text="I think you should run more.")
        plan = TrainingPlanGenerator(llm).generate(self.request())

        assert plan == generate_fallback_plan("5km入门", 2)

    def test_remote_error_propagates(self):
        llm = MockLLMClient(error=RemoteGenerationError("down"))
        with pytest.raises(RemoteGenerationError):
            TrainingPlanGenerator(llm).generate(self.request())
