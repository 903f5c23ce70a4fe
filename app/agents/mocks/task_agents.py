"""
Mock Task Agents
Deterministic stand-ins for the LLM-backed task agents
Useful for testing, offline runs and checkpoint/resume scenarios
"""

from datetime import date
from typing import Dict

from app.agents.task_agents import (
    fallback_suggestions,
    print_priority_distribution,
    rule_based_priority,
    sort_by_priority,
    validate_task_ids,
    NO_SCHEDULE_MESSAGE
)


class MockTaskAgentConfig:
    """Configuration for mock task agent behavior"""

    FAIL_ON_PRIORITIZE = False
    FAIL_ON_ADVICE = False

    # Fixed reference date for deadline scoring (None = today)
    TODAY = None

    @classmethod
    def enable_prioritization_failure(cls):
        cls.FAIL_ON_PRIORITIZE = True

    @classmethod
    def enable_advice_failure(cls):
        cls.FAIL_ON_ADVICE = True

    @classmethod
    def reset(cls):
        """Reset to default (no failures)"""
        cls.FAIL_ON_PRIORITIZE = False
        cls.FAIL_ON_ADVICE = False
        cls.TODAY = None


def task_prioritizer_agent(state: Dict) -> Dict:
    """Mock prioritizer - rule-based scores only, no LLM"""
    tasks = state.get('tasks', [])
    print(f"🔍 [MOCK] Task Prioritizer: Scoring {len(tasks)} tasks with rules...")

    if MockTaskAgentConfig.FAIL_ON_PRIORITIZE:
        raise Exception("[MOCK] Task prioritization failed - simulated failure")

    validate_task_ids(tasks)
    today = MockTaskAgentConfig.TODAY or date.today()
    prioritized = [
        {**task, 'ai_priority': rule_based_priority(task, today), 'reasoning': "[MOCK] Rule-based priority"}
        for task in tasks
    ]

    state['prioritized_tasks'] = sort_by_priority(prioritized)
    print(f"✓ [MOCK] Prioritized {len(prioritized)} tasks")
    print_priority_distribution(state['prioritized_tasks'])

    return state


def schedule_advisor_agent(state: Dict) -> Dict:
    """Mock advisor - deterministic suggestions derived from the schedule"""
    print("🤖 [MOCK] Schedule Advisor: Generating suggestions...")

    if MockTaskAgentConfig.FAIL_ON_ADVICE:
        raise Exception("[MOCK] Schedule advice failed - simulated failure")

    schedule = state.get('schedule') or {}
    state['suggestions'] = fallback_suggestions(schedule) if schedule.get('days') else NO_SCHEDULE_MESSAGE
    print("✓ [MOCK] Suggestions generated")

    return state
