"""
Tests for the task management agents

The LLM is replaced by the `task_agent_llm` fixture, so no Ollama server is needed.
"""

import json
from datetime import date, timedelta

import pytest

from app.agents.llm import extract_json
from app.agents.mocks.task_agents import (
    MockTaskAgentConfig,
    schedule_advisor_agent as mock_schedule_advisor_agent,
    task_prioritizer_agent as mock_task_prioritizer_agent
)
from app.agents.task_agents import (
    NO_SCHEDULE_MESSAGE,
    RULE_BASED_REASONING,
    build_schedule_prompt,
    clamp_priority,
    rule_based_priority,
    schedule_advisor_agent,
    schedule_builder_agent,
    sort_by_priority,
    task_aggregator_agent,
    task_prioritizer_agent,
    work_items_from_tasks
)
from app.errors import InvalidConfiguration, MalformedInput

TODAY = date(2024, 1, 1)


def make_state(**overrides):
    state = {
        'tasks': [],
        'working_hours_per_day': 8,
        'start_date': '2024-01-01',
        'exclude_weekends': True,
        'day_start_hour': 9,
        'prioritized_tasks': [],
        'schedule': {},
        'suggestions': '',
        'final_summary': '',
        'errors': [],
    }
    state.update(overrides)
    return state


def prioritized(task_id, hours, priority, title=None):
    return {
        'id': task_id,
        'title': title or task_id,
        'estimated_hours': hours,
        'ai_priority': priority,
        'reasoning': 'test',
    }


class TestRuleBasedPriority:
    """Priority scoring without the LLM"""

    @pytest.mark.parametrize("declared, expected", [
        ('urgent', 9), ('high', 7), ('medium', 5), ('low', 3), ('HIGH', 7), ('whenever', 5), (None, 5),
    ])
    def test_declared_priority(self, declared, expected):
        assert rule_based_priority({'priority': declared}, TODAY) == expected

    @pytest.mark.parametrize("days_left, expected", [
        (0, 8), (1, 8), (5, 7), (7, 7), (10, 6), (14, 6), (30, 5), (-3, 8),
    ])
    def test_deadline_boost(self, days_left, expected):
        task = {'priority': 'medium', 'deadline': (TODAY + timedelta(days=days_left)).isoformat()}

        assert rule_based_priority(task, TODAY) == expected

    def test_boost_capped_at_ten(self):
        task = {'priority': 'urgent', 'deadline': TODAY.isoformat()}

        assert rule_based_priority(task, TODAY) == 10

    def test_unparseable_deadline_ignored(self):
        assert rule_based_priority({'priority': 'low', 'deadline': 'next week'}, TODAY) == 3

    @pytest.mark.parametrize("value, expected", [(None, 5), ('', 5), (12, 10), (0, 1), ('7', 7), (7.6, 8)])
    def test_clamp_priority(self, value, expected):
        assert clamp_priority(value) == expected

    @pytest.mark.parametrize("value", [float('inf'), float('-inf'), float('nan'), 'Infinity'])
    def test_clamp_priority_rejects_non_finite(self, value):
        with pytest.raises(ValueError):
            clamp_priority(value)

    def test_sort_is_stable_and_descending(self):
        tasks = [prioritized('a', 1, 5), prioritized('b', 1, 9), prioritized('c', 1, 5)]

        assert [t['id'] for t in sort_by_priority(tasks)] == ['b', 'a', 'c']


class TestExtractJson:
    """Parsing JSON out of LLM chatter"""

    def test_code_fence(self):
        text = 'Here you go:\n```json\n{"priority": 8, "reasoning": "due soon"}\n```'

        assert extract_json(text) == {'priority': 8, 'reasoning': 'due soon'}

    def test_surrounding_text(self):
        assert extract_json('Sure! {"priority": 3} Hope that helps.') == {'priority': 3}

    def test_array(self):
        assert extract_json('[{"id": 1}]', expect='array') == [{'id': 1}]

    def test_missing_json(self):
        with pytest.raises(ValueError):
            extract_json('no structured answer today')

    def test_wrong_type(self):
        with pytest.raises(ValueError):
            extract_json('[1, 2]', expect='object')


class TestTaskPrioritizerAgent:
    """LLM-backed prioritization"""

    def test_orders_by_llm_score(self, task_agent_llm, sample_tasks):
        # Arrange
        scores = [6, 4, 9, 2, 7]
        task_agent_llm.responses = [
            json.dumps({'priority': score, 'reasoning': f'score {score}'}) for score in scores
        ]
        state = make_state(tasks=sample_tasks)

        # Act
        result = task_prioritizer_agent(state)

        # Assert
        assert [t['id'] for t in result['prioritized_tasks']] == ['task3', 'task5', 'task1', 'task2', 'task4']
        assert result['prioritized_tasks'][0]['reasoning'] == 'score 9'
        assert result['errors'] == []
        assert len(task_agent_llm.prompts) == 5

    def test_llm_failure_falls_back_to_rules(self, task_agent_llm, sample_tasks):
        task_agent_llm.error = ConnectionError("Ollama not reachable")
        state = make_state(tasks=sample_tasks)

        result = task_prioritizer_agent(state)

        assert len(result['errors']) == 5, "Each failed LLM call is recorded"
        assert all(t['reasoning'] == RULE_BASED_REASONING for t in result['prioritized_tasks'])
        assert result['prioritized_tasks'][0]['ai_priority'] == 7

    def test_unparseable_answer_uses_rules_silently(self, task_agent_llm):
        task_agent_llm.responses = ['I think this one is quite important']
        state = make_state(tasks=[{'id': 't', 'title': 'T', 'estimated_hours': 1, 'priority': 'low'}])

        result = task_prioritizer_agent(state)

        assert result['prioritized_tasks'][0]['ai_priority'] == 3
        assert result['errors'] == []

    def test_overflowing_score_uses_rules_silently(self, task_agent_llm):
        # Arrange - 1e999 parses to inf
        task_agent_llm.responses = ['{"priority": 1e999, "reasoning": "off the charts"}']
        state = make_state(tasks=[{'id': 't', 'title': 'T', 'estimated_hours': 1, 'priority': 'low'}])

        # Act
        result = task_prioritizer_agent(state)

        # Assert
        task = result['prioritized_tasks'][0]
        assert task['ai_priority'] == 3, "Non-finite scores fall back to the rule-based priority"
        assert task['reasoning'] == RULE_BASED_REASONING
        assert result['errors'] == []

    def test_task_without_id_is_rejected(self, task_agent_llm):
        state = make_state(tasks=[{'id': 'ok', 'estimated_hours': 1}, {'title': 'A', 'estimated_hours': 1}])

        with pytest.raises(MalformedInput, match="Task #2 has no id"):
            task_prioritizer_agent(state)

        assert task_agent_llm.prompts == [], "Ids are checked before any LLM call"

    @pytest.mark.parametrize("task", [{'id': '', 'estimated_hours': 1}, {'id': None}, 'not a task'])
    def test_unusable_task_payloads_are_rejected(self, task_agent_llm, task):
        with pytest.raises(MalformedInput):
            task_prioritizer_agent(make_state(tasks=[task]))

    def test_missing_reasoning_gets_default(self, task_agent_llm):
        task_agent_llm.responses = ['{"priority": 15}']
        state = make_state(tasks=[{'id': 't', 'estimated_hours': 1}])

        result = task_prioritizer_agent(state)

        assert result['prioritized_tasks'][0]['ai_priority'] == 10
        assert result['prioritized_tasks'][0]['reasoning'] == 'Determined by AI analysis'

    def test_no_tasks(self, task_agent_llm):
        result = task_prioritizer_agent(make_state())

        assert result['prioritized_tasks'] == []
        assert task_agent_llm.prompts == []


class TestScheduleBuilderAgent:
    """Converting prioritized tasks into a schedule"""

    def test_builds_serialized_schedule(self):
        state = make_state(prioritized_tasks=[
            prioritized('task1', 4, 9), prioritized('task2', 2, 7), prioritized('task3', 6, 5),
        ])

        result = schedule_builder_agent(state)

        schedule = result['schedule']
        assert [day['date'] for day in schedule['days']] == ['2024-01-01', '2024-01-02']
        assert schedule['days'][0]['assignments'][1]['start_time'] == '13:00'
        assert schedule['days'][0]['assignments'][0]['notes'] == 'Priority: 9/10 - test'
        assert schedule['summary']['total_hours'] == 12

    def test_string_hours_are_parsed(self):
        state = make_state(prioritized_tasks=[prioritized('t', '2.5', 5)])

        result = schedule_builder_agent(state)

        assert result['schedule']['summary']['total_hours'] == 2.5

    def test_missing_hours_abort(self):
        state = make_state(prioritized_tasks=[{'id': 'broken', 'ai_priority': 5}])

        with pytest.raises(MalformedInput) as exc_info:
            schedule_builder_agent(state)

        assert exc_info.value.item_id == 'broken'
        assert state['schedule'] == {}, "No partial schedule on failure"

    def test_non_numeric_hours_abort(self):
        state = make_state(prioritized_tasks=[prioritized('t', 'a few', 5)])

        with pytest.raises(MalformedInput):
            schedule_builder_agent(state)

    def test_zero_capacity_aborts(self):
        state = make_state(working_hours_per_day=0, prioritized_tasks=[prioritized('t', 1, 5)])

        with pytest.raises(InvalidConfiguration):
            schedule_builder_agent(state)

    def test_bad_start_date_aborts(self):
        state = make_state(start_date='01/02/2024', prioritized_tasks=[prioritized('t', 1, 5)])

        with pytest.raises(InvalidConfiguration):
            schedule_builder_agent(state)

    def test_work_item_without_id_is_rejected(self):
        with pytest.raises(MalformedInput, match="has no id"):
            work_items_from_tasks([{'estimated_hours': 1, 'ai_priority': 5}])

    def test_work_items_keep_priority_order(self):
        items = work_items_from_tasks([prioritized('b', 1, 9), prioritized('a', 1, 3)])

        assert [item.id for item in items] == ['b', 'a']
        assert items[0].rank == 9


class TestScheduleAdvisorAgent:
    """LLM-backed schedule commentary"""

    def _scheduled_state(self, days):
        state = make_state(prioritized_tasks=[prioritized(f't{i}', 8, 5) for i in range(days)])
        return schedule_builder_agent(state)

    def test_suggestions_from_llm(self, task_agent_llm):
        task_agent_llm.responses = ['Start with the design doc while you are fresh.']
        state = self._scheduled_state(2)

        result = schedule_advisor_agent(state)

        assert result['suggestions'] == 'Start with the design doc while you are fresh.'
        assert result['errors'] == []

    def test_empty_schedule_skips_llm(self, task_agent_llm):
        result = schedule_advisor_agent(make_state(schedule={'days': [], 'summary': {}}))

        assert result['suggestions'] == NO_SCHEDULE_MESSAGE
        assert task_agent_llm.prompts == []

    def test_llm_failure_uses_fallback(self, task_agent_llm):
        task_agent_llm.error = TimeoutError("timed out")
        state = self._scheduled_state(2)

        result = schedule_advisor_agent(state)

        assert result['errors'] == ["Schedule advice error: timed out"]
        assert "busiest day" in result['suggestions']

    def test_prompt_truncates_long_schedules(self):
        state = self._scheduled_state(7)

        prompt = build_schedule_prompt(state['schedule'], state['prioritized_tasks'])

        assert "... and 2 more days" in prompt
        assert "Schedule length: 7 days" in prompt


class TestTaskAggregatorAgent:
    def test_summary_contains_schedule_and_warnings(self):
        state = schedule_builder_agent(make_state(prioritized_tasks=[
            prioritized('task1', 4, 9, title='Prepare presentation deck'),
        ]))
        state['suggestions'] = 'Keep a buffer.'
        state['errors'].append('Schedule advice error: boom')

        result = task_aggregator_agent(state)

        summary = result['final_summary']
        assert 'Prepare presentation deck (Priority: 9/10)' in summary
        assert '09:00-13:00: Prepare presentation deck' in summary
        assert 'Keep a buffer.' in summary
        assert 'Schedule advice error: boom' in summary


class TestMockTaskAgents:
    """Deterministic stand-ins used with --mock"""

    def test_mock_prioritizer_is_rule_based(self, sample_tasks):
        MockTaskAgentConfig.TODAY = TODAY

        result = mock_task_prioritizer_agent(make_state(tasks=sample_tasks))

        assert [t['id'] for t in result['prioritized_tasks']] == ['task1', 'task3', 'task2', 'task4', 'task5']
        assert result['prioritized_tasks'][0]['reasoning'] == '[MOCK] Rule-based priority'

    def test_mock_prioritizer_rejects_task_without_id(self):
        with pytest.raises(MalformedInput):
            mock_task_prioritizer_agent(make_state(tasks=[{'title': 'A', 'estimated_hours': 1}]))

    def test_mock_prioritizer_failure(self, sample_tasks):
        MockTaskAgentConfig.enable_prioritization_failure()

        with pytest.raises(Exception, match="simulated failure"):
            mock_task_prioritizer_agent(make_state(tasks=sample_tasks))

    def test_mock_advisor_failure(self):
        MockTaskAgentConfig.enable_advice_failure()

        with pytest.raises(Exception, match="simulated failure"):
            mock_schedule_advisor_agent(make_state())

    def test_reset(self):
        MockTaskAgentConfig.enable_advice_failure()
        MockTaskAgentConfig.reset()

        assert MockTaskAgentConfig.FAIL_ON_ADVICE is False
