"""
End-to-end tests for the task management and financial analysis graphs

Mock agents stand in for the LLM; the real agents are exercised with a
fake LLM to check the graph wiring for both agent sets.
"""

import pytest

from app.agents.agent_loader import get_financial_agents, get_task_agents
from app.config import get_financial_initial_state, get_task_initial_state
from app.errors import InvalidConfiguration
from app.financial_workflow import build_workflow as build_financial_workflow
from app.task_workflow import build_workflow as build_task_workflow

pytestmark = pytest.mark.integration


class TestAgentLoader:
    def test_mock_task_agents(self):
        prioritizer, advisor = get_task_agents(use_mocks=True)

        assert prioritizer.__module__ == 'app.agents.mocks.task_agents'
        assert advisor.__module__ == 'app.agents.mocks.task_agents'

    def test_real_task_agents(self):
        prioritizer, advisor = get_task_agents(use_mocks=False)

        assert prioritizer.__module__ == 'app.agents.task_agents'

    def test_financial_agents(self):
        assert get_financial_agents(use_mocks=True).__module__ == 'app.agents.mocks.financial_agents'
        assert get_financial_agents(use_mocks=False).__module__ == 'app.agents.financial_agents'

    def test_mock_config_file_enables_mocks(self, monkeypatch):
        monkeypatch.setattr('app.agents.agent_loader.load_mock_config', lambda: {'enabled': True})

        prioritizer, _ = get_task_agents(use_mocks=False)

        assert prioritizer.__module__ == 'app.agents.mocks.task_agents'


class TestTaskWorkflow:
    """task_prioritizer -> schedule_builder -> schedule_advisor -> task_aggregator"""

    def test_graph_nodes(self):
        graph = build_task_workflow(use_mocks=True)

        assert set(graph.nodes) == {'task_prioritizer', 'schedule_builder', 'schedule_advisor', 'task_aggregator'}

    def test_mock_run(self, sample_tasks):
        # Arrange
        workflow = build_task_workflow(use_mocks=True).compile()
        initial_state = get_task_initial_state(tasks=sample_tasks, start_date='2024-01-01')

        # Act
        result = workflow.invoke(initial_state)

        # Assert
        schedule = result['schedule']
        assert [day['date'] for day in schedule['days']] == ['2024-01-01', '2024-01-02', '2024-01-03']
        assert [a['task_id'] for a in schedule['days'][1]['assignments']] == ['task3', 'task2']
        assert schedule['summary'] == {
            'total_items': 5,
            'total_hours': 16.0,
            'total_days': 3,
            'average_hours_per_day': 16.0 / 3,
        }
        assert 'TASK MANAGEMENT SUMMARY' in result['final_summary']
        assert result['errors'] == []

    def test_real_agents_with_fake_llm(self, task_agent_llm, sample_tasks):
        task_agent_llm.responses = ['{"priority": 3}', '{"priority": 9}', '{"priority": 5}',
                                    '{"priority": 4}', '{"priority": 1}', 'Front-load the reply backlog.']
        workflow = build_task_workflow(use_mocks=False).compile()

        result = workflow.invoke(get_task_initial_state(tasks=sample_tasks, start_date='2024-01-01'))

        assert result['prioritized_tasks'][0]['id'] == 'task2'
        assert result['suggestions'] == 'Front-load the reply backlog.'

    def test_invalid_capacity_aborts_run(self, sample_tasks):
        workflow = build_task_workflow(use_mocks=True).compile()

        with pytest.raises(InvalidConfiguration):
            workflow.invoke(get_task_initial_state(tasks=sample_tasks, working_hours_per_day=0))


class TestFinancialWorkflow:
    """transaction_fetcher -> transaction_analyzer -> budget_advisor -> report_generator"""

    def test_mock_run_with_sample_data(self, tmp_path):
        workflow = build_financial_workflow(use_mocks=True).compile()
        report_file = tmp_path / "report.html"

        result = workflow.invoke(get_financial_initial_state(report_file=str(report_file)))

        assert result['analysis']['transaction_count'] == 25
        assert result['budget']['potential_savings'] > 0
        assert report_file.exists()
        assert result['final_summary'].startswith('📊 Financial Analysis Summary')

    def test_date_range_limits_analysis(self, tmp_path, transactions_csv):
        source = tmp_path / "transactions.csv"
        source.write_text(transactions_csv, encoding='utf-8')
        workflow = build_financial_workflow(use_mocks=True).compile()

        result = workflow.invoke(get_financial_initial_state(
            source_file=str(source),
            date_range={'start': '2024-02-01', 'end': '2024-02-29'}
        ))

        assert result['analysis']['total_spending'] == 1150.0
        assert [m['month'] for m in result['analysis']['monthly_trend']] == ['2024-02']

    def test_real_budget_advisor_with_fake_llm(self, financial_agent_llm):
        financial_agent_llm.response = 'Cancel unused subscriptions.'
        workflow = build_financial_workflow(use_mocks=False).compile()

        result = workflow.invoke(get_financial_initial_state())

        assert result['budget']['recommendations'] == 'Cancel unused subscriptions.'
        assert 'Cancel unused subscriptions.' in result['html_report']
