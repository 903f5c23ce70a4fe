"""
Pytest Configuration for Planner Workflow Tests
"""

import pytest
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.agents.mocks import MockFinancialAgentConfig, MockTaskAgentConfig


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "integration: marks tests that run a whole workflow graph"
    )
    config.addinivalue_line(
        "markers", "requires_db: marks tests that require PostgreSQL"
    )


@pytest.fixture(autouse=True)
def reset_mock_config():
    """Reset mock configuration before each test"""
    MockTaskAgentConfig.reset()
    MockFinancialAgentConfig.reset()
    yield
    MockTaskAgentConfig.reset()
    MockFinancialAgentConfig.reset()


@pytest.fixture
def sample_tasks():
    """Five tasks with mixed priorities and no deadlines"""
    return [
        {'id': 'task1', 'title': 'Prepare presentation deck', 'estimated_hours': 4, 'priority': 'high'},
        {'id': 'task2', 'title': 'Reply to emails', 'estimated_hours': 2, 'priority': 'medium'},
        {'id': 'task3', 'title': 'Write feature design doc', 'estimated_hours': 6, 'priority': 'high'},
        {'id': 'task4', 'title': 'Prepare team meeting', 'estimated_hours': 1, 'priority': 'medium'},
        {'id': 'task5', 'title': 'Read technical book', 'estimated_hours': 3, 'priority': 'low'},
    ]


@pytest.fixture
def transactions_csv():
    """Small two-month transaction export with one income row"""
    return (
        "Date,Description,Category,Amount\n"
        "2024-01-03,Whole Foods,Groceries,-100.00\n"
        "2024-01-10,City Apartments,Housing,-1000.00\n"
        "2024-01-15,Salary,Income,3000.00\n"
        "2024-01-20,Sushi Bar,Dining,-50.00\n"
        "2024-02-03,Whole Foods,Groceries,-120.00\n"
        "2024-02-10,City Apartments,Housing,-1000.00\n"
        "2024-02-22,Sushi Bar,Dining,-30.00\n"
    )


@pytest.fixture
def task_agent_llm(monkeypatch):
    """
    Replace the LLM call used by the task agents

    Tests set `responses` (returned in order) or `error` (raised).
    """

    class FakeLLM:
        def __init__(self):
            self.responses = []
            self.error = None
            self.prompts = []

        def __call__(self, prompt, temperature=None):
            self.prompts.append(prompt)
            if self.error:
                raise self.error
            return self.responses.pop(0) if self.responses else ''

    fake = FakeLLM()
    monkeypatch.setattr('app.agents.task_agents.invoke_llm', fake)
    return fake


@pytest.fixture
def financial_agent_llm(monkeypatch):
    """Replace the LLM call used by the budget advisor"""

    class FakeLLM:
        def __init__(self):
            self.response = ''
            self.error = None
            self.prompts = []

        def __call__(self, prompt, temperature=None):
            self.prompts.append(prompt)
            if self.error:
                raise self.error
            return self.response

    fake = FakeLLM()
    monkeypatch.setattr('app.agents.financial_agents.invoke_llm', fake)
    return fake
