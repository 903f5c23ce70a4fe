"""
Mock Agents Package
Provides mock implementations for testing without real LLM calls
"""

from app.agents.mocks.task_agents import (
    task_prioritizer_agent,
    schedule_advisor_agent,
    MockTaskAgentConfig
)

from app.agents.mocks.financial_agents import (
    budget_advisor_agent,
    MockFinancialAgentConfig
)

__all__ = [
    # Task mocks
    'task_prioritizer_agent',
    'schedule_advisor_agent',
    'MockTaskAgentConfig',

    # Financial mocks
    'budget_advisor_agent',
    'MockFinancialAgentConfig',
]
