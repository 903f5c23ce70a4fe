"""
Agent Module
Contains the task management and financial analysis agents
"""

from app.agents.task_agents import (
    task_prioritizer_agent,
    schedule_builder_agent,
    schedule_advisor_agent,
    task_aggregator_agent
)
from app.agents.financial_agents import (
    transaction_fetcher_agent,
    transaction_analyzer_agent,
    budget_advisor_agent,
    report_generator_agent
)

__all__ = [
    'task_prioritizer_agent',
    'schedule_builder_agent',
    'schedule_advisor_agent',
    'task_aggregator_agent',
    'transaction_fetcher_agent',
    'transaction_analyzer_agent',
    'budget_advisor_agent',
    'report_generator_agent'
]
