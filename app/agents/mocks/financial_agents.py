"""
Mock Financial Agents
Deterministic stand-in for the LLM-backed budget advisor
"""

from typing import Dict

from app.agents.financial_agents import compute_budget, fallback_recommendations
from app.config import get_app_config


class MockFinancialAgentConfig:
    """Configuration for mock financial agent behavior"""

    FAIL_ON_BUDGET = False

    @classmethod
    def enable_budget_failure(cls):
        cls.FAIL_ON_BUDGET = True

    @classmethod
    def reset(cls):
        """Reset to default (no failures)"""
        cls.FAIL_ON_BUDGET = False


def budget_advisor_agent(state: Dict) -> Dict:
    """Mock budget advisor - computed budget with canned recommendations"""
    print("🤖 [MOCK] Budget Advisor: Generating budget recommendations...")

    if MockFinancialAgentConfig.FAIL_ON_BUDGET:
        raise Exception("[MOCK] Budget advice failed - simulated failure")

    finance_config = get_app_config()['finance']
    symbol = finance_config['currency_symbol']

    budget = compute_budget(state['analysis'], finance_config['budget_reduction'], symbol)
    budget['recommendations'] = fallback_recommendations(state['analysis'], budget, symbol)
    state['budget'] = budget

    print("✓ [MOCK] Budget recommendations generated")
    return state
