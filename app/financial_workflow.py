"""
Financial Analysis Workflow
Loads transactions, analyzes spending, drafts a budget and renders a report
"""

from typing import TypedDict, List, Dict, Any, Optional
from langgraph.graph import START, END

from framework import ObservableStateGraph

from app.agents.agent_loader import get_financial_agents
from app.agents.financial_agents import (
    transaction_fetcher_agent,
    transaction_analyzer_agent,
    report_generator_agent
)

# ============================================================================
# State Definition
# ============================================================================

class FinancialAnalysisState(TypedDict):
    # Input
    source_file: str
    date_range: Optional[Dict[str, str]]
    report_file: str

    # Data
    csv_data: str
    analysis: Dict[str, Any]
    budget: Dict[str, Any]

    # Output
    html_report: str
    summary: str
    final_summary: str

    # Error tracking
    errors: List[str]

# ============================================================================
# Workflow Builder - Application's Public API
# ============================================================================

def build_workflow(use_mocks: bool = False):
    """
    Builds the financial analysis LangGraph workflow

    transaction_fetcher -> transaction_analyzer -> budget_advisor -> report_generator
    """
    budget_advisor_agent = get_financial_agents(use_mocks)

    workflow = ObservableStateGraph(FinancialAnalysisState)

    workflow.add_node("transaction_fetcher", transaction_fetcher_agent)
    workflow.add_node("transaction_analyzer", transaction_analyzer_agent)
    workflow.add_node("budget_advisor", budget_advisor_agent)
    workflow.add_node("report_generator", report_generator_agent)

    workflow.add_edge(START, "transaction_fetcher")
    workflow.add_edge("transaction_fetcher", "transaction_analyzer")
    workflow.add_edge("transaction_analyzer", "budget_advisor")
    workflow.add_edge("budget_advisor", "report_generator")
    workflow.add_edge("report_generator", END)

    return workflow
