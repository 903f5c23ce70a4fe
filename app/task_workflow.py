"""
Task Management Workflow
Prioritizes tasks, packs them into working days and drafts schedule advice
"""

from typing import TypedDict, List, Dict, Any
from langgraph.graph import START, END

# Import framework's ObservableStateGraph
from framework import ObservableStateGraph

from app.agents.agent_loader import get_task_agents
from app.agents.task_agents import schedule_builder_agent, task_aggregator_agent

# ============================================================================
# State Definition
# ============================================================================

class TaskManagementState(TypedDict):
    # Configuration
    working_hours_per_day: float
    start_date: str
    exclude_weekends: bool
    day_start_hour: int

    # Task data
    tasks: List[Dict[str, Any]]
    prioritized_tasks: List[Dict[str, Any]]

    # Schedule (ScheduleResult.to_dict())
    schedule: Dict[str, Any]
    suggestions: str

    # Final output
    final_summary: str

    # Error tracking
    errors: List[str]

# ============================================================================
# Workflow Builder - Application's Public API
# ============================================================================

def build_workflow(use_mocks: bool = False):
    """
    Builds the task management LangGraph workflow

    task_prioritizer -> schedule_builder -> schedule_advisor -> task_aggregator

    Returns an uncompiled graph; the framework compiles it with the
    checkpointer for durable executions.
    """
    task_prioritizer_agent, schedule_advisor_agent = get_task_agents(use_mocks)

    workflow = ObservableStateGraph(TaskManagementState)

    workflow.add_node("task_prioritizer", task_prioritizer_agent)
    workflow.add_node("schedule_builder", schedule_builder_agent)
    workflow.add_node("schedule_advisor", schedule_advisor_agent)
    workflow.add_node("task_aggregator", task_aggregator_agent)

    workflow.add_edge(START, "task_prioritizer")
    workflow.add_edge("task_prioritizer", "schedule_builder")
    workflow.add_edge("schedule_builder", "schedule_advisor")
    workflow.add_edge("schedule_advisor", "task_aggregator")
    workflow.add_edge("task_aggregator", END)

    return workflow
