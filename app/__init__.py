"""
Application Module
Task management and financial analysis workflows
"""

from app.task_workflow import build_workflow as build_task_workflow, TaskManagementState
from app.financial_workflow import build_workflow as build_financial_workflow, FinancialAnalysisState

__all__ = [
    'build_task_workflow',
    'TaskManagementState',
    'build_financial_workflow',
    'FinancialAnalysisState'
]
