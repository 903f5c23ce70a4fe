"""
Application Errors
Error kinds raised by the planner workflows
"""

from typing import Optional


class PlannerError(Exception):
    """Base class for all planner errors"""


class InvalidConfiguration(PlannerError):
    """Raised when a workflow setting cannot be used (e.g. non-positive capacity)"""


class MalformedInput(PlannerError):
    """Raised when an input item is missing data or carries an unusable value"""

    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id


class InsufficientDataError(PlannerError):
    """Raised when there is not enough data to run an analysis"""
