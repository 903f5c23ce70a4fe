"""
Framework Durability Module

Provides durable execution for LangGraph workflows.
Includes:
- PostgresSaver setup and lifecycle management
- Checkpoint status inspection through the LangGraph state API
- Resume of interrupted workflows

Status and resume helpers work with any checkpointer (PostgresSaver in
production, InMemorySaver in tests).
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

try:
    from langgraph.checkpoint.postgres import PostgresSaver
    HAS_CHECKPOINT_POSTGRES = True
except ImportError:
    PostgresSaver = None  # type: ignore
    HAS_CHECKPOINT_POSTGRES = False

logger = logging.getLogger(__name__)


# ============================================================================
# PostgresSaver Management
# ============================================================================

class CheckpointerManager:
    """
    Manages PostgresSaver lifecycle for LangGraph workflows.

    One instance per connection string (see get_or_create).

    Example:
        >>> checkpointer_mgr = CheckpointerManager.get_or_create(POSTGRES_CONN)
        >>> workflow = build_workflow().compile(checkpointer=checkpointer_mgr.get_checkpointer())
    """

    _instances: Dict[str, 'CheckpointerManager'] = {}

    def __init__(self, connection_string: str, auto_setup: bool = True):
        """
        Args:
            connection_string: PostgreSQL connection string
            auto_setup: Run setup() immediately

        Raises:
            ImportError: If langgraph-checkpoint-postgres is not installed
        """
        if not HAS_CHECKPOINT_POSTGRES:
            raise ImportError(
                "langgraph-checkpoint-postgres is required for durability. "
                "Install it with: pip install langgraph-checkpoint-postgres"
            )

        self.connection_string = connection_string
        self._checkpointer_cm = None
        self._checkpointer = None
        self._is_setup = False

        if auto_setup:
            self.setup()

    def setup(self) -> None:
        """
        Open the PostgresSaver and create its tables.

        Idempotent.
        """
        if self._is_setup:
            return

        try:
            self._checkpointer_cm = PostgresSaver.from_conn_string(self.connection_string)
            self._checkpointer = self._checkpointer_cm.__enter__()
            self._checkpointer.setup()
            self._is_setup = True
            logger.info("PostgresSaver initialized and tables created")
        except Exception as e:
            logger.error(f"Failed to setup PostgresSaver: {e}")
            raise

    def get_checkpointer(self):
        """
        Returns:
            PostgresSaver instance for use with LangGraph workflows

        Raises:
            RuntimeError: If not setup
        """
        if not self._is_setup or not self._checkpointer:
            raise RuntimeError(
                "CheckpointerManager not setup. Call setup() first or use auto_setup=True"
            )

        return self._checkpointer

    def close(self) -> None:
        """Close the checkpointer and release its connection."""
        if self._checkpointer_cm:
            try:
                self._checkpointer_cm.__exit__(None, None, None)
                logger.info("PostgresSaver closed")
            except Exception as e:
                logger.error(f"Error closing PostgresSaver: {e}")

        self._checkpointer = None
        self._checkpointer_cm = None
        self._is_setup = False
        self._instances.pop(self.connection_string, None)

    @classmethod
    def get_or_create(cls, connection_string: str) -> 'CheckpointerManager':
        """Get the existing manager for this connection string or create one."""
        if connection_string not in cls._instances:
            cls._instances[connection_string] = cls(connection_string)

        return cls._instances[connection_string]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


@contextmanager
def create_checkpointer(connection_string: str):
    """
    Context manager yielding a ready PostgresSaver.

    Example:
        >>> with create_checkpointer(POSTGRES_CONN) as checkpointer:
        ...     workflow = build_workflow().compile(checkpointer=checkpointer)
        ...     result = workflow.invoke(initial_state, thread_config("run_1"))
    """
    manager = CheckpointerManager(connection_string)
    try:
        yield manager.get_checkpointer()
    finally:
        manager.close()


# ============================================================================
# Workflow Checkpoint Information
# ============================================================================

def thread_config(thread_id: str) -> Dict[str, Any]:
    """Build the invoke config that binds a run to a checkpoint thread"""
    return {"configurable": {"thread_id": thread_id}}


@dataclass
class WorkflowCheckpoint:
    """Latest checkpoint of a workflow thread."""
    thread_id: str
    checkpoint_id: Optional[str]
    next_nodes: Tuple[str, ...]
    created_at: Optional[str]

    @property
    def is_complete(self) -> bool:
        return not self.next_nodes

    def __str__(self) -> str:
        status = "complete" if self.is_complete else f"pending: {', '.join(self.next_nodes)}"
        return (
            f"Checkpoint(thread_id={self.thread_id}, "
            f"checkpoint={self.checkpoint_id}, "
            f"status={status})"
        )


def get_checkpoint_status(workflow, thread_id: str) -> Optional[WorkflowCheckpoint]:
    """
    Get the latest checkpoint of a thread.

    Args:
        workflow: Compiled workflow with a checkpointer
        thread_id: Thread ID of the run

    Returns:
        WorkflowCheckpoint, or None if the thread has never been checkpointed
    """
    snapshot = workflow.get_state(thread_config(thread_id))

    if snapshot is None or (not snapshot.values and not snapshot.next):
        return None

    return WorkflowCheckpoint(
        thread_id=thread_id,
        checkpoint_id=(snapshot.config or {}).get("configurable", {}).get("checkpoint_id"),
        next_nodes=tuple(snapshot.next),
        created_at=snapshot.created_at,
    )


def needs_resume(workflow, thread_id: str) -> bool:
    """True if the thread has a checkpoint with nodes still to run."""
    checkpoint = get_checkpoint_status(workflow, thread_id)
    return checkpoint is not None and not checkpoint.is_complete


def resume_workflow(workflow, thread_id: str) -> Dict[str, Any]:
    """
    Continue an interrupted run from its last checkpoint.

    Returns:
        Final state of the workflow

    Raises:
        ValueError: If the thread has nothing left to run
    """
    checkpoint = get_checkpoint_status(workflow, thread_id)
    if checkpoint is None:
        raise ValueError(f"No checkpoint found for thread '{thread_id}'")
    if checkpoint.is_complete:
        raise ValueError(f"Workflow thread '{thread_id}' already completed")

    logger.info(f"Resuming thread {thread_id} at {', '.join(checkpoint.next_nodes)}")

    # None input = continue from the saved checkpoint
    return workflow.invoke(None, thread_config(thread_id))
