"""
Framework Application Loader
Dynamically loads and executes application workflow modules using importlib
"""

import importlib
import logging
import os
import uuid
from typing import Any, Dict, Optional

from framework.observability import init_observability, create_workflow_span
from framework.durability import (
    CheckpointerManager,
    needs_resume,
    resume_workflow,
    thread_config
)

logger = logging.getLogger(__name__)


def _get_checkpointer():
    """Return a PostgresSaver when POSTGRES_CONNECTION is set, else None"""
    postgres_conn = os.getenv("POSTGRES_CONNECTION")
    if not postgres_conn:
        return None

    try:
        checkpointer = CheckpointerManager.get_or_create(postgres_conn).get_checkpointer()
        logger.info("Checkpointing enabled with PostgreSQL")
        return checkpointer
    except Exception as e:
        logger.warning(f"Checkpointing disabled: {e}")
        return None


def load_workflow(app_module_path: str, use_mocks: bool = False, checkpointer=None):
    """
    Import an application module and compile its workflow

    The application module must provide:
        - build_workflow(use_mocks: bool = False) returning a LangGraph graph
          (compiled or uncompiled)
    """
    try:
        app_module = importlib.import_module(app_module_path)
    except ImportError as e:
        raise ImportError(f"Failed to load application module '{app_module_path}': {e}")

    if not hasattr(app_module, 'build_workflow'):
        raise AttributeError(
            f"Application module '{app_module_path}' must provide a 'build_workflow()' function"
        )

    workflow_result = app_module.build_workflow(use_mocks=use_mocks)

    # Graphs expose .compile(); compiled workflows are used as-is
    if hasattr(workflow_result, 'compile'):
        if checkpointer is not None:
            logger.info("Workflow compiled with durable checkpointing")
            return workflow_result.compile(checkpointer=checkpointer)
        return workflow_result.compile()

    return workflow_result


def load_and_run_app(
    app_module_path: str,
    initial_state: Dict[str, Any],
    use_mocks: bool = False,
    resume_thread_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Load an application module dynamically and execute its workflow

    Args:
        app_module_path: Python module path (e.g., 'app.task_workflow')
        initial_state: Initial state dictionary for the workflow
        use_mocks: Use deterministic mock agents instead of LLM-backed ones
        resume_thread_id: Continue this interrupted thread instead of starting a new run

    Returns:
        Final state after workflow execution
    """
    logger.info(f"Loading application module '{app_module_path}'")

    init_observability()

    checkpointer = _get_checkpointer()
    if resume_thread_id and checkpointer is None:
        raise RuntimeError("Resuming a workflow requires POSTGRES_CONNECTION to be set")

    workflow = load_workflow(app_module_path, use_mocks=use_mocks, checkpointer=checkpointer)

    with create_workflow_span(app_module_path.rsplit('.', 1)[-1]) as workflow_span:
        workflow_span.set_attribute("framework.app_module", app_module_path)
        workflow_span.set_attribute("framework.checkpointing_enabled", checkpointer is not None)
        workflow_span.set_attribute("framework.mocks", use_mocks)

        if resume_thread_id:
            workflow_span.set_attribute("framework.thread_id", resume_thread_id)
            if not needs_resume(workflow, resume_thread_id):
                raise RuntimeError(f"Nothing to resume for thread '{resume_thread_id}'")
            print(f"💾 Resuming interrupted workflow (thread_id: {resume_thread_id})...\n")
            result = resume_workflow(workflow, resume_thread_id)
        else:
            invoke_config = {}
            if checkpointer is not None:
                thread_id = f"workflow_{uuid.uuid4().hex[:8]}"
                workflow_span.set_attribute("framework.thread_id", thread_id)
                invoke_config = thread_config(thread_id)
                print(f"🚀 Executing workflow (thread_id: {thread_id})...\n")
            else:
                print("🚀 Executing workflow...\n")

            result = workflow.invoke(initial_state, config=invoke_config)

        workflow_span.set_attribute("framework.execution_complete", True)

    return result
