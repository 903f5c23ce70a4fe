"""
Framework Module
Provides cross-cutting concerns for workflow applications: OpenTelemetry
instrumentation, durable execution, dynamic app loading and the CLI
"""

from framework.observability import (
    init_observability,
    ObservableStateGraph,
    create_workflow_span,
    instrument_agent,
    get_metrics,
    log_event
)

from framework.durability import (
    CheckpointerManager,
    create_checkpointer,
    WorkflowCheckpoint,
    get_checkpoint_status,
    needs_resume,
    resume_workflow,
    thread_config
)

from framework.loader import (
    load_workflow,
    load_and_run_app
)

from framework.cli import FrameworkCLI

__all__ = [
    # Observability
    'init_observability',
    'ObservableStateGraph',
    'create_workflow_span',
    'instrument_agent',
    'get_metrics',
    'log_event',
    # Durability & Checkpointing
    'CheckpointerManager',
    'create_checkpointer',
    'WorkflowCheckpoint',
    'get_checkpoint_status',
    'needs_resume',
    'resume_workflow',
    'thread_config',
    # Loading
    'load_workflow',
    'load_and_run_app',
    # CLI
    'FrameworkCLI',
]
