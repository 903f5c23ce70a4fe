"""
Observability Module
Provides OpenTelemetry instrumentation for planner workflows
- Decoupled from business logic
- Node instrumentation applied automatically by ObservableStateGraph
- Configurable exporters
"""

import functools
import logging
import os
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import yaml

# OpenTelemetry imports
from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader, ConsoleMetricExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

from langgraph.graph import StateGraph

logger = logging.getLogger(__name__)

# Global configuration
_config = None
_tracer = None
_meter = None
_initialized = False

DEFAULT_CONFIG: Dict[str, Any] = {
    'enabled': True,
    'service_name': 'agentic-planner-workflows',
    'service_version': '1.0.0',
    'exporters': {
        'console': False,
        'otlp': False
    },
    'otlp_endpoint': 'http://localhost:4317'
}

# ============================================================================
# Configuration Loading
# ============================================================================

def load_config(config_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load observability configuration from YAML file"""
    if config_dir is None:
        config_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'config')
    config_path = os.path.join(config_dir, 'observability_config.yaml')

    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or dict(DEFAULT_CONFIG)

    return dict(DEFAULT_CONFIG)


def _otlp_enabled(signal: str, default: bool) -> bool:
    # Accepts `otlp: true` as well as `otlp: {traces: .., metrics: ..}`
    otlp_config = _config.get('exporters', {}).get('otlp', False)
    if isinstance(otlp_config, dict):
        return otlp_config.get(signal, default)
    return bool(otlp_config)

# ============================================================================
# OTEL Initialization
# ============================================================================

def init_observability(config_dir: Optional[str] = None):
    """
    Initialize tracing & metrics for agents and workflows

    Safe to call more than once; only the first call has an effect.
    """
    global _config, _tracer, _meter, _initialized

    if _initialized:
        return

    _config = load_config(config_dir)

    if not _config.get('enabled', True):
        logger.info("Observability disabled by configuration")
        _initialized = True
        return

    resource = Resource.create({
        "service.name": _config.get('service_name', 'agentic-planner-workflows'),
        "service.version": _config.get('service_version', '1.0.0'),
    })

    # Tracing
    trace_provider = TracerProvider(resource=resource)
    console_enabled = _config.get('exporters', {}).get('console', False)

    if console_enabled:
        trace_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    otlp_traces_enabled = _otlp_enabled('traces', True)
    if otlp_traces_enabled:
        otlp_exporter = OTLPSpanExporter(
            endpoint=_config.get('otlp_endpoint', 'http://localhost:4317'),
            insecure=True
        )
        trace_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(trace_provider)
    _tracer = trace.get_tracer(__name__)

    # Metrics
    metric_readers = []

    if console_enabled:
        metric_readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter()))

    otlp_metrics_enabled = _otlp_enabled('metrics', False)
    if otlp_metrics_enabled:
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(
                    endpoint=_config.get('otlp_endpoint', 'http://localhost:4317'),
                    insecure=True
                )
            )
        )

    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=metric_readers))
    _meter = metrics.get_meter(__name__)

    active_exporters = []
    if console_enabled:
        active_exporters.append('console')
    if otlp_traces_enabled:
        active_exporters.append('otlp-traces')
    if otlp_metrics_enabled:
        active_exporters.append('otlp-metrics')

    logger.info(
        "OTEL initialized for %s (exporters: %s)",
        _config.get('service_name'),
        ', '.join(active_exporters) if active_exporters else 'none'
    )

    _initialized = True


def is_enabled() -> bool:
    return bool(_initialized and _config and _config.get('enabled', True))

# ============================================================================
# Metrics Helpers
# ============================================================================

class AgentMetrics:
    """Metrics collector for agent operations"""

    def __init__(self):
        self.agent_calls = None
        self.agent_errors = None
        self.agent_duration = None
        self.tasks_prioritized = None
        self.scheduled_hours = None
        self.transactions_analyzed = None

        if not _meter:
            return

        # Counters
        self.agent_calls = _meter.create_counter(
            name="agent.calls.total",
            description="Total number of agent calls",
            unit="1"
        )

        self.agent_errors = _meter.create_counter(
            name="agent.errors.total",
            description="Total number of agent errors",
            unit="1"
        )

        # Histograms
        self.agent_duration = _meter.create_histogram(
            name="agent.duration.seconds",
            description="Agent execution duration",
            unit="s"
        )

        self.scheduled_hours = _meter.create_histogram(
            name="schedule.hours.total",
            description="Total hours placed by the scheduler per run",
            unit="h"
        )

        self.tasks_prioritized = _meter.create_counter(
            name="tasks.prioritized.total",
            description="Number of tasks ranked by the prioritizer",
            unit="1"
        )

        self.transactions_analyzed = _meter.create_counter(
            name="transactions.analyzed.total",
            description="Number of transactions analyzed",
            unit="1"
        )

# Global metrics instance
agent_metrics = None

def get_metrics() -> AgentMetrics:
    """Get or create global metrics instance"""
    global agent_metrics
    if agent_metrics is None:
        agent_metrics = AgentMetrics()
    return agent_metrics

# ============================================================================
# Instrumentation
# ============================================================================

def _record_domain_attributes(agent_name: str, result: Dict, span, agent_metrics: AgentMetrics):
    """Attach workflow-specific counts to the agent span"""
    if agent_name == "task_prioritizer":
        prioritized = result.get('prioritized_tasks', [])
        span.set_attribute("tasks.prioritized", len(prioritized))
        if agent_metrics.tasks_prioritized:
            agent_metrics.tasks_prioritized.add(len(prioritized))
        for bucket, count in priority_distribution(prioritized).items():
            span.set_attribute(f"tasks.priority.{bucket}", count)

    elif agent_name == "schedule_builder":
        summary = result.get('schedule', {}).get('summary', {})
        span.set_attribute("schedule.days", summary.get('total_days', 0))
        span.set_attribute("schedule.hours", summary.get('total_hours', 0))
        if agent_metrics.scheduled_hours:
            agent_metrics.scheduled_hours.record(summary.get('total_hours', 0))

    elif agent_name == "transaction_analyzer":
        count = result.get('analysis', {}).get('transaction_count', 0)
        span.set_attribute("transactions.count", count)
        if agent_metrics.transactions_analyzed:
            agent_metrics.transactions_analyzed.add(count)

    elif agent_name == "report_generator":
        span.set_attribute("report.saved", bool(result.get('report_file')))


def priority_distribution(prioritized_tasks) -> Dict[str, int]:
    """Count tasks per priority bucket (high / medium / low_medium / low)"""
    buckets = {'high': 0, 'medium': 0, 'low_medium': 0, 'low': 0}
    for task in prioritized_tasks:
        score = task.get('ai_priority', 0)
        if score >= 8:
            buckets['high'] += 1
        elif score >= 6:
            buckets['medium'] += 1
        elif score >= 4:
            buckets['low_medium'] += 1
        else:
            buckets['low'] += 1
    return buckets


def instrument_agent(agent_func: Callable, agent_name: str) -> Callable:
    """
    Wrap an agent function with tracing and metrics

    Usage:
        instrumented = instrument_agent(task_prioritizer_agent, "task_prioritizer")
    """

    @functools.wraps(agent_func)
    def wrapper(state: Dict) -> Dict:
        if not is_enabled():
            return agent_func(state)

        agent_metrics = get_metrics()
        start_time = time.time()

        with _tracer.start_as_current_span(
            agent_name,
            attributes={
                "agent.name": agent_name,
                "agent.type": "planner_workflow",
            }
        ) as span:

            if agent_metrics.agent_calls:
                agent_metrics.agent_calls.add(1, {"agent.name": agent_name})

            try:
                result = agent_func(state)

                duration = time.time() - start_time
                if agent_metrics.agent_duration:
                    agent_metrics.agent_duration.record(duration, {"agent.name": agent_name, "status": "success"})

                _record_domain_attributes(agent_name, result, span, agent_metrics)

                errors = result.get('errors', [])
                if errors:
                    span.set_attribute("errors.count", len(errors))
                    for i, error in enumerate(errors[:5]):
                        span.add_event(f"error_{i}", {"error.message": error})

                span.set_status(trace.Status(trace.StatusCode.OK))
                return result

            except Exception as e:
                duration = time.time() - start_time
                if agent_metrics.agent_duration:
                    agent_metrics.agent_duration.record(duration, {"agent.name": agent_name, "status": "error"})
                if agent_metrics.agent_errors:
                    agent_metrics.agent_errors.add(1, {"agent.name": agent_name, "error.type": type(e).__name__})

                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                span.record_exception(e)
                raise

    return wrapper

# ============================================================================
# Workflow-Level Instrumentation
# ============================================================================

def create_workflow_span(workflow_name: str = "planner_workflow"):
    """Create a span for the entire workflow"""
    if not is_enabled():
        return DummySpan()

    return _tracer.start_as_current_span(
        workflow_name,
        attributes={
            "workflow.name": workflow_name,
            "workflow.timestamp": datetime.now().isoformat()
        }
    )


class DummySpan:
    """No-op context manager when observability is disabled"""
    def __enter__(self):
        return self
    def __exit__(self, *args):
        pass
    def set_attribute(self, *args):
        pass
    def add_event(self, *args):
        pass

# ============================================================================
# Event Helpers
# ============================================================================

def log_event(event_name: str, attributes: Dict[str, Any] = None):
    """Log a custom event in the current span"""
    if not is_enabled():
        return

    current_span = trace.get_current_span()
    if current_span:
        current_span.add_event(event_name, attributes or {})


# ============================================================================
# Auto-Instrumenting StateGraph
# ============================================================================

class ObservableStateGraph(StateGraph):
    """
    StateGraph that instruments every node it is given

    Usage:
        workflow = ObservableStateGraph(MyState)
        workflow.add_node("agent_name", agent_function)  # Auto-instrumented!

    Falls back to plain StateGraph behaviour when observability is disabled.
    """

    def add_node(self, node, action: Callable = None, **kwargs):
        if action is not None and callable(action) and self._should_instrument():
            return super().add_node(node, instrument_agent(action, node), **kwargs)

        return super().add_node(node, action, **kwargs)

    def _should_instrument(self) -> bool:
        return is_enabled()
