"""
Agent Loader
Dynamically loads real or mock agents based on configuration
"""

import os
import yaml
from typing import Callable, Tuple

from app.config import CONFIG_DIR


def load_mock_config(config_dir: str = None) -> dict:
    """Load mock configuration from YAML file"""
    config_path = os.path.join(config_dir or CONFIG_DIR, 'mock_config.yaml')

    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {'enabled': False}

    # Default: mocks disabled
    return {'enabled': False}


def mocks_requested(use_mocks: bool = False) -> bool:
    """True when the caller asks for mocks or mock_config.yaml enables them"""
    return use_mocks or bool(load_mock_config().get('enabled', False))


def get_task_agents(use_mocks: bool = False) -> Tuple[Callable, Callable]:
    """
    Get LLM-backed task agents (real or mock)

    Returns:
        (task_prioritizer_agent, schedule_advisor_agent)
    """
    if mocks_requested(use_mocks):
        print("🎭 Loading MOCK task agents")
        from app.agents.mocks.task_agents import (
            task_prioritizer_agent,
            schedule_advisor_agent
        )
    else:
        print("🔌 Loading REAL task agents (requires Ollama)")
        from app.agents.task_agents import (
            task_prioritizer_agent,
            schedule_advisor_agent
        )
    return task_prioritizer_agent, schedule_advisor_agent


def get_financial_agents(use_mocks: bool = False) -> Callable:
    """
    Get the LLM-backed financial agent (real or mock)

    Returns:
        budget_advisor_agent
    """
    if mocks_requested(use_mocks):
        print("🎭 Loading MOCK financial agents")
        from app.agents.mocks.financial_agents import budget_advisor_agent
    else:
        print("🔌 Loading REAL financial agents (requires Ollama)")
        from app.agents.financial_agents import budget_advisor_agent
    return budget_advisor_agent
