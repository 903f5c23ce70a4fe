"""
Application Configuration
Provides app-specific settings and initial workflow states
"""

import copy
import json
import os
from datetime import date
from typing import Any, Dict, List, Optional

import yaml

from app.errors import MalformedInput

CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'config')

DEFAULT_APP_CONFIG: Dict[str, Any] = {
    'name': 'agentic-planner-workflows',
    'version': '1.0.0',
    'llm': {
        'model': 'llama3.2',
        'temperature': 0.3,
        'base_url': None,
    },
    'scheduler': {
        'working_hours_per_day': 8,
        'day_start_hour': 9,
        'exclude_weekends': True,
    },
    'finance': {
        'currency_symbol': '$',
        'budget_reduction': 0.2,
        'top_merchants': 5,
    },
}

# Sample tasks used when no tasks file is given
SAMPLE_TASKS: List[Dict[str, Any]] = [
    {
        'id': 'task1',
        'title': 'Prepare presentation deck',
        'description': "Slides for next week's executive meeting",
        'estimated_hours': 4,
        'deadline': None,
        'priority': 'high',
        'category': 'Core work',
    },
    {
        'id': 'task2',
        'title': 'Reply to emails',
        'description': 'Work through the backlog of unanswered email',
        'estimated_hours': 2,
        'priority': 'medium',
        'category': 'Routine',
    },
    {
        'id': 'task3',
        'title': 'Write feature design doc',
        'description': 'Detailed design for the feature planned next quarter',
        'estimated_hours': 6,
        'priority': 'high',
        'category': 'Engineering',
    },
    {
        'id': 'task4',
        'title': 'Prepare team meeting',
        'description': 'Draft the agenda for the weekly sync',
        'estimated_hours': 1,
        'priority': 'medium',
        'category': 'Management',
    },
    {
        'id': 'task5',
        'title': 'Read technical book',
        'description': 'Self-study to sharpen skills',
        'estimated_hours': 3,
        'priority': 'low',
        'category': 'Learning',
    },
]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_app_config(config_dir: Optional[str] = None) -> Dict[str, Any]:
    """
    Returns application configuration

    Values from config/app_config.yaml override the built-in defaults.
    OLLAMA_BASE_URL overrides llm.base_url.
    """
    config_path = os.path.join(config_dir or CONFIG_DIR, 'app_config.yaml')

    file_config: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            file_config = yaml.safe_load(f) or {}

    config = _deep_merge(DEFAULT_APP_CONFIG, file_config)

    base_url = os.getenv('OLLAMA_BASE_URL')
    if base_url:
        config['llm']['base_url'] = base_url

    return config


def load_tasks(path: str) -> List[Dict[str, Any]]:
    """
    Load tasks from a JSON file

    Accepts either a list of tasks or an object with a "tasks" key.
    """
    with open(path, 'r') as f:
        data = json.load(f)

    tasks = data.get('tasks') if isinstance(data, dict) else data
    if not isinstance(tasks, list):
        raise MalformedInput(f"Tasks file '{path}' must contain a list of tasks")

    for index, task in enumerate(tasks):
        if not isinstance(task, dict) or not task.get('id'):
            raise MalformedInput(f"Task #{index + 1} in '{path}' is missing an id")

    return tasks


def get_task_initial_state(
    tasks: Optional[List[Dict[str, Any]]] = None,
    start_date: Optional[str] = None,
    working_hours_per_day: Optional[float] = None,
    exclude_weekends: Optional[bool] = None
) -> Dict[str, Any]:
    """
    Creates the initial state for the task management workflow

    Unset arguments fall back to the scheduler section of the app config.
    """
    scheduler_config = get_app_config()['scheduler']

    return {
        'tasks': copy.deepcopy(tasks if tasks is not None else SAMPLE_TASKS),
        'working_hours_per_day': (
            working_hours_per_day if working_hours_per_day is not None
            else scheduler_config['working_hours_per_day']
        ),
        'start_date': start_date or date.today().isoformat(),
        'exclude_weekends': (
            exclude_weekends if exclude_weekends is not None
            else scheduler_config['exclude_weekends']
        ),
        'day_start_hour': scheduler_config['day_start_hour'],
        'prioritized_tasks': [],
        'schedule': {},
        'suggestions': '',
        'final_summary': '',
        'errors': []
    }


def get_financial_initial_state(
    source_file: Optional[str] = None,
    date_range: Optional[Dict[str, str]] = None,
    report_file: Optional[str] = None
) -> Dict[str, Any]:
    """
    Creates the initial state for the financial analysis workflow
    """
    return {
        'source_file': source_file or '',
        'date_range': date_range,
        'report_file': report_file or '',
        'csv_data': '',
        'analysis': {},
        'budget': {},
        'html_report': '',
        'summary': '',
        'final_summary': '',
        'errors': []
    }
