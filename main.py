#!/usr/bin/env python3
"""
Agentic Planner - Main Entry Point
Uses framework to dynamically load and execute the application workflows

    python main.py [--mock] [--debug] [--resume THREAD_ID] tasks [...]
    python main.py [--mock] [--debug] [--resume THREAD_ID] financial [...]
"""

import sys

from framework import FrameworkCLI
from app.config import (
    get_financial_initial_state,
    get_task_initial_state,
    load_tasks
)


def task_state_from_args(args):
    """Initial state for the task management workflow"""
    tasks = load_tasks(args.tasks_file) if args.tasks_file else None

    initial_state = get_task_initial_state(
        tasks=tasks,
        start_date=args.start_date,
        working_hours_per_day=args.hours_per_day,
        exclude_weekends=False if args.include_weekends else None
    )

    print(f"⚙️  Configuration: {len(initial_state['tasks'])} tasks, "
          f"{initial_state['working_hours_per_day']}h/day from {initial_state['start_date']}\n")
    return initial_state


def financial_state_from_args(args):
    """Initial state for the financial analysis workflow"""
    date_range = None
    if args.start or args.end:
        date_range = {'start': args.start, 'end': args.end}

    initial_state = get_financial_initial_state(
        source_file=args.input,
        date_range=date_range,
        report_file=args.save_report
    )

    print(f"⚙️  Configuration: source {initial_state['source_file'] or 'sample data'}\n")
    return initial_state


def build_cli() -> FrameworkCLI:
    cli = FrameworkCLI(
        title="Agentic Planner",
        description="Task scheduling and spending analysis with LangGraph agents"
    )

    tasks = cli.add_workflow(
        'tasks',
        'app.task_workflow',
        help='Prioritize tasks and pack them into a daily schedule',
        initial_state_provider=task_state_from_args
    )
    tasks.add_argument('--tasks-file', help='JSON file with a list of tasks (default: sample tasks)')
    tasks.add_argument('--start-date', help='First day of the schedule, YYYY-MM-DD (default: today)')
    tasks.add_argument('--hours-per-day', type=float, help='Working hours per day (default: from config)')
    tasks.add_argument('--include-weekends', action='store_true', help='Schedule work on Saturday and Sunday')

    financial = cli.add_workflow(
        'financial',
        'app.financial_workflow',
        help='Analyze transactions and draft a monthly budget',
        initial_state_provider=financial_state_from_args
    )
    financial.add_argument('--input', help='Transaction CSV file (default: sample transactions)')
    financial.add_argument('--start', help='Only include transactions on or after YYYY-MM-DD')
    financial.add_argument('--end', help='Only include transactions on or before YYYY-MM-DD')
    financial.add_argument('--save-report', metavar='PATH', help='Write the HTML report to PATH')

    return cli


def main(argv=None) -> int:
    return build_cli().run(argv)


if __name__ == "__main__":
    sys.exit(main())
