"""
Task Agent Module
Handles task prioritization, schedule building and schedule optimization advice
"""

import math
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from framework.observability import log_event, priority_distribution

from app.agents.llm import extract_json, invoke_llm
from app.errors import InvalidConfiguration, MalformedInput
from app.scheduler import (
    ScheduleDay,
    ScheduleObserver,
    ScheduleResult,
    WorkItem,
    schedule_work_items
)

BASE_PRIORITIES = {'urgent': 9, 'high': 7, 'medium': 5, 'low': 3}
DEFAULT_PRIORITY = 5
AI_REASONING_DEFAULT = "Determined by AI analysis"
RULE_BASED_REASONING = "Rule-based priority"
NO_SCHEDULE_MESSAGE = "No tasks were scheduled, so there is nothing to optimize."

PRIORITY_LABELS = {
    'high': 'High (8-10)',
    'medium': 'Medium (6-7)',
    'low_medium': 'Low-Medium (4-5)',
    'low': 'Low (1-3)',
}

# ============================================================================
# Priority Helpers
# ============================================================================

def rule_based_priority(task: Dict[str, Any], today: Optional[date] = None) -> int:
    """
    Score a task 1-10 from its declared priority and deadline

    urgent=9, high=7, medium=5, low=3 (otherwise 5), then a deadline within
    1 / 7 / 14 days adds 3 / 2 / 1, capped at 10.
    """
    today = today or date.today()
    priority = BASE_PRIORITIES.get(str(task.get('priority') or '').lower(), DEFAULT_PRIORITY)

    deadline = task.get('deadline')
    if deadline:
        try:
            days_until_deadline = (date.fromisoformat(str(deadline)[:10]) - today).days
        except ValueError:
            days_until_deadline = None

        if days_until_deadline is not None:
            if days_until_deadline <= 1:
                priority = min(10, priority + 3)
            elif days_until_deadline <= 7:
                priority = min(10, priority + 2)
            elif days_until_deadline <= 14:
                priority = min(10, priority + 1)

    return priority


def clamp_priority(value: Any) -> int:
    """Coerce an LLM-supplied score into the 1-10 range (missing -> 5)"""
    if value is None or value == '':
        return DEFAULT_PRIORITY
    score = float(value)
    if not math.isfinite(score):
        raise ValueError(f"Priority score is not a finite number: {value!r}")
    return max(1, min(10, int(round(score))))


def validate_task_ids(tasks: List[Any]) -> None:
    """Every task must be a dict carrying a non-empty id"""
    for index, task in enumerate(tasks, 1):
        if not isinstance(task, dict):
            raise MalformedInput(f"Task #{index} is not an object: {task!r}")
        task_id = task.get('id')
        if task_id is None or str(task_id).strip() == '':
            raise MalformedInput(f"Task #{index} has no id: {task!r}")


def sort_by_priority(prioritized_tasks: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Highest ai_priority first; equal scores keep their input order"""
    return sorted(prioritized_tasks, key=lambda t: t['ai_priority'], reverse=True)


def print_priority_distribution(prioritized_tasks: List[Dict[str, Any]]) -> None:
    print("📊 Priority distribution:")
    for bucket, count in priority_distribution(prioritized_tasks).items():
        if count:
            print(f"   {PRIORITY_LABELS[bucket]}: {count} tasks")


def build_priority_prompt(task: Dict[str, Any]) -> str:
    return f"""Analyze the following task and assign it a priority score from 1 to 10.

Task: {task.get('title', task.get('id'))}
Description: {task.get('description') or 'none'}
Estimated hours: {task.get('estimated_hours')}
Deadline: {task.get('deadline') or 'none'}
Declared priority: {task.get('priority') or 'none'}
Category: {task.get('category') or 'none'}

Weigh these criteria:
1. Urgency (time until the deadline) - 20%
2. Importance (impact and value) - 30%
3. Complexity (dependencies on other tasks) - 20%
4. Resource efficiency (value for the time spent) - 30%

10 = highest priority (do it immediately)
1 = lowest priority (can be postponed)

Respond in JSON:
{{
  "priority": <score 1-10>,
  "reasoning": "Reason for the priority in under 100 characters"
}}

Return ONLY the JSON object, nothing else."""


def score_task_with_llm(task: Dict[str, Any], today: date) -> Tuple[int, str, Optional[str]]:
    """
    Ask the LLM for a priority score

    Returns:
        (priority, reasoning, error). error is set only when the LLM call
        itself failed; unparseable answers fall back silently to rules.
    """
    try:
        response_text = invoke_llm(build_priority_prompt(task))
    except Exception as e:
        error_msg = f"Task prioritization error for '{task['id']}': {str(e)}"
        return rule_based_priority(task, today), RULE_BASED_REASONING, error_msg

    try:
        parsed = extract_json(response_text, expect='object')
        priority = clamp_priority(parsed.get('priority'))
        reasoning = parsed.get('reasoning') or AI_REASONING_DEFAULT
    except (ValueError, TypeError):
        print(f"⚠️  Failed to parse AI response for task \"{task.get('title') or task['id']}\", using rule-based priority")
        return rule_based_priority(task, today), RULE_BASED_REASONING, None

    return priority, reasoning, None

# ============================================================================
# Task Prioritizer Agent
# ============================================================================

def task_prioritizer_agent(state: Dict) -> Dict:
    """Scores every task with the LLM and orders them by priority"""
    tasks = state.get('tasks', [])
    print(f"🔍 Task Prioritizer: Analyzing {len(tasks)} tasks...")

    if not tasks:
        state['prioritized_tasks'] = []
        print("✓ No tasks to prioritize")
        return state

    validate_task_ids(tasks)
    today = date.today()
    prioritized = []

    for index, task in enumerate(tasks, 1):
        print(f"📝 Processing task {index}/{len(tasks)}: {task.get('title') or task['id']}")

        priority, reasoning, error_msg = score_task_with_llm(task, today)
        if error_msg:
            state['errors'].append(error_msg)
            print(f"✗ {error_msg}")

        prioritized.append({**task, 'ai_priority': priority, 'reasoning': reasoning})
        print(f"✓ Task \"{task.get('title') or task['id']}\" assigned priority: {priority}/10")

    state['prioritized_tasks'] = sort_by_priority(prioritized)

    print("🎯 Task prioritization completed")
    print_priority_distribution(state['prioritized_tasks'])

    return state

# ============================================================================
# Schedule Builder Agent
# ============================================================================

def parse_start_date(value: Any) -> date:
    if not value:
        return date.today()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidConfiguration(f"start_date must be an ISO date (YYYY-MM-DD), got {value!r}")


def _parse_hours(task: Dict[str, Any]) -> float:
    value = task.get('estimated_hours')
    if value is None or isinstance(value, bool):
        raise MalformedInput(f"Task '{task.get('id')}' has no usable estimated_hours", item_id=task.get('id'))
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MalformedInput(
            f"Task '{task.get('id')}' has non-numeric estimated_hours: {value!r}",
            item_id=task.get('id')
        )


def work_items_from_tasks(prioritized_tasks: List[Dict[str, Any]]) -> List[WorkItem]:
    """Convert prioritized task payloads into scheduler work items"""
    validate_task_ids(prioritized_tasks)
    return [
        WorkItem(
            id=str(task.get('id')),
            duration_hours=_parse_hours(task),
            rank=task.get('ai_priority', 0),
            annotation=f"Priority: {task.get('ai_priority', '?')}/10 - {task.get('reasoning', '')}",
        )
        for task in prioritized_tasks
    ]


class ScheduleProgressObserver(ScheduleObserver):
    """Prints each placed task and records schedule events on the current span"""

    def __init__(self, titles: Dict[str, str]):
        self.titles = titles

    def on_day_flushed(self, day: ScheduleDay) -> None:
        for assignment in day.assignments:
            title = self.titles.get(assignment.task_id, assignment.task_id)
            print(f"📋 Scheduled: \"{title}\" on {day.date.isoformat()} "
                  f"({assignment.start_time}-{assignment.end_time})")

        log_event("schedule.day_flushed", {
            "schedule.date": day.date.isoformat(),
            "schedule.day_hours": day.total_hours,
            "schedule.day_items": len(day.assignments),
        })

    def on_complete(self, result: ScheduleResult) -> None:
        log_event("schedule.complete", {
            "schedule.total_days": result.summary.total_days,
            "schedule.total_hours": result.summary.total_hours,
        })


def schedule_builder_agent(state: Dict) -> Dict:
    """Packs prioritized tasks into working days"""
    print("📅 Schedule Builder: Creating schedule...")

    prioritized_tasks = state.get('prioritized_tasks', [])
    hours_per_day = state.get('working_hours_per_day', 8)
    exclude_weekends = state.get('exclude_weekends', True)
    start_date = parse_start_date(state.get('start_date'))

    print(f"   ⏰ Working hours per day: {hours_per_day}h")
    print(f"   📅 Start date: {start_date.isoformat()}")
    print(f"   🏖️  Exclude weekends: {'Yes' if exclude_weekends else 'No'}")

    titles = {str(t.get('id')): t.get('title', str(t.get('id'))) for t in prioritized_tasks}

    # Configuration and input errors abort the workflow (no partial schedule)
    result = schedule_work_items(
        work_items_from_tasks(prioritized_tasks),
        start_date,
        capacity_hours_per_day=hours_per_day,
        skip_weekends=exclude_weekends,
        day_start_hour=state.get('day_start_hour', 9),
        observer=ScheduleProgressObserver(titles)
    )

    state['schedule'] = result.to_dict()
    print(f"✓ Scheduled {result.summary.total_items} tasks over {result.summary.total_days} days")

    return state

# ============================================================================
# Schedule Advisor Agent
# ============================================================================

def format_hours(hours: float) -> str:
    return f"{hours:g}"


def build_schedule_prompt(schedule: Dict[str, Any], prioritized_tasks: List[Dict[str, Any]]) -> str:
    """Summarize the schedule (first 5 days in detail) for the LLM"""
    summary = schedule['summary']
    days = schedule['days']
    tasks_by_id = {str(t.get('id')): t for t in prioritized_tasks}

    day_blocks = []
    for day in days[:5]:
        lines = [f"Date: {day['date']} ({format_hours(day['total_hours'])}h)", "Tasks:"]
        for assignment in day['assignments']:
            task = tasks_by_id.get(assignment['task_id'], {})
            lines.append(
                f"- {assignment['start_time']}-{assignment['end_time']}: "
                f"{task.get('title', assignment['task_id'])} "
                f"(priority: {task.get('ai_priority', '?')}/10)"
            )
        day_blocks.append("\n".join(lines))

    more_days = f"\n... and {len(days) - 5} more days" if len(days) > 5 else ""
    schedule_text = "\n\n".join(day_blocks)

    return f"""Analyze the following task schedule and suggest optimizations.

Schedule overview:
- Total tasks: {summary['total_items']}
- Total hours: {format_hours(summary['total_hours'])}
- Schedule length: {summary['total_days']} days
- Average hours per day: {summary['average_hours_per_day']:.1f}

{schedule_text}{more_days}

Cover these points:
1. Efficiency improvements
2. Risk factors
3. Placement that accounts for focus and energy
4. Keeping slack time
5. Finishing high-priority tasks early

Keep it concrete and practical, under 300 characters."""


def fallback_suggestions(schedule: Dict[str, Any]) -> str:
    """Deterministic advice used when no LLM answer is available"""
    days = schedule.get('days') or []
    if not days:
        return NO_SCHEDULE_MESSAGE

    summary = schedule['summary']
    busiest = max(days, key=lambda d: d['total_hours'])
    return (
        f"The plan spans {summary['total_days']} day(s) at "
        f"{summary['average_hours_per_day']:.1f}h per day on average. "
        f"{busiest['date']} is the busiest day ({format_hours(busiest['total_hours'])}h): "
        f"keep a buffer there and start each day with the highest-priority task."
    )


def schedule_advisor_agent(state: Dict) -> Dict:
    """Asks the LLM for optimization suggestions on the finished schedule"""
    print("🤖 Schedule Advisor: Generating optimization suggestions...")

    schedule = state.get('schedule') or {}
    if not schedule.get('days'):
        state['suggestions'] = NO_SCHEDULE_MESSAGE
        print("✓ Nothing scheduled - skipping suggestions")
        return state

    try:
        prompt = build_schedule_prompt(schedule, state.get('prioritized_tasks', []))
        suggestions = invoke_llm(prompt, temperature=0.7)
        state['suggestions'] = suggestions or fallback_suggestions(schedule)
        print("✓ Suggestions generated")
    except Exception as e:
        error_msg = f"Schedule advice error: {str(e)}"
        state['errors'].append(error_msg)
        state['suggestions'] = fallback_suggestions(schedule)
        print(f"✗ {error_msg}")

    return state

# ============================================================================
# Aggregator Agent
# ============================================================================

def task_aggregator_agent(state: Dict) -> Dict:
    """Compiles the prioritized tasks, schedule and advice into a report"""
    print("📊 Aggregator: Compiling final summary...")

    prioritized = state.get('prioritized_tasks', [])
    schedule = state.get('schedule') or {'days': [], 'summary': {}}
    days = schedule.get('days', [])
    summary = schedule.get('summary', {})
    titles = {str(t.get('id')): t.get('title', str(t.get('id'))) for t in prioritized}

    output = []
    output.append("=" * 80)
    output.append("🗂️  TASK MANAGEMENT SUMMARY")
    output.append("=" * 80)

    output.append(f"\n🎯 PRIORITIZED TASKS ({len(prioritized)} tasks)")
    output.append("-" * 80)
    if prioritized:
        for i, task in enumerate(prioritized[:3], 1):
            output.append(f"  {i}. {task.get('title', task.get('id'))} (Priority: {task['ai_priority']}/10)")
            output.append(f"     {task.get('reasoning', '')}")
        if len(prioritized) > 3:
            output.append(f"  ... and {len(prioritized) - 3} more")
    else:
        output.append("\n✨ No tasks to plan\n")

    output.append(f"\n📅 SCHEDULE OVERVIEW")
    output.append("-" * 80)
    for day in days[:3]:
        output.append(f"  {day['date']} ({format_hours(day['total_hours'])}h):")
        for assignment in day['assignments']:
            title = titles.get(assignment['task_id'], assignment['task_id'])
            output.append(f"    {assignment['start_time']}-{assignment['end_time']}: {title}")
    if len(days) > 3:
        output.append(f"    ... and {len(days) - 3} more days")

    if summary:
        output.append(f"\n📊 SUMMARY")
        output.append("-" * 80)
        output.append(f"  Total tasks: {summary['total_items']}")
        output.append(f"  Total hours: {format_hours(summary['total_hours'])}h")
        output.append(f"  Total days: {summary['total_days']}")
        output.append(f"  Average hours/day: {summary['average_hours_per_day']:.1f}h")

    output.append(f"\n💡 SUGGESTIONS")
    output.append("-" * 80)
    output.append(f"  {state.get('suggestions') or NO_SCHEDULE_MESSAGE}")

    if state.get('errors'):
        output.append(f"\n⚠️  WARNINGS")
        output.append("-" * 80)
        for error in state['errors']:
            output.append(f"  • {error}")

    output.append("=" * 80)

    state['final_summary'] = "\n".join(output)
    print("✓ Final summary compiled")

    return state
