"""
Framework CLI Builder
Provides a standard CLI interface for framework applications
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from framework.loader import load_and_run_app

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


@dataclass
class _WorkflowCommand:
    name: str
    app_module: str
    initial_state_provider: Optional[Callable]


class FrameworkCLI:
    """
    Standard CLI builder for framework applications

    Each registered workflow becomes a subcommand.

    Provides:
    - Standard CLI arguments (--mock, --debug, --resume)
    - Logging setup
    - Pretty output formatting
    - Error handling and exit codes
    - Session summaries

    Usage:
        cli = FrameworkCLI(title="Planner", description="...")
        tasks = cli.add_workflow('tasks', 'app.task_workflow', help='...',
                                 initial_state_provider=task_state)
        tasks.add_argument('--tasks-file')
        sys.exit(cli.run())
    """

    def __init__(
        self,
        title: str,
        description: str,
        show_banner: bool = True,
        show_summary: bool = True
    ):
        self.title = title
        self.description = description
        self.show_banner = show_banner
        self.show_summary = show_summary

        self.parser = argparse.ArgumentParser(
            description=description,
            formatter_class=argparse.RawDescriptionHelpFormatter
        )
        self._add_standard_arguments()
        self._subparsers = self.parser.add_subparsers(dest='workflow', metavar='WORKFLOW')
        self._subparsers.required = True
        self._workflows: Dict[str, _WorkflowCommand] = {}

    def _add_standard_arguments(self):
        self.parser.add_argument(
            '--mock',
            action='store_true',
            help='Use mock agents (no LLM calls)'
        )

        self.parser.add_argument(
            '--debug',
            action='store_true',
            help='Enable debug logging and tracebacks'
        )

        self.parser.add_argument(
            '--resume',
            metavar='THREAD_ID',
            help='Resume an interrupted workflow thread (requires POSTGRES_CONNECTION)'
        )

    def add_workflow(
        self,
        name: str,
        app_module: str,
        help: str = '',
        initial_state_provider: Optional[Callable] = None
    ) -> argparse.ArgumentParser:
        """
        Register a workflow subcommand

        The provider receives the parsed args and returns the initial state.

        Returns:
            The subcommand parser, for workflow-specific arguments
        """
        self._workflows[name] = _WorkflowCommand(name, app_module, initial_state_provider)
        return self._subparsers.add_parser(name, help=help, description=help)

    def _configure_logging(self, args):
        logging.basicConfig(
            level=logging.DEBUG if args.debug else logging.INFO,
            format=LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def _print_banner(self, args):
        if not self.show_banner:
            return

        print("\n" + "=" * 70)
        print(f"🧭 {self.title.upper()} :: {args.workflow}")
        print("=" * 70)
        print(f"\n{self.description}")

        if args.mock:
            print("\n🎭 Mode: MOCK (no LLM calls)")
        else:
            print("\n🔌 Mode: LIVE (LLM-backed agents)")

        if args.debug:
            print("🐛 Debug: ENABLED")

        print("\n" + "=" * 70 + "\n")

    def _get_initial_state(self, command: _WorkflowCommand, args) -> Dict[str, Any]:
        if command.initial_state_provider:
            return command.initial_state_provider(args)
        return {'errors': []}

    def _print_summary(self, result: Dict[str, Any]):
        if not self.show_summary:
            return

        if result.get('final_summary'):
            print("\n" + result['final_summary'])

        print("\n" + "=" * 70)
        print("📊 SESSION SUMMARY")
        print("=" * 70)

        list_fields = ['tasks', 'prioritized_tasks']
        for field in list_fields:
            if isinstance(result.get(field), list):
                print(f"{field.replace('_', ' ').title()}: {len(result[field])}")

        schedule_summary = (result.get('schedule') or {}).get('summary')
        if schedule_summary:
            print(f"Scheduled days: {schedule_summary['total_days']}")

        analysis = result.get('analysis') or {}
        if 'transaction_count' in analysis:
            print(f"Transactions analyzed: {analysis['transaction_count']}")

        if result.get('report_file'):
            print(f"Report saved to: {result['report_file']}")

        errors: List[str] = result.get('errors') or []
        if errors:
            print(f"\n⚠️  Warnings: {len(errors)}")
            for error in errors[:5]:
                print(f"  • {error}")
            if len(errors) > 5:
                print(f"  ... and {len(errors) - 5} more")
        else:
            print("\n✅ No errors")

        print("=" * 70 + "\n")

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Run the CLI application

        Returns:
            Exit code (0 for success, 1 for error, 130 on Ctrl+C)
        """
        args = self.parser.parse_args(argv)
        command = self._workflows[args.workflow]

        self._configure_logging(args)
        self._print_banner(args)

        try:
            initial_state = self._get_initial_state(command, args)
        except Exception as e:
            print(f"❌ Error getting initial state: {e}")
            return 1

        try:
            result = load_and_run_app(
                command.app_module,
                initial_state,
                use_mocks=args.mock,
                resume_thread_id=args.resume
            )

            self._print_summary(result)
            return 0

        except KeyboardInterrupt:
            print("\n\n👋 Session interrupted. Goodbye!")
            return 130

        except Exception as e:
            print(f"\n❌ Error: {e}")
            if args.debug:
                import traceback
                traceback.print_exc()
            return 1
