"""CLI Main Entry Point"""

import os

from yawn.config import ConfigError, ResolvedConfig, format_config_report, resolve_config
from yawn.git import GitClient, GitError
from yawn.llm import ClaudeClient
from yawn.output import debug, dim, print_error
from yawn.workflow import CommitWorkflow, WorkflowError

from yawn.cli.args import flag_overrides, parse_args
from yawn.cli.commands import display_config, run_generate_config, run_install_completion


def _handle_subcommands(args):
    """Handle subcommands that exit before configuration is resolved.

    Returns:
        tuple: (exit_code, should_exit) - exit_code if should_exit is True
    """
    if args.install_completion:
        return run_install_completion(), True
    if args.generate_config:
        return run_generate_config(), True
    return 0, False


def _print_verbose_config(resolved: ResolvedConfig) -> None:
    debug("CONFIG", "Resolved settings:")
    for line in format_config_report(resolved):
        debug("CONFIG", f"  {line}")


def _run_workflow(resolved: ResolvedConfig) -> int:
    config = resolved.config
    try:
        git = GitClient(verbose=config.verbose)
    except GitError as e:
        print_error(str(e))
        return 1

    workflow = CommitWorkflow(resolved, git, ClaudeClient(api_key=config.api_key))
    try:
        workflow.run()
    except WorkflowError as e:
        print_error(str(e))
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    exit_code, should_exit = _handle_subcommands(args)
    if should_exit:
        return exit_code

    try:
        resolved = resolve_config(os.getcwd(), flag_overrides(args))
    except ConfigError as e:
        print_error(f"Error loading configuration: {e}")
        return 1

    if args.show_config:
        return display_config(resolved)

    if resolved.config.verbose:
        _print_verbose_config(resolved)

    try:
        return _run_workflow(resolved)
    except KeyboardInterrupt:
        print()
        print(dim("Cancelled."))
        return 130
