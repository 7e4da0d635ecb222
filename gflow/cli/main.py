"""CLI Main Entry Point"""

import sys
from dataclasses import replace

from gflow.config import Config, load_config
from gflow.flow import BranchNamer, FlowError
from gflow.flow.controller import WorkflowController
from gflow.git import GitBackend, GitError, MergeConflict, NotFullyMerged
from gflow.output import bold, dim, print_command, print_error
from gflow.version import VersionUnavailable, get_calculator

from gflow.cli.args import parse_args
from gflow.cli.commands import display_config, run_setup, run_install_completion
from gflow.cli.utils import always_confirm, confirm, report_conflict

# Commands that need a version baseline
VERSIONED_COMMANDS = {('start', 'hotfix'), ('start', 'release'), ('version', None)}


def _handle_subcommands(args):
    """Handle subcommands that need no repository.

    Returns:
        tuple: (exit_code, should_exit) - exit_code if should_exit is True
    """
    if args.command == 'install-completion':
        return run_install_completion(), True
    if args.command == 'config':
        return (run_setup() if args.setup else display_config()), True
    return 0, False


def _resolve_config(args) -> Config:
    """Precedence: CLI args > environment variables > config file"""
    config = replace(load_config()).apply_env()
    if args.remote:
        config.remote = args.remote
    for warning in config.validate():
        print(f"Config warning: {warning}", file=sys.stderr)
    return config


def _build_controller(args, config: Config) -> WorkflowController:
    backend = GitBackend(echo=print_command)
    calculator = None
    if (args.command, getattr(args, 'kind', None)) in VERSIONED_COMMANDS:
        calculator = get_calculator(config.version_source, backend)
    return WorkflowController(
        backend,
        calculator,
        namer=BranchNamer(config.naming()),
        remote=config.remote,
        confirm=always_confirm if args.yes else confirm,
        tag_message=config.tag_message,
        delete_remote_branches=config.delete_remote_branches,
    )


def _dispatch(args, controller: WorkflowController) -> int:
    command = args.command
    kind = getattr(args, 'kind', None)

    if command == 'start':
        if kind == 'feature':
            controller.start_feature(args.name)
        elif kind == 'hotfix':
            controller.start_hotfix()
        else:
            controller.start_release(major_version=args.major, use_date=args.date)
    elif command == 'complete':
        if kind == 'hotfix':
            controller.complete_hotfix(args.name)
        else:
            controller.complete_release(args.name)
    elif command == 'update':
        controller.update(args.branch, rebase=args.rebase, no_fast_forward=args.no_ff)
    elif command == 'tag':
        controller.tag(args.version)
    elif command == 'resume-rebase':
        controller.resume_rebase()
    elif command == 'delete':
        _delete_branch(controller, args.name, args.force)
    elif command == 'switch':
        controller.switch_to(args.name)
    elif command == 'version':
        version = controller.current_version()
        print(f"{bold(str(version))} {dim(f'({controller.calculator.name})')}")
    return 0


def _delete_branch(controller: WorkflowController, name: str, force: bool) -> None:
    try:
        controller.delete_branch(name, force=force)
    except NotFullyMerged as e:
        raise NotFullyMerged(f"{e}. Re-run with --force to delete it anyway: "
                             f"gflow delete branch {name} --force")


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    # Handle subcommands that exit early
    exit_code, should_exit = _handle_subcommands(args)
    if should_exit:
        return exit_code

    config = _resolve_config(args)

    try:
        controller = _build_controller(args, config)
        return _dispatch(args, controller)
    except MergeConflict as e:
        report_conflict(e.details, e.rebasing)
        return 1
    except (FlowError, VersionUnavailable, GitError) as e:
        print_error(str(e))
        return 1
