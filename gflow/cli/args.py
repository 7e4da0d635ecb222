"""CLI Argument Parsing"""

import argparse
import argcomplete

from gflow import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='gflow',
        description='Gitflow branching: start and complete feature, release and hotfix branches',
        epilog='Example: gflow start feature login-form'
    )

    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-y', '--yes', action='store_true', help='Skip confirmation before pushing')
    parser.add_argument('--remote', type=str, metavar='NAME', help='Remote to fetch from and push to (default: origin)')

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    # start
    start = commands.add_parser('start', help='Start a feature, release or hotfix branch')
    start_kinds = start.add_subparsers(dest='kind', metavar='KIND')
    start_kinds.required = True
    feature = start_kinds.add_parser('feature', help='Branch feature/<name> from develop')
    feature.add_argument('name', help='Feature name (feature/ prefix optional)')
    start_kinds.add_parser('hotfix', help='Branch hotfix/<next patch> from master')
    release = start_kinds.add_parser('release', help='Branch release/<version> from develop')
    release.add_argument('--major', action='store_true', help='Bump the major version')
    release.add_argument('--date', action='store_true', help='Use a date version: YYYYMM.DD.0')

    # complete
    complete = commands.add_parser('complete', help='Merge, tag and delete a release or hotfix branch')
    complete_kinds = complete.add_subparsers(dest='kind', metavar='KIND')
    complete_kinds.required = True
    for kind in ('hotfix', 'release'):
        sub = complete_kinds.add_parser(kind, help=f'Complete a {kind} branch')
        sub.add_argument('name', nargs='?', help=f'{kind.capitalize()} branch (default: current branch)')

    # update
    update = commands.add_parser('update', help='Rebase or merge the current branch from its source')
    update.add_argument('branch', nargs='?', help='Source branch (default: develop for feature/release, master for hotfix)')
    strategy = update.add_mutually_exclusive_group(required=True)
    strategy.add_argument('--rebase', action='store_true', help='Rebase, then force-push after confirmation')
    strategy.add_argument('--merge', action='store_true', help='Merge')
    update.add_argument('--no-ff', action='store_true', help='Always create a merge commit')

    tag = commands.add_parser('tag', help='Tag HEAD with a version (overwrites an existing tag)')
    tag.add_argument('version', help='Version, e.g. 1.4.3')

    commands.add_parser('resume-rebase', help='Stage all changes and continue a stopped rebase')

    delete = commands.add_parser('delete', help='Delete a local branch')
    delete_kinds = delete.add_subparsers(dest='kind', metavar='KIND')
    delete_kinds.required = True
    delete_branch = delete_kinds.add_parser('branch', help='Delete a local branch')
    delete_branch.add_argument('name', help='Branch name')
    delete_branch.add_argument('-f', '--force', action='store_true', help='Delete even if not fully merged')

    switch = commands.add_parser('switch', help='Check out a branch and fast-forward it')
    switch.add_argument('name', help='Branch name')

    commands.add_parser('version', help='Show the version calculated for the current branch')

    config = commands.add_parser('config', help='Show current configuration')
    config.add_argument('--setup', action='store_true', help='Configure defaults')

    commands.add_parser('install-completion', help='Install shell tab completion')

    return parser


def parse_args(argv=None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
