"""CLI Utility Functions"""

from gflow.output import bold, dim, warning, print_error


def confirm(message: str) -> bool:
    """Block until the operator answers. Anything but y/yes declines."""
    try:
        answer = input(f"\n{warning('?')} {bold(message)} {dim('[y/N]: ')}").strip().lower()
    except (KeyboardInterrupt, EOFError):
        print()
        return False
    return answer in ('y', 'yes')


def always_confirm(message: str) -> bool:
    print(f"\n{warning('?')} {bold(message)} {dim('(--yes)')}")
    return True


def report_conflict(details: str, rebasing: bool) -> None:
    """Show git's conflict output verbatim plus how to carry on."""
    print_error("Stopped on conflicts. Nothing after this step was run.")
    if details:
        for line in details.splitlines():
            print(dim(f"  {line}"))
    print()
    if rebasing:
        print(f"Resolve the conflicts, then run: {bold('gflow resume-rebase')}")
        print(dim("  Or abort with: git rebase --abort"))
    else:
        print(f"Resolve the conflicts and commit, then re-run the same gflow command.")
        print(dim("  Or abort with: git merge --abort"))


def prompt_choice(prompt: str, choices: dict[str, str], default: str | None = None) -> str:
    """Ask until one of `choices` (key -> value) is entered."""
    while True:
        choice = input(prompt).strip()
        if choice == '' and default is not None:
            return default
        if choice in choices:
            return choices[choice]
