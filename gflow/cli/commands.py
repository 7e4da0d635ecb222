"""CLI Commands"""

import os
import sys
from dataclasses import replace

from gflow.config import Config, ENV_OVERRIDES, load_config, save_config, get_config_path
from gflow.output import bold, dim, info, print_success
from gflow.cli.utils import prompt_choice


def display_config() -> int:
    """Display current configuration."""
    config = load_config()
    config_path = get_config_path()

    print(f"\n{bold('Current Configuration')}\n")

    if config_path:
        print(f"  {dim('Loaded from:')} {config_path}")
    else:
        print(f"  {dim('Loaded from:')} defaults (no .gflowrc found)")

    overrides = {var: os.environ[var] for var in ENV_OVERRIDES if os.environ.get(var)}
    if overrides:
        print(f"  {dim('Environment overrides:')}")
        for var, value in overrides.items():
            print(f"    {var}={value}")

    config = replace(config).apply_env()

    print()
    print(f"  {bold('Branches:')}")
    print(f"    trunk_branch:       {info(config.trunk_branch)}")
    print(f"    integration_branch: {info(config.integration_branch)}")
    print(f"    prefixes:           {info(config.feature_prefix)}/, {info(config.release_prefix)}/, {info(config.hotfix_prefix)}/")
    print(f"  {bold('Settings:')}")
    print(f"    remote:             {info(config.remote)}")
    print(f"    version_source:     {info(config.version_source)}")
    print(f"    strict_versions:    {info(str(config.strict_versions).lower())}")
    print(f"    delete_remote_branches: {info(str(config.delete_remote_branches).lower())}")
    print(f"    tag_message:        {info(config.tag_message)}")

    print(f"\n  {dim('Config locations:')}")
    print(f"    Local:  .gflowrc (in current directory)")
    print(f"    Global: ~/.gflowrc")
    print(f"\n  {dim('Run')} gflow config --setup {dim('to configure')}\n")

    return 0


def run_setup() -> int:
    """Quick setup wizard."""
    display_config()
    print(f"{bold('Setup Wizard')}\n")

    try:
        trunk = input("Trunk branch (Enter for master): ").strip() or "master"
        integration = input("Integration branch (Enter for develop): ").strip() or "develop"
        remote = input("Remote (Enter for origin): ").strip() or "origin"

        print("\nVersion source:\n")
        print("  1. auto - gitversion if installed, else latest tag (default)")
        print("  2. gitversion - always use the gitversion tool")
        print("  3. tags - latest Major.Minor.Patch tag\n")
        version_source = prompt_choice(
            "Select [1/2/3] (Enter for default): ",
            {'1': 'auto', '2': 'gitversion', '3': 'tags'},
            default='auto',
        )

        print("\nRequire Major.Minor.Patch release/hotfix names? [Y/n]: ", end='')
        strict_versions = input().strip().lower() != 'n'

        print("Also delete completed branches on the remote? [y/N]: ", end='')
        delete_remote = input().strip().lower() == 'y'
    except (KeyboardInterrupt, EOFError):
        print(dim("\nCancelled."))
        return 1

    config = Config(
        trunk_branch=trunk,
        integration_branch=integration,
        remote=remote,
        version_source=version_source,
        strict_versions=strict_versions,
        delete_remote_branches=delete_remote,
    )
    for warning in config.validate():
        print(f"Config warning: {warning}", file=sys.stderr)
    path = save_config(config, global_config=True)

    print_success(f"Saved to {path}")
    return 0


def run_install_completion() -> int:
    """Install shell tab completion."""
    shell = os.environ.get('SHELL', '')

    print(f"\n{bold('Tab Completion Setup')}\n")

    if 'zsh' in shell:
        rc_file = os.path.expanduser('~/.zshrc')
        line = 'eval "$(register-python-argcomplete gflow)"'
        print(f"Add this line to {dim(rc_file)}:\n")
        print(f"  {line}\n")
        print(f"Then run: {dim('source ~/.zshrc')}")
    elif 'bash' in shell:
        rc_file = os.path.expanduser('~/.bashrc')
        line = 'eval "$(register-python-argcomplete gflow)"'
        print(f"Add this line to {dim(rc_file)}:\n")
        print(f"  {line}\n")
        print(f"Then run: {dim('source ~/.bashrc')}")
    elif sys.platform == 'win32':
        print("For PowerShell, run:\n")
        print("  register-python-argcomplete --shell powershell gflow | Out-String | Invoke-Expression\n")
        print("To make it permanent, add it to your $PROFILE.")
    else:
        print("Run one of these based on your shell:\n")
        print(f"  {dim('# Bash/Zsh')}")
        print('  eval "$(register-python-argcomplete gflow)"\n')
        print(f"  {dim('# Fish')}")
        print("  register-python-argcomplete --shell fish gflow | source")

    print(f"\n{dim('After setup, press TAB to autocomplete commands.')}")
    return 0
