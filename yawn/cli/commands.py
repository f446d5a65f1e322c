"""CLI Commands"""

import os
import sys

from yawn.config import (
    CONFIG_DIR_ENV,
    PROJECT_CONFIG_NAME,
    ResolvedConfig,
    format_config_report,
    generate_config_content,
    user_config_path,
)
from yawn.output import bold, dim, info


def display_config(resolved: ResolvedConfig) -> int:
    """Display resolved configuration with the source of every value."""
    print(f"\n{bold('Current Configuration')}\n")

    for line in format_config_report(resolved):
        name, _, rest = line.partition(' = ')
        print(f"  {name} = {info(rest)}")

    print(f"\n  {dim('Config locations:')}")
    user_path = user_config_path()
    user_state = "" if resolved.user_path else dim(" (not found)")
    print(f"    User:    {user_path}{user_state}")
    if resolved.project_path:
        print(f"    Project: {resolved.project_path}")
    else:
        print(f"    Project: {PROJECT_CONFIG_NAME} {dim('(none found in this directory or its parents)')}")
    print(f"\n  {dim('Set')} {CONFIG_DIR_ENV} {dim('to move the user config directory.')}")
    print(f"  {dim('Run')} yawn --generate-config {dim('for a template')}\n")

    return 0


def run_generate_config() -> int:
    """Print a default configuration document."""
    print(generate_config_content(), end='')
    return 0


def run_install_completion() -> int:
    """Install shell tab completion."""
    shell = os.environ.get('SHELL', '')

    print(f"\n{bold('Tab Completion Setup')}\n")

    if 'zsh' in shell:
        rc_file = os.path.expanduser('~/.zshrc')
        line = 'eval "$(register-python-argcomplete yawn)"'
        print(f"Add this line to {dim(rc_file)}:\n")
        print(f"  {line}\n")
        print(f"Then run: {dim('source ~/.zshrc')}")
    elif 'bash' in shell:
        rc_file = os.path.expanduser('~/.bashrc')
        line = 'eval "$(register-python-argcomplete yawn)"'
        print(f"Add this line to {dim(rc_file)}:\n")
        print(f"  {line}\n")
        print(f"Then run: {dim('source ~/.bashrc')}")
    elif sys.platform == 'win32':
        print("For PowerShell, run:\n")
        print("  register-python-argcomplete --shell powershell yawn | Out-String | Invoke-Expression\n")
        print("To make it permanent, add to your $PROFILE:\n")
        print("  register-python-argcomplete --shell powershell yawn | Out-String | Invoke-Expression")
    else:
        print("Run one of these based on your shell:\n")
        print(f"  {dim('# Bash/Zsh')}")
        print('  eval "$(register-python-argcomplete yawn)"\n')
        print(f"  {dim('# Fish')}")
        print("  register-python-argcomplete --shell fish yawn | source")

    print(f"\n{dim('After setup, press TAB to autocomplete flags.')}")
    return 0
