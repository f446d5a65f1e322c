"""CLI Argument Parsing"""

import argparse
import argcomplete

from yawn import __version__

# Options that override settings. They default to SUPPRESS so an option that
# was not typed never shows up on the namespace and never claims provenance.
SETTING_FLAGS = ('verbose', 'api_key', 'auto_stage', 'auto_push')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='yawn',
        description='Generate a commit message for your changes with Claude, commit, and push',
        epilog='Settings: ~/.config/yawn/config.toml, ./.yawn.toml, YAWN_* environment variables',
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    # Setting overrides
    parser.add_argument('-v', '--verbose', action='store_true', default=argparse.SUPPRESS, help='Show debug output and where each setting came from')
    parser.add_argument('--api-key', dest='api_key', type=str, metavar='KEY', default=argparse.SUPPRESS, help='Anthropic API key (overrides config and environment)')

    stage = parser.add_mutually_exclusive_group()
    stage.add_argument('--auto-stage', dest='auto_stage', action='store_true', default=argparse.SUPPRESS, help='Stage all changes without asking')
    stage.add_argument('--no-auto-stage', dest='auto_stage', action='store_false', default=argparse.SUPPRESS, help='Ask before staging')

    push = parser.add_mutually_exclusive_group()
    push.add_argument('--auto-push', dest='auto_push', action='store_true', default=argparse.SUPPRESS, help='Push after committing without asking')
    push.add_argument('--no-auto-push', dest='auto_push', action='store_false', default=argparse.SUPPRESS, help='Ask before pushing')

    # Setup/config
    parser.add_argument('--generate-config', action='store_true', help='Print a default config.toml and exit')
    parser.add_argument('--show-config', action='store_true', help='Show resolved settings and where they came from')
    parser.add_argument('--install-completion', action='store_true', help='Install shell tab completion')

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)


def flag_overrides(args: argparse.Namespace) -> dict:
    """Settings given explicitly on the command line."""
    return {name: getattr(args, name) for name in SETTING_FLAGS if hasattr(args, name)}
