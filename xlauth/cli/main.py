"""CLI entrypoint for xlauth."""
import sys
import argparse
import logging
from pathlib import Path

from .validators import duration_arg, validate_secret_name, validate_secret_tokens
from ..secrets.domains.models import APP_NAME, DEFAULT_EXE, DEFAULT_NAME, DEFAULT_TIMEOUT, VERSION

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _resolve_defaults(args):
    """Fill options left unset on the command line from the config file."""
    from xlauth.secrets.domains.config_loader import load_config

    defaults = load_config()
    if getattr(args, "name", None) is None:
        args.name = defaults.name
    if hasattr(args, "timeout") and args.timeout is None:
        args.timeout = defaults.timeout
    if hasattr(args, "path") and args.path is None:
        args.path = defaults.launcher_path
    validate_secret_name(args.name)
    return args


def cmd_version(args):
    """Show version information."""
    print(f"{APP_NAME} {VERSION}")


def cmd_save(args):
    """Save a TOTP secret to the keyring."""
    from xlauth.secrets.workflows.secret_operations import save_secret

    validate_secret_tokens(args.secret)
    save_secret(args.name, args.secret)
    print(f"Saved TOTP secret \"{args.name}\"")


def cmd_delete(args):
    """Delete a TOTP secret from the keyring."""
    from xlauth.secrets.workflows.secret_operations import delete_secret

    delete_secret(args.name)
    print(f"Deleted TOTP secret \"{args.name}\"")


def cmd_send(args):
    """Send a TOTP code to XIV Launcher."""
    from xlauth.launcher.workflows.launch_operations import send_code

    send_code(args.name, args.timeout)


def cmd_launch(args):
    """Start XIV Launcher, then send it a TOTP code."""
    from xlauth.launcher.workflows.launch_operations import launch_and_send

    launch_and_send(args.name, args.timeout, args.path)


def cmd_config_set_path(args):
    """Set config file path preference."""
    from xlauth.secrets.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path and the defaults it yields."""
    from xlauth.secrets.domains.config_loader import default_config_path, load_config
    from xlauth.secrets.domains.preferences import get_preference
    from xlauth.secrets.domains.durations import format_duration

    config_path_pref = get_preference("config_path")

    if config_path_pref and Path(config_path_pref).exists():
        print(f"Config path: {config_path_pref}")
        print("Source: preference")
    else:
        if config_path_pref:
            print(f"Config path (from preference, but file not found): {config_path_pref}")
        default_config = default_config_path()
        suffix = "" if default_config.exists() else " (file not found)"
        print(f"Config path: {default_config}")
        print(f"Source: default{suffix}")

    defaults = load_config()
    print(f"\nDefault name: {defaults.name}")
    print(f"Default timeout: {format_duration(defaults.timeout)}")
    print(f"Default launcher path: {defaults.launcher_path}")


def cmd_config_clear(args):
    """Clear config path preference."""
    from xlauth.secrets.domains.config_loader import default_config_path
    from xlauth.secrets.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def _add_name_option(parser, action):
    parser.add_argument(
        "-n", "--name",
        default=None,
        help=f"Name of the TOTP secret to {action} (default: config or '{DEFAULT_NAME}')"
    )


def _add_timeout_option(parser):
    parser.add_argument(
        "-t", "--timeout",
        type=duration_arg,
        default=None,
        help=f"How long to wait for XIV Launcher, e.g. 5s or 1m30s (default: config or {DEFAULT_TIMEOUT})"
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Send TOTP codes to XIV Launcher from secrets kept in the OS keyring",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (invalid secret, keyring failure, launcher not reachable, etc.)
  2 - Usage error (invalid arguments, empty secret name, etc.)

Configuration:
  Default location: ~/.config/xlauth/config.yml
  Custom path: Set with 'xlauth config set-path <path>'
  View current: Run 'xlauth config show'
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {VERSION}")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # version command
    _version_parser = subparsers.add_parser(
        "version",
        help="Show version information",
        description=f"Display the current version of {APP_NAME}"
    )

    # save command
    save_parser = subparsers.add_parser(
        "save",
        help="Save a TOTP secret",
        description="""
Validate a base32 TOTP secret and store it in the OS keyring.

The secret may be split across several arguments; whitespace is ignored,
so 'xlauth save JBSW Y3DP EHPK 3PXP' works as copied from most setup pages.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_name_option(save_parser, "save")
    save_parser.add_argument(
        "secret",
        nargs="+",
        help="TOTP secret (base32)"
    )

    # delete command
    delete_parser = subparsers.add_parser(
        "delete",
        help="Delete a TOTP secret",
        description="Remove a TOTP secret from the OS keyring"
    )
    _add_name_option(delete_parser, "delete")

    # send command
    send_parser = subparsers.add_parser(
        "send",
        help="Send a TOTP code to XIV Launcher",
        description="""
Wait for XIV Launcher's OTP listener on 127.0.0.1 and send it the current code.

The code is generated at the moment the connection succeeds. If nothing is
listening before the timeout runs out, the command fails with exit code 1.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_name_option(send_parser, "use")
    _add_timeout_option(send_parser)

    # launch command
    launch_parser = subparsers.add_parser(
        "launch",
        help="Run XIV Launcher before sending a TOTP code",
        description="Start XIV Launcher, then send it a TOTP code as 'send' does"
    )
    _add_name_option(launch_parser, "use")
    _add_timeout_option(launch_parser)
    launch_parser.add_argument(
        "-p", "--path",
        default=None,
        help=f"Path to XIV Launcher (default: config or {DEFAULT_EXE})"
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description=f"Manage {APP_NAME} configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="""
Set the configuration file path preference.

This stores the absolute path to your config file in:
~/.config/xlauth/preferences.json
        """
    )
    config_set_path_parser.add_argument(
        "path",
        help="Path to config file"
    )

    _config_show_parser = config_subparsers.add_parser(
        "show",
        help="Show current config path and defaults",
        description="Display the configuration file in use and the defaults it yields"
    )

    _config_clear_parser = config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference and fall back to ~/.config/xlauth/config.yml"
    )

    return parser, config_parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (invalid secret, keyring, timeout, launch failure, etc.)
        2 - Usage errors (invalid arguments, empty secret name, etc.)
    """
    parser, config_parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help(sys.stderr)
        sys.exit(2)

    handlers = {
        "save": cmd_save,
        "delete": cmd_delete,
        "send": cmd_send,
        "launch": cmd_launch,
    }

    # Route to command handlers
    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command in handlers:
            handlers[args.command](_resolve_defaults(args))
        elif args.command == "config":
            if args.config_command == "set-path":
                cmd_config_set_path(args)
            elif args.config_command == "show":
                cmd_config_show(args)
            elif args.config_command == "clear":
                cmd_config_clear(args)
            else:
                config_parser.print_help(sys.stderr)
                sys.exit(2)
        else:
            parser.print_help(sys.stderr)
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
