"""Input validation for CLI arguments."""
import argparse
import sys

from ..secrets.domains.durations import parse_duration


def duration_arg(text: str) -> float:
    """argparse ``type=`` adapter for parse_duration."""
    try:
        return parse_duration(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def validate_secret_name(name: str) -> None:
    """
    Validate secret name is usable as a keyring entry.

    Args:
        name: Secret name to validate

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name or not name.strip():
        print("Error: Secret name cannot be empty", file=sys.stderr)
        print("\nOmit --name to use the default secret name.", file=sys.stderr)
        sys.exit(2)


def validate_secret_tokens(tokens) -> None:
    """
    Validate at least one non-blank secret token was supplied.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not tokens or not "".join(tokens).strip():
        print("Error: TOTP secret cannot be empty", file=sys.stderr)
        print("\nPass the base32 secret shown by your authenticator setup,", file=sys.stderr)
        print("e.g. 'xlauth save JBSW Y3DP EHPK 3PXP'.", file=sys.stderr)
        sys.exit(2)
