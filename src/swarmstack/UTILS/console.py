"""
Operator-facing console output with distinguishable severity prefixes.
"""
import click


def log(message: str):
    """
    Prints a progress message.
    """
    click.secho("[BOOTSTRAP] ", fg="cyan", bold=True, nl=False)
    click.echo(message)


def warn(message: str):
    """
    Prints a non-blocking warning.
    """
    click.secho("[WARNING] ", fg="yellow", bold=True, nl=False)
    click.echo(message)


def error(message: str):
    """
    Prints a fatal error to stderr.
    """
    click.secho("[ERROR] ", fg="red", bold=True, nl=False, err=True)
    click.echo(message, err=True)
