"""
Command Line Interface for Swarmstack.
"""
import sys

import click

from ..errors import DeploymentError, FatalError
from ..MANAGERS.deployment_sequencer import DeploymentSequencer
from ..MODELS.deployment_config import DEFAULT_BRANCH, DEFAULT_BUCKET, DEFAULT_REPO_URL, DEFAULT_STACKS_ROOT, DeploymentConfig
from ..MODELS.stack_definition import DEFAULT_STACK_PLAN
from ..UTILS.console import error, log, warn
from ..UTILS.dns_preflight import check_dns
from ..UTILS.summary import render_summary


@click.group()
def cli():
    """
    Swarmstack - Docker Swarm stack installer.

    Provisions the proxy, database, storage and application stacks on this host.
    """


@cli.command()
@click.option('--domain', envvar='DOMAIN', required=True, help='Base domain for every service')
@click.option('--email', 'admin_email', envvar='ADMIN_EMAIL', required=True, help='Administrator email')
@click.option('--password', 'master_password', envvar='MASTER_PASSWORD', required=True,
              help='Master password, 32 or more characters')
@click.option('--branch', envvar='STACK_BRANCH', default=DEFAULT_BRANCH, show_default=True,
              help='Branch of the stack repository')
@click.option('--repo', 'repo_url', envvar='REPO_URL', default=DEFAULT_REPO_URL, show_default=True,
              help='Stack repository URL')
@click.option('--stacks-root', envvar='STACKS_ROOT', default=DEFAULT_STACKS_ROOT, show_default=True,
              type=click.Path(file_okay=False), help='Where the stack repository is checked out')
@click.option('--bucket', 'minio_bucket', envvar='MINIO_BUCKET', default=DEFAULT_BUCKET, show_default=True,
              help='Object storage bucket for Evolution')
@click.option('--access-key', 'minio_access_key', envvar='MINIO_ACCESS_KEY', default=None,
              help='Object storage access key (generated when omitted)')
@click.option('--secret-key', 'minio_secret_key', envvar='MINIO_SECRET_KEY', default=None,
              help='Object storage secret key (generated when omitted)')
@click.option('--advertise-addr', envvar='ADVERTISE_ADDR', default=None,
              help='Address to advertise when initializing swarm mode')
@click.option('--skip-dns-check', is_flag=True, help='Do not check DNS records before installing')
def deploy(skip_dns_check, **options):
    """Install or update every stack on this host."""
    try:
        config = DeploymentConfig.build(**options)
        log("Parameters validated.")
        if not skip_dns_check:
            check_dns(config.domain)
        report = DeploymentSequencer.for_host(config).run()
    except DeploymentError as e:
        error(str(e))
        if e.applied:
            warn(f"Already applied: {', '.join(e.applied)}. Nothing was rolled back; "
                 "rerun the installer to converge.")
        sys.exit(1)
    except FatalError as e:
        error(str(e))
        sys.exit(1)

    click.echo(render_summary(config.domain), nl=False)
    for step in report.warnings:
        warn(f"{step.step}: {step.status.value} {step.message}".rstrip())


@cli.command()
def plan():
    """Show the stack deployment order."""
    click.echo(f"{'#':3} {'STACK':12} {'MANIFEST':16} AFTER DEPLOY")
    click.echo("-" * 60)
    for index, stack in enumerate(DEFAULT_STACK_PLAN, start=1):
        after = []
        if stack.settle_seconds:
            after.append(f"settle {stack.settle_seconds:g}s")
        if stack.wait_for_ready:
            after.append("wait for health")
        after += [action.value for action in stack.post_deploy]
        click.echo(f"{index:<3} {stack.name:12} {stack.manifest:16} {', '.join(after)}")


@cli.command()
@click.option('--domain', envvar='DOMAIN', required=True, help='Base domain for every service')
def urls(domain):
    """Print the public service URLs for a domain."""
    click.echo(render_summary(domain.strip().rstrip(".").lower()), nl=False)


def main():
    """
    Main entry point for the CLI.
    """
    cli()


if __name__ == '__main__':
    main()
