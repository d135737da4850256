# -*- coding: utf-8 -*-
"""vault-ssl-certificate command line."""

import logging
import sys

import click

from .auth_token import AuthTokenClient, Identity, Token
from .certificate import DEFAULT_LEASE, CertificateRequest
from .config import Settings, load_certificate_requests
from .exceptions import IssuanceError, MalformedRequest, RotationScheduleError
from .lifecycle import CertificateLifecycleManager


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def cli(ctx, verbose):
    """Obtain Vault tokens and deploy rotated SSL certificates."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s %(message)s",
                        stream=sys.stderr)
    ctx.obj = Settings.from_environ()


@cli.command()
@click.option("--app-id", required=True, help="Application ID to log in with.")
@click.option("--user-id", required=True, help="User ID to log in with.")
@click.pass_obj
def token(settings, app_id, user_id):
    """Print a client token for the app id / user id pair."""
    result = AuthTokenClient(**settings.auth_client_kwargs()).fetch_token(Identity(app_id, user_id))
    if not isinstance(result, Token):
        click.echo(f"Login failed: {result.reason} {result.detail}", err=True)
        sys.exit(1)
    click.echo(result.value)


@cli.command()
@click.argument("service_name")
@click.option("--host", required=True, help="Common name of the certificate.")
@click.option("--directory", required=True, help="Absolute directory for the cert/key pair.")
@click.option("--domain", default=None, help="PKI role, defaults to the host's parent domain.")
@click.option("--alias", "aliases", multiple=True, help="DNS name or IPv4 address, repeatable.")
@click.option("--lease", default=DEFAULT_LEASE, show_default=True)
@click.option("--vault-addr", default=None, help="VAULT_ADDR for the rotation job.")
@click.pass_obj
def deploy(settings, service_name, host, directory, domain, aliases, lease, vault_addr):
    """Issue a certificate now and install its rotation job."""
    try:
        request = CertificateRequest(service_name=service_name,
                                     host=host,
                                     directory=directory,
                                     domain=domain,
                                     aliases=aliases,
                                     lease=lease,
                                     vault_addr=vault_addr)
    except MalformedRequest as e:
        raise click.BadParameter(str(e)) from None

    manager = CertificateLifecycleManager.from_settings(settings)
    try:
        job = manager.deploy(request)
    except (IssuanceError, RotationScheduleError) as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    click.echo(job.path)


@cli.command("deploy-all")
@click.argument("config", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def deploy_all(settings, config):
    """Deploy every certificate listed in a JSON requests file."""
    try:
        cert_requests = load_certificate_requests(config)
    except MalformedRequest as e:
        raise click.BadParameter(str(e), param_hint="CONFIG") from None

    manager = CertificateLifecycleManager.from_settings(settings)
    failed = []
    # one request at a time, a failure does not stop the others
    for request in cert_requests:
        try:
            manager.deploy(request)
        except (IssuanceError, RotationScheduleError) as e:
            logging.getLogger(__name__).error(str(e))
            failed.append(request.service_name)

    if failed:
        click.echo(f"Failed: {', '.join(failed)}", err=True)
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
