"""
Vault PKI CLI
Issue, renew, and inspect certificates from a Vault PKI mount.
"""

import json
import sys
from typing import Dict, Tuple

import click

from .exceptions import VaultPKIError
from .expiry import not_after
from .logging import configure_logging
from .renewal import CancellationToken


def _parse_fields(fields: Tuple[str, ...]) -> Dict[str, str]:
    parsed = {}
    for item in fields:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--field")
        parsed[key] = value
    return parsed


def _client(ctx: click.Context):
    obj = ctx.obj
    if "client" not in obj:
        try:
            obj["client"] = obj["client_factory"](**obj["config"])
        except VaultPKIError as e:
            raise click.ClickException(e.message)
        ctx.call_on_close(obj["client"].close)
    return obj["client"]


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option("--address", envvar="VAULT_ADDR", help="Vault address (or VAULT_ADDR)")
@click.option("--token", envvar="VAULT_TOKEN", help="Vault token (or VAULT_TOKEN)")
@click.option("--mountpoint", help="PKI mount path")
@click.option("--ca-path", multiple=True, help="CA bundle file, directory, or inline PEM")
@click.option("--skip-verify", is_flag=True, default=False, help="Disable TLS verification")
@click.option("--timeout", type=float, help="Request timeout in seconds")
@click.option("--json-logs", is_flag=True, default=None, help="Emit JSON log lines")
@click.option("--log-level", default=None, help="Log level")
@click.pass_context
def cli(ctx, address, token, mountpoint, ca_path, skip_verify, timeout, json_logs, log_level):
    """Vault PKI certificate client."""
    configure_logging(level=log_level, json_format=json_logs)

    ctx.ensure_object(dict)
    ctx.obj.setdefault("client_factory", _default_factory)

    config = {"address": address, "token": token, "mountpoint": mountpoint, "timeout": timeout}
    if ca_path or skip_verify:
        config["tls"] = {"ca_path": list(ca_path), "skip_verify": skip_verify}
    ctx.obj["config"] = config


def _default_factory(**config):
    from .client import VaultPKIClient

    return VaultPKIClient(**config)


@cli.command()
@click.argument("role")
@click.argument("common_name")
@click.option("--ttl", default=3600, show_default=True, help="Lifetime in seconds")
@click.option("--field", "fields", multiple=True, help="Extra request field as key=value")
@click.pass_context
def issue(ctx, role, common_name, ttl, fields):
    """Issue one certificate and print it as JSON."""
    client = _client(ctx)
    try:
        credential = client.issue(role, common_name, ttl, _parse_fields(fields))
    except VaultPKIError as e:
        raise click.ClickException(e.message)
    _echo_json(credential.model_dump())


@cli.command()
@click.argument("role")
@click.argument("common_name")
@click.option("--ttl", default=3600, show_default=True, help="Lifetime in seconds")
@click.option("--field", "fields", multiple=True, help="Extra request field as key=value")
@click.option("--count", type=int, default=None, help="Stop after this many updates")
@click.pass_context
def renew(ctx, role, common_name, ttl, fields, count):
    """Keep a certificate renewed, printing one JSON line per update."""
    client = _client(ctx)
    token = CancellationToken()
    updates = {"n": 0}

    def on_update(error, credential):
        if error is not None:
            click.echo(json.dumps({"error": str(error)}), err=True)
        else:
            click.echo(json.dumps(credential.model_dump()))
        updates["n"] += 1
        if count is not None and updates["n"] >= count:
            token.cancel()

    handle = client.issue_and_renew(role, common_name, ttl, _parse_fields(fields), on_update, cancel_token=token)
    try:
        while handle.is_alive():
            handle.join(0.5)
    except KeyboardInterrupt:
        handle.cancel()
        handle.join(5.0)


@cli.command(name="list")
@click.pass_context
def list_certificates(ctx):
    """List every certificate on record with the CA chain."""
    client = _client(ctx)
    try:
        records = client.list()
    except VaultPKIError as e:
        raise click.ClickException(e.message)
    _echo_json([r.model_dump() for r in records])


@cli.command()
@click.pass_context
def chain(ctx):
    """Print the CA chain."""
    client = _client(ctx)
    try:
        blocks = client.get_chain()
    except VaultPKIError as e:
        raise click.ClickException(e.message)
    click.echo("\n".join(blocks))


@cli.command()
@click.argument("serial")
@click.pass_context
def cert(ctx, serial):
    """Print one certificate and when it expires."""
    client = _client(ctx)
    try:
        pem = client.get_by_serial(serial)
        expires = not_after(pem)
    except VaultPKIError as e:
        raise click.ClickException(e.message)
    _echo_json({"serial": serial, "not_after": expires.isoformat(), "certificate": pem})


def main():
    cli(obj={})


if __name__ == "__main__":
    sys.exit(main())
