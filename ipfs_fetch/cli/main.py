#!/usr/bin/env python3
"""
Command-line interface for ipfs_fetch.

Commands:
    read       Fetch an IPFS/IPNS resource through the fastest gateway
    transform  Print the gateway URL for an address without fetching it
    gateways   Probe the configured gateways and print their ranking
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click

from ..client import IpfsClient
from ..config import GlobalConfig, LogLevel, load_config
from ..exceptions import IpfsFetchError
from ..logging import setup_logging
from ..models import GatewayNode
from ..transform import transform as transform_address


def _seed_gateway(gateway: Optional[str], local: bool) -> Optional[GatewayNode]:
    if gateway is None:
        return None
    return GatewayNode(host=gateway, remote=not local)


@click.group()
@click.version_option(package_name="ipfs-fetch")
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Resolve IPFS content through the fastest public HTTP gateway."""
    ctx.ensure_object(dict)
    try:
        global_config = load_config(config)
    except ValueError as e:
        raise click.ClickException(str(e))

    if verbose:
        global_config.logging.level = LogLevel.DEBUG
    setup_logging(global_config.logging)

    ctx.obj['config'] = global_config
    ctx.obj['verbose'] = verbose


@cli.command()
@click.argument('address')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write the resource to a file')
@click.option('--gateway', '-g', help='Use this gateway instead of probing')
@click.option('--local', is_flag=True, help='The --gateway is a local node (HTTP, path addressing)')
@click.pass_context
def read(ctx: click.Context, address: str, output: Optional[str], gateway: Optional[str], local: bool) -> None:
    """Fetch ADDRESS (a CID, ipfs:// or ipns:// URI, or DNSLink name)."""
    config: GlobalConfig = ctx.obj['config']

    seed = _seed_gateway(gateway, local)

    async def read_resource() -> bytes:
        async with IpfsClient(
            gateways=[seed] if seed else None, chosen_gateway=seed, config=config.client
        ) as client:
            await client.init()
            if ctx.obj['verbose']:
                click.echo(f"Using gateway {client.chosen_gateway.host}", err=True)
            return await client.read(address)

    try:
        data = asyncio.run(read_resource())
    except (IpfsFetchError, ValueError) as e:
        click.echo(f"✗ Failed to read {address}: {e}", err=True)
        sys.exit(1)

    if output:
        Path(output).write_bytes(data)
        click.echo(f"✓ Saved {len(data):,} bytes to {output}", err=True)
    else:
        click.echo(data.decode("utf-8", errors="replace"))


@cli.command()
@click.argument('address')
@click.option('--gateway', '-g', help='Gateway host (default: first configured gateway)')
@click.option('--local', is_flag=True, help='The gateway is a local node (HTTP, path addressing)')
@click.pass_context
def transform(ctx: click.Context, address: str, gateway: Optional[str], local: bool) -> None:
    """Print the gateway URL for ADDRESS without fetching it."""
    config: GlobalConfig = ctx.obj['config']
    node = _seed_gateway(gateway, local) or config.client.default_gateway

    try:
        click.echo(transform_address(address, node))
    except IpfsFetchError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the ranking as JSON')
@click.pass_context
def gateways(ctx: click.Context, as_json: bool) -> None:
    """Probe the configured gateways and print them fastest first."""
    config: GlobalConfig = ctx.obj['config']

    async def rank() -> IpfsClient:
        async with IpfsClient(config=config.client) as client:
            await client.init()
            return client

    client = asyncio.run(rank())

    if as_json:
        payload = {
            "chosen": client.chosen_gateway.model_dump(),
            "gateways": [node.model_dump() for node in client.gateways],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    for index, node in enumerate(client.gateways, 1):
        speed = f"{node.speed} ms" if node.speed is not None else "unmeasured"
        marker = "*" if node.host == client.chosen_gateway.host else " "
        click.echo(f"{marker} {index}. {node.host} ({speed})")


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
