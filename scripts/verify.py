from pathlib import Path

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, network_option

from ticketing.constants import ARTIFACTS_DIR, REGISTRY_NAMES
from ticketing.registry import load_deployed_contracts
from ticketing.utils import implementation_of, publish_to_explorer, require_explorer_api_key


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@click.option(
    "--registry-filepath",
    "-f",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Registry written by a ticketing deployment.",
    default=ARTIFACTS_DIR / "concert-tickets-sepolia.json",
    show_default=True,
)
@click.option(
    "--contract-name",
    "-c",
    "registry_names",
    type=click.Choice(sorted(REGISTRY_NAMES.values())),
    multiple=True,
    help="Registry name to verify; repeatable. Verifies every deployed contract if omitted.",
)
def cli(network, registry_filepath, registry_names):
    """Publishes the sources of deployed ticketing contracts to the block explorer."""
    require_explorer_api_key()
    chain_id = networks.provider.chain_id
    deployed = load_deployed_contracts(registry_filepath, chain_id=chain_id)
    if not deployed:
        raise click.ClickException(f"{registry_filepath} has no contracts for chain {chain_id}.")

    missing = set(registry_names) - set(deployed)
    if missing:
        raise click.ClickException(
            f"Not deployed on chain {chain_id}: {', '.join(sorted(missing))}."
        )

    selected = registry_names or sorted(deployed)
    # proxied contracts are verified through their implementation
    publish_to_explorer(implementation_of(deployed[name]) for name in selected)
