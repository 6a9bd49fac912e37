from pathlib import Path

import click

from ticketing.constants import CONSTRUCTOR_PARAMS_DIR, DEFAULT_NETWORK
from ticketing.types import MinInt

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help="Deployment parameters YAML file.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=CONSTRUCTOR_PARAMS_DIR / "sepolia" / "concert.yml",
    show_default=True,
)

network_choice_option = click.option(
    "--network",
    "-n",
    "network_choice",
    help="Ecosystem and network; the provider is the RPC endpoint from the environment.",
    type=str,
    default=DEFAULT_NETWORK,
    show_default=True,
)

total_tickets_option = click.option(
    "--total-tickets",
    "-t",
    help="Number of tickets to mint; overrides the parameters file.",
    type=MinInt(1),
    required=False,
)

autosign_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

verify_option = click.option(
    "--verify",
    help="Publish the deployed contracts to the block explorer.",
    is_flag=True,
)
