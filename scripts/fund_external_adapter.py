#!/usr/bin/python3

import click
from ape import Contract

from ticketing.adapter import DEFAULT_ALLOWANCE, DEFAULT_DEPOSIT, fund_external_adapter
from ticketing.constants import LINK_TOKEN_ADDRESS, NESTABLE_CONTRACT
from ticketing.options import autosign_option, network_choice_option
from ticketing.params import Transactor
from ticketing.provision import DeploymentIdentity, connect
from ticketing.types import ChecksumAddress, MinInt
from ticketing.utils import get_contract_container
from ticketing.workflow import run_workflow


@click.command(name="fund-external-adapter")
@network_choice_option
@autosign_option
@click.option(
    "--collection",
    "-c",
    help="Address of the nestable collection that requests the external adapter.",
    type=ChecksumAddress(),
    required=True,
)
@click.option(
    "--link-token",
    help="Address of the LINK token.",
    type=ChecksumAddress(),
    default=LINK_TOKEN_ADDRESS,
    show_default=True,
)
@click.option(
    "--allowance",
    help="LINK allowance (in juels) granted to the collection.",
    type=MinInt(0),
    default=DEFAULT_ALLOWANCE,
    show_default=True,
)
@click.option(
    "--deposit",
    help="LINK (in juels) deposited into the collection.",
    type=MinInt(1),
    default=DEFAULT_DEPOSIT,
    show_default=True,
)
@click.pass_context
def cli(ctx, network_choice, auto, collection, link_token, allowance, deposit):
    """Funds a collection's external adapter with LINK and reads the job result."""
    identity = DeploymentIdentity.from_environment()

    def fund():
        with connect(identity, network=network_choice):
            transactor = Transactor(account=identity.account(), autosign=auto)
            collection_contract = get_contract_container(NESTABLE_CONTRACT).at(collection)
            fund_external_adapter(
                ledger=transactor,
                collection=collection_contract,
                link_token=Contract(link_token),
                allowance=allowance,
                deposit=deposit,
            )

    ctx.exit(run_workflow(fund))
