#!/usr/bin/python3

import click

from ticketing.options import (
    autosign_option,
    network_choice_option,
    params_option,
    total_tickets_option,
    verify_option,
)
from ticketing.params import Deployer
from ticketing.provision import DeploymentIdentity, connect
from ticketing.workflow import TicketingWorkflow, run_workflow


@click.command(name="deploy-concert-tickets")
@network_choice_option
@params_option
@total_tickets_option
@autosign_option
@verify_option
@click.pass_context
def cli(ctx, network_choice, params_filepath, total_tickets, auto, verify):
    """
    Deploys the ticket and attachment collections with their equip contracts,
    the catalog and the render utils, then mints and nests tickets, registers
    and accepts assets, equips an attachment and prints the composed ticket.

    The signer and the node come from PRIVATE_KEY and SEPOLIA_RPC_URL:

    ape run deploy_concert_tickets --auto
    """
    identity = DeploymentIdentity.from_environment()

    def deploy():
        with connect(identity, network=network_choice) as provider:
            click.echo(f"Connected to {provider.network.name} network.")
            deployer = Deployer.from_yaml(
                filepath=params_filepath,
                verify=verify,
                account=identity.account(),
                autosign=auto,
                total_tickets=total_tickets,
            )
            workflow = TicketingWorkflow(ledger=deployer, context=deployer.context)
            deployments = workflow.run()
            deployer.finalize(deployments=deployments.registry_entries())

    ctx.exit(run_workflow(deploy))
