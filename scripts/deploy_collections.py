#!/usr/bin/python3

import click

from ticketing.options import autosign_option, network_choice_option, params_option
from ticketing.params import Deployer
from ticketing.provision import DeploymentIdentity, connect
from ticketing.workflow import TicketingWorkflow, run_workflow


@click.command(name="deploy-collections")
@network_choice_option
@params_option
@autosign_option
@click.pass_context
def cli(ctx, network_choice, params_filepath, auto):
    """
    Deploys only the proxied ticket and attachment collections and prints
    their addresses; nothing is minted and no registry is written.

    ape run deploy_collections --params ticketing/constructor_params/sepolia/concert.yml
    """
    identity = DeploymentIdentity.from_environment()

    def deploy():
        with connect(identity, network=network_choice):
            deployer = Deployer.from_yaml(
                filepath=params_filepath,
                verify=False,
                account=identity.account(),
                autosign=auto,
            )
            TicketingWorkflow(ledger=deployer, context=deployer.context).deploy_collections()

    ctx.exit(run_workflow(deploy))
