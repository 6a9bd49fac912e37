import traceback
from typing import Any, Callable, NamedTuple

import click
from ape.utils import ZERO_ADDRESS

from ticketing.batch import call, submit_batch
from ticketing.constants import (
    ATTACHMENT_EQUIPPABLE_ASSET_ID,
    ATTACHMENT_EQUIPPABLE_ASSET_URI,
    ATTACHMENT_EQUIPPABLE_GROUP_ID,
    ATTACHMENT_FULL_ASSET_ID,
    ATTACHMENT_FULL_ASSET_URI,
    BACKGROUND_METADATA_URI,
    BACKGROUND_PART_ID,
    BACKGROUND_Z,
    CATALOG_CONTRACT,
    EQUIP_CONTRACT,
    FRAME_SLOT_PART_ID,
    FRAME_SLOT_Z,
    INITIALIZERS,
    NEST_MINT_QUANTITY,
    NEST_MINT_TASK_ID,
    NESTABLE_CONTRACT,
    NO_EQUIPPABLE_GROUP,
    REGISTRY_NAMES,
    RENDER_UTILS_CONTRACT,
    REPLACES_NO_ASSET,
    SHOWCASE_TOKEN_ID,
    TICKET_COMPOSED_ASSET_ID,
    TICKET_COMPOSED_ASSET_URI,
    TICKET_DEFAULT_ASSET_ID,
    TICKET_DEFAULT_ASSET_URI,
    ItemType,
)
from ticketing.interfaces import (
    Catalog,
    EquippableCollection,
    Ledger,
    NestableCollection,
    RenderUtils,
)
from ticketing.params import DeploymentContext
from ticketing.types import IntakeEquip, IntakePart, Part


class Collections(NamedTuple):
    ticket: NestableCollection
    attachment: NestableCollection


class Equippables(NamedTuple):
    ticket_equip: EquippableCollection
    attachment_equip: EquippableCollection


class CatalogContracts(NamedTuple):
    catalog: Catalog
    render_utils: RenderUtils


class Deployments(NamedTuple):
    ticket: NestableCollection
    ticket_equip: EquippableCollection
    attachment: NestableCollection
    attachment_equip: EquippableCollection
    catalog: Catalog
    render_utils: RenderUtils

    def registry_entries(self) -> dict:
        """Deployments keyed by their registry names."""
        return {REGISTRY_NAMES[field]: getattr(self, field) for field in self._fields}


class TicketingWorkflow:
    """
    Deploys the ticket and attachment collections and sets up a composed ticket:
    a background part plus an attachment equipped into the ticket's slot.

    Every phase takes the outputs of the phases it depends on, and each one
    returns only once its transactions are confirmed.
    """

    def __init__(self, ledger: Ledger, context: DeploymentContext):
        self.ledger = ledger
        self.context = context

    def run(self) -> Deployments:
        collections = self.deploy_collections()
        equippables = self.deploy_equippables(collections)
        catalog_contracts = self.deploy_catalog()
        self.link_collections(collections, equippables)
        self.setup_catalog(catalog_contracts.catalog, equippables)
        self.mint_and_nest(collections)
        self.register_assets(equippables, catalog_contracts.catalog)
        self.equip(equippables)
        self.compose_and_render(catalog_contracts.render_utils, equippables)
        return Deployments(
            ticket=collections.ticket,
            ticket_equip=equippables.ticket_equip,
            attachment=collections.attachment,
            attachment_equip=equippables.attachment_equip,
            catalog=catalog_contracts.catalog,
            render_utils=catalog_contracts.render_utils,
        )

    #
    # Instantiation
    #

    def deploy_collections(self) -> Collections:
        print(f"Contract Deployer Address: {self.context.deployer}")
        initializer = INITIALIZERS[NESTABLE_CONTRACT]

        print(f"Deploying {self.context.ticket.name} ticket contract:")
        ticket = self.ledger.deploy_proxy(
            NESTABLE_CONTRACT, initializer, *self.context.ticket.initializer_args()
        )

        print(f"Deploying {self.context.attachment.name} contract:")
        attachment = self.ledger.deploy_proxy(
            NESTABLE_CONTRACT, initializer, *self.context.attachment.initializer_args()
        )

        print(f"{self.context.ticket.name} ticket contract deployed to: {ticket.address}")
        print(f"{self.context.attachment.name} contract deployed to: {attachment.address}")
        return Collections(ticket=ticket, attachment=attachment)

    def deploy_equippables(self, collections: Collections) -> Equippables:
        initializer = INITIALIZERS[EQUIP_CONTRACT]
        ticket_equip = self.ledger.deploy_proxy(
            EQUIP_CONTRACT, initializer, collections.ticket.address
        )
        attachment_equip = self.ledger.deploy_proxy(
            EQUIP_CONTRACT, initializer, collections.attachment.address
        )
        return Equippables(ticket_equip=ticket_equip, attachment_equip=attachment_equip)

    def deploy_catalog(self) -> CatalogContracts:
        catalog = self.ledger.deploy_proxy(
            CATALOG_CONTRACT,
            INITIALIZERS[CATALOG_CONTRACT],
            *self.context.catalog.initializer_args(),
        )
        render_utils = self.ledger.deploy(RENDER_UTILS_CONTRACT)
        print(f"Contracts Catalog deployed to: {catalog.address}")
        print(f"Contracts Views deployed to: {render_utils.address}")
        return CatalogContracts(catalog=catalog, render_utils=render_utils)

    def link_collections(self, collections: Collections, equippables: Equippables) -> None:
        print("\nLinking collections to their equip contracts")
        submit_batch(
            self.ledger,
            [
                call(collections.ticket.setEquippableAddress, equippables.ticket_equip.address),
                call(
                    collections.attachment.setEquippableAddress,
                    equippables.attachment_equip.address,
                ),
            ],
        )

    #
    # Content setup
    #

    def setup_catalog(self, catalog: Catalog, equippables: Equippables) -> None:
        print("\nSetting up Catalog")
        parts = [
            # background, fixed
            IntakePart(
                part_id=BACKGROUND_PART_ID,
                part=Part(
                    item_type=ItemType.FIXED,
                    z=BACKGROUND_Z,
                    equippable=[],
                    metadata_uri=BACKGROUND_METADATA_URI,
                ),
            ),
            # slot only attachments can be equipped into
            IntakePart(
                part_id=FRAME_SLOT_PART_ID,
                part=Part(
                    item_type=ItemType.SLOT,
                    z=FRAME_SLOT_Z,
                    equippable=[equippables.attachment_equip.address],
                    metadata_uri="",
                ),
            ),
        ]
        self.ledger.transact(catalog.addPartList, parts)
        print("Catalog is set")

    def mint_and_nest(self, collections: Collections) -> None:
        ticket, attachment = collections
        total_tickets = self.context.total_tickets
        owner = self.context.deployer

        print(f"\nMinting {total_tickets} {self.context.ticket.name} tickets to {owner}")
        self.ledger.transact(
            ticket.mint,
            owner,
            total_tickets,
            value=self.context.ticket.price_per_mint * total_tickets,
        )

        # Parent token ids must exist before nesting into them
        print(f"Nest-minting one {self.context.attachment.name} into each ticket")
        submit_batch(
            self.ledger,
            [
                call(
                    attachment.nestMint,
                    ticket.address,
                    NEST_MINT_QUANTITY,
                    token_id,
                    NEST_MINT_TASK_ID,
                    value=self.context.attachment.price_per_mint * NEST_MINT_QUANTITY,
                )
                for token_id in range(1, total_tickets + 1)
            ],
        )

        print(f"Accepting {self.context.attachment.name} for each ticket")
        for token_id in range(1, total_tickets + 1):
            # attachment n was nested into ticket n and is its only pending child
            self.ledger.transact(ticket.acceptChild, token_id, 0, attachment.address, token_id)
        print(f"Accepted {self.context.attachment.name} for each ticket")

    def register_assets(self, equippables: Equippables, catalog: Catalog) -> None:
        self._register_ticket_assets(equippables.ticket_equip, catalog)
        self._register_attachment_assets(
            equippables.attachment_equip, equippables.ticket_equip, catalog
        )

    def _register_ticket_assets(self, ticket_equip: EquippableCollection, catalog: Catalog):
        print("\nAdding ticket assets")
        submit_batch(
            self.ledger,
            [
                # catalog not needed for a plain asset
                call(
                    ticket_equip.addEquippableAssetEntry,
                    NO_EQUIPPABLE_GROUP,
                    ZERO_ADDRESS,
                    TICKET_DEFAULT_ASSET_URI,
                    [],
                ),
                # background plus the slot attachments are equipped into
                call(
                    ticket_equip.addEquippableAssetEntry,
                    NO_EQUIPPABLE_GROUP,
                    catalog.address,
                    TICKET_COMPOSED_ASSET_URI,
                    [BACKGROUND_PART_ID, FRAME_SLOT_PART_ID],
                ),
            ],
        )
        print("Added 2 asset entries")

        submit_batch(
            self.ledger,
            [
                call(
                    ticket_equip.addAssetToToken,
                    SHOWCASE_TOKEN_ID,
                    asset_id,
                    REPLACES_NO_ASSET,
                )
                for asset_id in (TICKET_DEFAULT_ASSET_ID, TICKET_COMPOSED_ASSET_ID)
            ],
        )
        print(f"Added assets to token {SHOWCASE_TOKEN_ID}")

        # accepting index 0 shifts the next pending asset into index 0
        for asset_id in (TICKET_DEFAULT_ASSET_ID, TICKET_COMPOSED_ASSET_ID):
            self.ledger.transact(ticket_equip.acceptAsset, SHOWCASE_TOKEN_ID, 0, asset_id)
        print("Assets accepted")

    def _register_attachment_assets(
        self,
        attachment_equip: EquippableCollection,
        ticket_equip: EquippableCollection,
        catalog: Catalog,
    ):
        print("\nAdding attachment assets")
        submit_batch(
            self.ledger,
            [
                call(
                    attachment_equip.addEquippableAssetEntry,
                    NO_EQUIPPABLE_GROUP,
                    catalog.address,
                    ATTACHMENT_FULL_ASSET_URI,
                    [],
                ),
                call(
                    attachment_equip.addEquippableAssetEntry,
                    ATTACHMENT_EQUIPPABLE_GROUP_ID,
                    catalog.address,
                    ATTACHMENT_EQUIPPABLE_ASSET_URI,
                    [],
                ),
            ],
        )
        print("Added attachment asset entries")

        print("Setting valid parent reference IDs")
        self.ledger.transact(
            attachment_equip.setValidParentForEquippableGroup,
            ATTACHMENT_EQUIPPABLE_GROUP_ID,
            ticket_equip.address,
            FRAME_SLOT_PART_ID,
        )

        submit_batch(
            self.ledger,
            [
                call(
                    attachment_equip.addAssetToToken,
                    SHOWCASE_TOKEN_ID,
                    asset_id,
                    REPLACES_NO_ASSET,
                )
                for asset_id in (ATTACHMENT_FULL_ASSET_ID, ATTACHMENT_EQUIPPABLE_ASSET_ID)
            ],
        )
        print(f"Added 2 assets to attachment {SHOWCASE_TOKEN_ID}")

        # pending: [full, equippable]; take the last one first so index 0 stays valid
        submit_batch(
            self.ledger,
            [
                call(
                    attachment_equip.acceptAsset,
                    SHOWCASE_TOKEN_ID,
                    1,
                    ATTACHMENT_EQUIPPABLE_ASSET_ID,
                ),
                call(attachment_equip.acceptAsset, SHOWCASE_TOKEN_ID, 0, ATTACHMENT_FULL_ASSET_ID),
            ],
        )
        print(f"Accepted 2 assets of attachment {SHOWCASE_TOKEN_ID}")

    def equip(self, equippables: Equippables) -> None:
        print("\nEquipping attachment")
        self.ledger.transact(
            equippables.ticket_equip.equip,
            IntakeEquip(
                token_id=SHOWCASE_TOKEN_ID,
                child_index=0,
                asset_id=TICKET_COMPOSED_ASSET_ID,
                slot_part_id=FRAME_SLOT_PART_ID,
                child_asset_id=ATTACHMENT_EQUIPPABLE_ASSET_ID,
            ),
        )
        print(f"Equipped attachment into ticket {SHOWCASE_TOKEN_ID}")

    def compose_and_render(self, render_utils: RenderUtils, equippables: Equippables) -> Any:
        print("\nComposing equippables")
        composed = render_utils.composeEquippables(
            equippables.ticket_equip.address, SHOWCASE_TOKEN_ID, TICKET_COMPOSED_ASSET_ID
        )
        print(f"Composed: {composed}")
        return composed


def run_workflow(main: Callable[[], Any]) -> int:
    """
    Runs `main` and returns the process exit status.

    This is the only place errors are caught: any failure is printed with its
    traceback and nothing after the failing call runs.
    """
    try:
        main()
    except Exception:
        click.secho("\nDeployment failed:", fg="red", err=True)
        click.echo(traceback.format_exc(), err=True)
        return 1
    return 0
