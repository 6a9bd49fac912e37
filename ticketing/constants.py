from enum import IntEnum
from pathlib import Path

import ticketing

#
# Filesystem
#

TICKETING_DIR = Path(ticketing.__file__).parent
CONSTRUCTOR_PARAMS_DIR = TICKETING_DIR / "constructor_params"
ARTIFACTS_DIR = TICKETING_DIR / "artifacts"

#
# Environment
#

PRIVATE_KEY_ENVVAR = "PRIVATE_KEY"
RPC_URL_ENVVAR = "SEPOLIA_RPC_URL"

DEFAULT_NETWORK = "ethereum:sepolia"
LOCAL_NETWORKS = ["local"]

#
# Contracts
#

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"
PROXY_CONTRACT_NAME = "TransparentUpgradeableProxy"

NESTABLE_CONTRACT = "TicketingNestableExternalEquipImpl"
EQUIP_CONTRACT = "TicketingExternalEquipImpl"
CATALOG_CONTRACT = "NftCatalog"
RENDER_UTILS_CONTRACT = "TicketingEquipRenderUtils"

INITIALIZERS = {
    NESTABLE_CONTRACT: "__TicketingNestableExternalEquipImpl_init",
    EQUIP_CONTRACT: "__TicketingExternalEquipImpl_init",
    CATALOG_CONTRACT: "___NftCatalog_init",
}

# Registry names; two deployments share each implementation type.
REGISTRY_NAMES = {
    "ticket": "TicketCollection",
    "ticket_equip": "TicketEquip",
    "attachment": "AttachmentCollection",
    "attachment_equip": "AttachmentEquip",
    "catalog": "NftCatalog",
    "render_utils": "TicketingEquipRenderUtils",
}

# Sepolia LINK token used to fund the external adapter
LINK_TOKEN_ADDRESS = "0x779877A7B0D9E8603169DdbD7836e478b4624789"

#
# Catalog
#


class ItemType(IntEnum):
    NONE = 0
    SLOT = 1
    FIXED = 2


BACKGROUND_PART_ID = 1
FRAME_SLOT_PART_ID = 2

BACKGROUND_Z = 0
FRAME_SLOT_Z = 4
BACKGROUND_METADATA_URI = "ipfs://backgrounds/1.svg"

#
# Assets
#

# Ticket: a plain default asset and a composed one using both catalog parts
TICKET_DEFAULT_ASSET_ID = 1
TICKET_COMPOSED_ASSET_ID = 2
TICKET_DEFAULT_ASSET_URI = "ipfs://default.png"
TICKET_COMPOSED_ASSET_URI = "ipfs://meta1.json"

# Attachment: a full version and a version meant to be equipped into the slot
ATTACHMENT_FULL_ASSET_ID = 1
ATTACHMENT_EQUIPPABLE_ASSET_ID = 2
ATTACHMENT_FULL_ASSET_URI = "ipfs://goldenFrame/full.svg"
ATTACHMENT_EQUIPPABLE_ASSET_URI = "ipfs://frame/equippableFrame.svg"

# Groups assets of the child that can be equipped into a parent
ATTACHMENT_EQUIPPABLE_GROUP_ID = 1
NO_EQUIPPABLE_GROUP = 0

#
# Minting and equipping
#

DEFAULT_TOTAL_TICKETS = 2
NEST_MINT_QUANTITY = 1
NEST_MINT_TASK_ID = 1

SHOWCASE_TOKEN_ID = 1
REPLACES_NO_ASSET = 0
