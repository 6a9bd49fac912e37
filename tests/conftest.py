import os
from collections import defaultdict

import pytest
from eth_utils import to_checksum_address
from web3 import Web3

from ticketing.constants import (
    CATALOG_CONTRACT,
    CONSTRUCTOR_PARAMS_DIR,
    EQUIP_CONTRACT,
    INITIALIZERS,
    NESTABLE_CONTRACT,
    RENDER_UTILS_CONTRACT,
    ItemType,
)
from ticketing.params import CatalogConfig, CollectionConfig, DeploymentContext
from ticketing.types import InitData
from ticketing.utils import read_params_file

ZERO_ADDRESS = "0x" + "0" * 40
PRICE_PER_MINT = Web3.to_wei("0.00001", "ether")
DEPLOYER = to_checksum_address("0x" + "a1" * 20)


def new_address():
    return to_checksum_address("0x" + os.urandom(20).hex())


class Revert(Exception):
    """Raised by the fake contracts, the way a reverted call surfaces from the client."""


#
# Simulated ledger
#


class FakeReceipt:
    def __init__(self, ledger, method_name, failed=False):
        self.ledger = ledger
        self.method_name = method_name
        self.failed = failed
        self.confirmed = False

    def await_confirmations(self):
        self.confirmed = True
        self.ledger.log.append(("confirmed", self.method_name))
        return self

    def raise_for_status(self):
        if self.failed:
            raise Revert(f"{self.method_name} reverted")


class FakeLedger:
    """
    Executes calls against in-process fake contracts and records, in order,
    every deployment, submission and confirmation.
    """

    def __init__(self, fail_on=None, fail_at=0, fail_receipt_of=None):
        self.contracts = dict()
        self.log = list()
        self.fail_on = fail_on
        self.fail_at = fail_at
        self.fail_receipt_of = fail_receipt_of
        self._submissions = defaultdict(int)

    def at(self, address):
        return self.contracts[address]

    def _create(self, contract_name, args):
        contract = FAKE_CONTRACTS[contract_name](self, new_address(), *args)
        self.contracts[contract.address] = contract
        return contract

    def deploy(self, contract_name, *args):
        contract = self._create(contract_name, args)
        self.log.append(("deploy", contract_name, contract.address))
        return contract

    def deploy_proxy(self, contract_name, initializer, *args):
        if INITIALIZERS[contract_name] != initializer:
            raise Revert(f"{initializer} is not the initializer of {contract_name}")
        contract = self._create(contract_name, args)
        self.log.append(("deploy_proxy", contract_name, contract.address, args))
        return contract

    def submit(self, method, *args, value=0):
        name = method.__name__
        occurrence = self._submissions[name]
        self._submissions[name] += 1
        if name == self.fail_on and occurrence == self.fail_at:
            raise Revert(f"{name} reverted")
        self.log.append(("submit", name, method.__self__.address, args, value))
        method(*args)
        return FakeReceipt(self, name, failed=name == self.fail_receipt_of)

    def transact(self, method, *args, value=0):
        receipt = self.submit(method, *args, value=value)
        receipt.await_confirmations()
        receipt.raise_for_status()
        return receipt

    def submissions(self, name):
        return [entry for entry in self.log if entry[0] == "submit" and entry[1] == name]

    def index_of(self, *entry_prefix):
        for index, entry in enumerate(self.log):
            if entry[: len(entry_prefix)] == entry_prefix:
                return index
        raise ValueError(f"{entry_prefix} not in ledger log")

    def last_index_of(self, *entry_prefix):
        matches = [i for i, e in enumerate(self.log) if e[: len(entry_prefix)] == entry_prefix]
        if not matches:
            raise ValueError(f"{entry_prefix} not in ledger log")
        return matches[-1]


#
# Fake ticketing contracts
#


class FakeContract:
    def __init__(self, ledger, address, *initializer_args):
        self.ledger = ledger
        self.address = address
        self.initializer_args = initializer_args


class FakeNestable(FakeContract):
    def __init__(self, ledger, address, *initializer_args):
        super().__init__(ledger, address, *initializer_args)
        self.equippable = None
        self.owners = dict()
        self.pending_children = defaultdict(list)
        self.active_children = defaultdict(list)
        self._next_token_id = 1

    def setEquippableAddress(self, equippable):
        self.equippable = equippable

    def _mint(self, owner, quantity):
        token_ids = list(range(self._next_token_id, self._next_token_id + quantity))
        for token_id in token_ids:
            self.owners[token_id] = owner
        self._next_token_id += quantity
        return token_ids

    def mint(self, to, num_to_mint):
        self._mint(to, num_to_mint)

    def nestMint(self, to, num_to_mint, destination_id, task_id):
        parent = self.ledger.at(to)
        if destination_id not in parent.owners:
            raise Revert("ERC721InvalidTokenId")
        for token_id in self._mint(to, num_to_mint):
            parent.pending_children[destination_id].append((self.address, token_id))

    def acceptChild(self, parent_id, child_index, child_address, child_id):
        pending = self.pending_children[parent_id]
        if child_index >= len(pending) or pending[child_index] != (child_address, child_id):
            raise Revert("UnexpectedChildId")
        self.active_children[parent_id].append(pending.pop(child_index))


class FakeEquip(FakeContract):
    def __init__(self, ledger, address, nestable_address):
        super().__init__(ledger, address, nestable_address)
        self.nestable_address = nestable_address
        self.assets = dict()
        self.pending_assets = defaultdict(list)
        self.active_assets = defaultdict(list)
        self.valid_parents = dict()
        self.equipments = dict()
        self._next_asset_id = 1

    def addEquippableAssetEntry(self, equippable_group_id, catalog_address, metadata_uri, part_ids):
        self.assets[self._next_asset_id] = {
            "group": equippable_group_id,
            "catalog": catalog_address,
            "metadata_uri": metadata_uri,
            "part_ids": list(part_ids),
        }
        self._next_asset_id += 1

    def addAssetToToken(self, token_id, asset_id, replaces_asset_with_id):
        if asset_id not in self.assets:
            raise Revert("NoAssetMatchingId")
        self.pending_assets[token_id].append(asset_id)

    def acceptAsset(self, token_id, index, asset_id):
        pending = self.pending_assets[token_id]
        if index >= len(pending) or pending[index] != asset_id:
            raise Revert("UnexpectedAssetId")
        self.active_assets[token_id].append(pending.pop(index))

    def setValidParentForEquippableGroup(self, equippable_group_id, parent_address, part_id):
        self.valid_parents[equippable_group_id] = (parent_address, part_id)

    def equip(self, data):
        nestable = self.ledger.at(self.nestable_address)
        children = nestable.active_children[data.token_id]
        if data.child_index >= len(children):
            raise Revert("ChildIndexOutOfRange")
        if data.asset_id not in self.active_assets[data.token_id]:
            raise Revert("TokenDoesNotHaveAsset")
        if data.slot_part_id not in self.assets[data.asset_id]["part_ids"]:
            raise Revert("TargetAssetCannotReceiveSlot")

        child_address, child_id = children[data.child_index]
        child_equip = self.ledger.at(self.ledger.at(child_address).equippable)
        if data.child_asset_id not in child_equip.active_assets[child_id]:
            raise Revert("ChildDoesNotHaveAsset")
        group = child_equip.assets[data.child_asset_id]["group"]
        if child_equip.valid_parents.get(group) != (self.address, data.slot_part_id):
            raise Revert("EquippableEquipNotAllowedByCatalog")

        catalog = self.ledger.at(self.assets[data.asset_id]["catalog"])
        if child_equip.address not in catalog.parts[data.slot_part_id].equippable:
            raise Revert("EquippableEquipNotAllowedByCatalog")

        self.equipments[(data.token_id, data.asset_id, data.slot_part_id)] = (
            child_equip.address,
            child_id,
            data.child_asset_id,
        )


class FakeCatalog(FakeContract):
    def __init__(self, ledger, address, *initializer_args):
        super().__init__(ledger, address, *initializer_args)
        self.parts = dict()

    def addPartList(self, parts):
        for intake in parts:
            if intake.part_id in self.parts:
                raise Revert("IdAlreadyExists")
            self.parts[intake.part_id] = intake.part


class FakeRenderUtils(FakeContract):
    def composeEquippables(self, target, token_id, asset_id):
        equip = self.ledger.at(target)
        asset = equip.assets[asset_id]
        catalog = self.ledger.at(asset["catalog"])
        fixed_parts, slot_parts = [], []
        for part_id in asset["part_ids"]:
            part = catalog.parts[part_id]
            if part.item_type == ItemType.FIXED:
                fixed_parts.append((part_id, part.z, part.metadata_uri))
                continue
            child_equip_address, _, child_asset_id = equip.equipments[
                (token_id, asset_id, part_id)
            ]
            child_asset = self.ledger.at(child_equip_address).assets[child_asset_id]
            slot_parts.append((part_id, child_asset_id, part.z, child_asset["metadata_uri"]))
        return asset["metadata_uri"], fixed_parts, slot_parts


FAKE_CONTRACTS = {
    NESTABLE_CONTRACT: FakeNestable,
    EQUIP_CONTRACT: FakeEquip,
    CATALOG_CONTRACT: FakeCatalog,
    RENDER_UTILS_CONTRACT: FakeRenderUtils,
}


#
# Fixtures
#


def _collection(name, symbol, max_supply):
    return CollectionConfig(
        external_adapter=ZERO_ADDRESS,
        name=name,
        symbol=symbol,
        collection_metadata="ipfs://collectionMeta",
        token_uri="ipfs://tokenMeta",
        init_data=InitData(
            erc20_token_address=ZERO_ADDRESS,
            token_uri_is_enumerable=True,
            royalty_recipient=DEPLOYER,
            royalty_percentage_bps=10,
            max_supply=max_supply,
            price_per_mint=PRICE_PER_MINT,
        ),
    )


@pytest.fixture
def deployment_context():
    return DeploymentContext(
        deployer=DEPLOYER,
        total_tickets=2,
        ticket=_collection("Taylor Swift Concert", "TSS", 1000),
        attachment=_collection("Ticket Golden Frame", "TGF", 100),
        catalog=CatalogConfig(metadata_uri="ipfs://collectionMeta", type="svg"),
    )


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def sepolia_config():
    return read_params_file(CONSTRUCTOR_PARAMS_DIR / "sepolia" / "concert.yml")
