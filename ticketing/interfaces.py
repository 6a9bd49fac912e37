"""
Capabilities the workflow needs from the external ticketing contracts and from
the ledger it deploys to. Ape contract instances satisfy these structurally;
so do the in-process fakes used by the tests.
"""

from typing import Any, Callable, Protocol, Sequence

from eth_typing import ChecksumAddress

from ticketing.types import IntakeEquip, IntakePart


class Receipt(Protocol):
    def await_confirmations(self) -> Any:
        ...

    def raise_for_status(self) -> None:
        ...


class Contract(Protocol):
    address: ChecksumAddress


class NestableCollection(Contract, Protocol):
    def setEquippableAddress(self, equippable: ChecksumAddress):
        ...

    def mint(self, to: ChecksumAddress, num_to_mint: int):
        ...

    def nestMint(self, to: ChecksumAddress, num_to_mint: int, destination_id: int, task_id: int):
        ...

    def acceptChild(
        self, parent_id: int, child_index: int, child_address: ChecksumAddress, child_id: int
    ):
        ...


class EquippableCollection(Contract, Protocol):
    def addEquippableAssetEntry(
        self,
        equippable_group_id: int,
        catalog_address: ChecksumAddress,
        metadata_uri: str,
        part_ids: Sequence[int],
    ):
        ...

    def addAssetToToken(self, token_id: int, asset_id: int, replaces_asset_with_id: int):
        ...

    def acceptAsset(self, token_id: int, index: int, asset_id: int):
        ...

    def setValidParentForEquippableGroup(
        self, equippable_group_id: int, parent_address: ChecksumAddress, part_id: int
    ):
        ...

    def equip(self, data: IntakeEquip):
        ...


class Catalog(Contract, Protocol):
    def addPartList(self, parts: Sequence[IntakePart]):
        ...


class RenderUtils(Contract, Protocol):
    def composeEquippables(self, target: ChecksumAddress, token_id: int, asset_id: int) -> Any:
        ...


class Ledger(Protocol):
    """Deploys contracts and sends transactions on behalf of a single signer."""

    def deploy(self, contract_name: str, *args) -> Contract:
        ...

    def deploy_proxy(self, contract_name: str, initializer: str, *args) -> Contract:
        ...

    def submit(self, method: Callable, *args, value: int = 0) -> Receipt:
        ...

    def transact(self, method: Callable, *args, value: int = 0) -> Receipt:
        ...
