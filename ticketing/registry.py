import json
from pathlib import Path
from typing import Any, Dict, List, NamedTuple

from ape.contracts import ContractInstance
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from eth_typing import ABI

from ticketing.utils import get_contract_container, read_json

ChainId = int
RegistryName = str

REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": "), "sort_keys": True}


class RegistryEntry(NamedTuple):
    """One deployed ticketing contract, under the name the deployment gave it."""

    chain_id: ChainId
    name: RegistryName
    contract_type: str
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str

    @classmethod
    def from_deployment(cls, name: RegistryName, instance: ContractInstance) -> "RegistryEntry":
        # proxied contracts report the receipt of the proxy deployment
        receipt = instance.receipt
        return cls(
            chain_id=receipt.chain_id,
            name=name,
            contract_type=instance.contract_type.name,
            address=to_checksum_address(instance.address),
            abi=[item.model_dump(mode="json", by_alias=True) for item in instance.contract_type.abi],
            tx_hash=receipt.txn_hash,
            block_number=receipt.block_number,
            deployer=receipt.transaction.sender,
        )

    @classmethod
    def from_json(cls, chain_id: str, name: RegistryName, data: Dict[str, Any]) -> "RegistryEntry":
        return cls(chain_id=int(chain_id), name=name, **data)

    def to_json(self) -> Dict[str, Any]:
        data = self._asdict()
        del data["chain_id"], data["name"]
        data["abi"] = sorted(self.abi, key=lambda item: (item["type"], item.get("name", "")))
        data["block_number"] = int(self.block_number)
        return data


def read_registry(filepath: Path) -> List[RegistryEntry]:
    return [
        RegistryEntry.from_json(chain_id, name, data)
        for chain_id, contracts in read_json(filepath).items()
        for name, data in contracts.items()
    ]


def write_registry(entries: List[RegistryEntry], filepath: Path, silent: bool = False) -> Path:
    """
    Writes ticketing registry entries, grouped by chain id.

    Each run deploys new instances, so the chains written here replace their
    entries in an existing registry; entries of other chains are kept.
    """
    if not entries:
        print("No entries provided.")
        return filepath

    chains: Dict[str, Dict[str, Any]] = dict()
    for entry in entries:
        chains.setdefault(str(entry.chain_id), dict())[entry.name] = entry.to_json()

    if filepath.exists():
        registry = read_json(filepath)
        replaced = sorted(set(chains) & set(registry))
        if not silent:
            if replaced:
                print(f"Replacing entries for chain id(s) {', '.join(replaced)} in {filepath}.")
            else:
                print(f"Updating existing registry at {filepath}.")
        registry.update(chains)
    else:
        if not silent:
            print(f"Creating new registry at {filepath}.")
        filepath.parent.mkdir(parents=True, exist_ok=True)
        registry = chains

    filepath.write_text(json.dumps(registry, **REGISTRY_JSON_FORMAT))
    return filepath


def record_deployments(deployments: Dict[RegistryName, ContractInstance], filepath: Path) -> Path:
    """Writes a registry entry for every named contract of a finished deployment."""
    entries = [RegistryEntry.from_deployment(name, instance) for name, instance in deployments.items()]
    filepath = write_registry(entries=entries, filepath=filepath)
    print(f"(i) Registry written to {filepath}!")
    return filepath


def load_deployed_contracts(filepath: Path, chain_id: ChainId) -> Dict[RegistryName, ContractInstance]:
    """Contract instances of one chain's registry entries, by registry name."""
    return {
        entry.name: get_contract_container(entry.contract_type).at(entry.address)
        for entry in read_registry(filepath)
        if entry.chain_id == chain_id
    }
