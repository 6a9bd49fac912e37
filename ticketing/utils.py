import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml
from ape import networks, project
from ape.contracts import ContractContainer, ContractInstance

from ticketing.constants import (
    ARTIFACTS_DIR,
    LOCAL_NETWORKS,
    OZ_DEPENDENCY_NAME,
    OZ_DEPENDENCY_VERSION,
    PROXY_CONTRACT_NAME,
)

REQUIRED_SECTIONS = ("deployment", "collections", "catalog")


def read_params_file(filepath: Path) -> Dict[str, Any]:
    with open(filepath) as params_file:
        return yaml.safe_load(params_file) or dict()


def read_json(filepath: Path) -> Any:
    with open(filepath) as json_file:
        return json.load(json_file)


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def registry_filepath(config: Dict) -> Path:
    """Where the registry of a deployment made with `config` is written."""
    artifacts = config.get("artifacts") or dict()
    try:
        filename = artifacts["filename"]
    except KeyError:
        raise ValueError("Parameters file has no 'artifacts.filename' for the registry.")
    return Path(artifacts.get("dir", ARTIFACTS_DIR)) / filename


def check_params(config: Dict) -> Path:
    """
    Rejects a parameters file without the sections a deployment reads, or one
    written for another chain than the connected one (local networks excepted).
    Returns the registry filepath.
    """
    print("Checking parameters file...")
    for section in REQUIRED_SECTIONS:
        if not config.get(section):
            raise ValueError(f"Parameters file has no '{section}' section.")

    expected_chain_id = config["deployment"].get("chain_id")
    if expected_chain_id is None:
        raise ValueError("Parameters file has no 'deployment.chain_id'.")

    connected_chain_id = networks.provider.chain_id
    if int(expected_chain_id) != connected_chain_id and not is_local_network():
        raise ValueError(
            f"Parameters are for chain {expected_chain_id}, "
            f"but the connected network is chain {connected_chain_id}."
        )
    return registry_filepath(config)


def require_explorer_api_key() -> None:
    """Fails early when contracts cannot be published to the block explorer."""
    if is_local_network():
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Contract verification needs the ape-etherscan plugin.")
    envvar = API_KEY_ENV_KEY_MAP.get(networks.provider.network.ecosystem.name)
    if not os.environ.get(envvar):
        raise ValueError(f"Set {envvar} to verify contracts.")


def implementation_of(instance: ContractInstance) -> ContractInstance:
    """The logic contract behind `instance` when it is a proxy, else `instance` itself."""
    proxy_info = networks.provider.network.ecosystem.get_proxy_info(instance.address)
    if not proxy_info:
        return instance
    print(f"{instance.address} is a proxy; using its implementation at {proxy_info.target}")
    return get_contract_container(instance.contract_type.name).at(proxy_info.target)


def publish_to_explorer(instances: Iterable[ContractInstance]) -> None:
    explorer = networks.provider.network.explorer
    for instance in instances:
        print(f"(i) Publishing {instance.contract_type.name} source at {instance.address}...")
        explorer.publish_contract(instance.address)


def _contract_sources() -> List[Any]:
    sources = [project]
    for name, versions in project.dependencies.items():
        if len(versions) > 1:
            raise ValueError(f"More than one version of dependency '{name}' is installed.")
        sources.extend(versions.values())
    return sources


def get_contract_container(contract_name: str) -> ContractContainer:
    """Looks a contract type up in the project first, then in its dependencies."""
    for source in _contract_sources():
        container = getattr(source, contract_name, None)
        if container is not None:
            return container
    raise ValueError(f"Contract type '{contract_name}' is not in the project or its dependencies.")


def get_proxy_container() -> ContractContainer:
    oz_dependency = project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]
    return getattr(oz_dependency, PROXY_CONTRACT_NAME)
