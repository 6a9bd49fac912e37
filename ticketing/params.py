import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from ape import networks
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.exceptions import SignatureError, TransactionError
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address, to_hex
from ethpm_types import MethodABI
from web3.auto import w3

from ticketing.confirm import _confirm_resolution, _continue
from ticketing.constants import DEFAULT_TOTAL_TICKETS, PROXY_CONTRACT_NAME
from ticketing.registry import record_deployments
from ticketing.types import InitData
from ticketing.utils import (
    check_params,
    get_contract_container,
    get_proxy_container,
    read_params_file,
    require_explorer_api_key,
)

COLLECTION_KEYS = ("ticket", "attachment")


class VariableContext(NamedTuple):
    """What `$` references in a parameters file can resolve to."""

    deployer_address: ChecksumAddress
    constants: Dict[str, Any]


# Variables


class Variable(ABC):
    PREFIX = "$"

    def __init__(self, name: str):
        self.name = name

    @staticmethod
    @abstractmethod
    def matches(name: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def resolve(self, context: VariableContext) -> Any:
        raise NotImplementedError

    @classmethod
    def parse(cls, value: Any) -> Optional["Variable"]:
        """Returns the variable `value` refers to, or None for a literal value."""
        if not (isinstance(value, str) and value.startswith(cls.PREFIX)):
            return None
        name = value[len(cls.PREFIX) :]
        for kind in (DeployerAccount, Constant):
            if kind.matches(name):
                return kind(name)
        raise ValueError(f"Variable '{value}' is not resolvable.")


class DeployerAccount(Variable):
    """`$deployer`: the address of the signing account."""

    @staticmethod
    def matches(name: str) -> bool:
        return name == "deployer"

    def resolve(self, context: VariableContext) -> Any:
        return context.deployer_address


class Constant(Variable):
    """`$UPPER_CASE`: a value from the `constants` section."""

    @staticmethod
    def matches(name: str) -> bool:
        return name.isupper()

    def resolve(self, context: VariableContext) -> Any:
        try:
            return context.constants[self.name]
        except KeyError:
            raise ValueError(f"Constant '{self.name}' is not defined in the parameters file.")


def resolve_value(value: Any, context: VariableContext) -> Any:
    if isinstance(value, list):
        return [resolve_value(item, context) for item in value]
    variable = Variable.parse(value)
    if variable is None:
        return value
    return variable.resolve(context)


# Configuration records


class CollectionConfig(NamedTuple):
    external_adapter: ChecksumAddress
    name: str
    symbol: str
    collection_metadata: str
    token_uri: str
    init_data: InitData

    def initializer_args(self) -> List[Any]:
        """Arguments of the nestable collection initializer, in ABI order."""
        return [
            self.external_adapter,
            self.name,
            self.symbol,
            self.collection_metadata,
            self.token_uri,
            self.init_data,
        ]

    @property
    def price_per_mint(self) -> int:
        return self.init_data.price_per_mint


class CatalogConfig(NamedTuple):
    metadata_uri: str
    type: str

    def initializer_args(self) -> List[Any]:
        return [self.metadata_uri, self.type]


class DeploymentContext(NamedTuple):
    """Read-only inputs of a single deployment run."""

    deployer: ChecksumAddress
    total_tickets: int
    ticket: CollectionConfig
    attachment: CollectionConfig
    catalog: CatalogConfig


class DeploymentParameters:
    """Represents the parameters of a ticketing deployment, as read from a params file."""

    COLLECTION_FIELDS = ("external_adapter", "name", "symbol", "collection_metadata", "token_uri")
    INIT_DATA_FIELDS = InitData._fields
    CATALOG_FIELDS = CatalogConfig._fields

    class Invalid(Exception):
        """Raised when the deployment parameters are invalid"""

    def __init__(self, context: DeploymentContext):
        self.context = context

    @classmethod
    def from_config(
        cls,
        config: typing.Dict,
        deployer_address: ChecksumAddress,
        total_tickets: Optional[int] = None,
    ) -> "DeploymentParameters":
        print("Processing deployment parameters...")
        variable_context = VariableContext(
            deployer_address=deployer_address, constants=config.get("constants") or dict()
        )

        collections = config.get("collections") or dict()
        missing = [key for key in COLLECTION_KEYS if key not in collections]
        if missing:
            raise cls.Invalid(f"Missing collection(s) in parameters file: {', '.join(missing)}.")
        ticket, attachment = (
            cls._collection_config(key, collections[key], variable_context)
            for key in COLLECTION_KEYS
        )

        catalog_values = cls._check_fields(
            "catalog", config.get("catalog"), cls.CATALOG_FIELDS, variable_context
        )
        catalog = CatalogConfig(**catalog_values)

        if total_tickets is None:
            workflow = config.get("workflow") or dict()
            total_tickets = resolve_value(
                workflow.get("total_tickets", DEFAULT_TOTAL_TICKETS), variable_context
            )
        if int(total_tickets) < 1:
            raise cls.Invalid(f"total_tickets must be at least 1, got {total_tickets}.")

        context = DeploymentContext(
            deployer=deployer_address,
            total_tickets=int(total_tickets),
            ticket=ticket,
            attachment=attachment,
            catalog=catalog,
        )
        return cls(context=context)

    @classmethod
    def _check_fields(
        cls,
        section: str,
        values: Optional[typing.Dict[str, Any]],
        fields: Sequence[str],
        variable_context: VariableContext,
    ) -> OrderedDict:
        """Resolves the values of a section that must hold exactly `fields`."""
        if not isinstance(values, dict):
            raise cls.Invalid(f"Malformed '{section}' section in parameters file.")
        unexpected = set(values) - set(fields)
        if unexpected:
            raise cls.Invalid(f"Unexpected field(s) for '{section}': {', '.join(sorted(unexpected))}.")
        missing = [field for field in fields if field not in values]
        if missing:
            raise cls.Invalid(f"Missing field(s) for '{section}': {', '.join(missing)}.")
        return OrderedDict(
            (field, resolve_value(values[field], variable_context)) for field in fields
        )

    @classmethod
    def _collection_config(
        cls, key: str, values: typing.Dict[str, Any], variable_context: VariableContext
    ) -> CollectionConfig:
        values = dict(values or {})
        init_data_values = cls._check_fields(
            f"{key}.init_data", values.pop("init_data", None), cls.INIT_DATA_FIELDS, variable_context
        )
        collection_values = cls._check_fields(key, values, cls.COLLECTION_FIELDS, variable_context)

        for field in ("erc20_token_address", "royalty_recipient"):
            init_data_values[field] = to_checksum_address(init_data_values[field])
        collection_values["external_adapter"] = to_checksum_address(
            collection_values["external_adapter"]
        )
        return CollectionConfig(init_data=InitData(**init_data_values), **collection_values)


def _validate_method_args(method_abis: List[MethodABI], args: Sequence[Any]) -> Dict[str, Any]:
    """
    Returns the arguments keyed by input name for the first overload of the
    method they can be encoded for; raises ValueError when there is none.
    """
    if not method_abis:
        raise ValueError("No method abis provided for validation of args")

    for abi in method_abis:
        if len(abi.inputs) != len(args):
            continue
        if all(w3.is_encodable(item.canonical_type, arg) for item, arg in zip(abi.inputs, args)):
            return {item.name: arg for item, arg in zip(abi.inputs, args)}
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


class PendingTransaction:
    """A signed transaction accepted by the node and not awaited yet."""

    def __init__(self, txn_hash: str, nonce: int):
        self.txn_hash = txn_hash
        self.nonce = nonce
        self.receipt: Optional[ReceiptAPI] = None

    def await_confirmations(self) -> ReceiptAPI:
        provider = networks.provider
        self.receipt = provider.get_receipt(
            self.txn_hash, required_confirmations=provider.network.required_confirmations
        )
        return self.receipt

    def raise_for_status(self) -> None:
        if self.receipt is None:
            raise TransactionError(f"Transaction '{self.txn_hash}' has not been awaited.")
        self.receipt.raise_for_status()


class Transactor:
    """
    Signs and sends ticketing transactions from one ape account, printing each
    call with its named arguments and, unless autosigning, asking to go on.
    """

    def __init__(self, account: Optional[AccountAPI] = None, autosign: bool = False):
        self._account = account if account is not None else select_account()
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._account.set_autosign(autosign)
        self._autosign = autosign
        self._next_nonce: Optional[int] = None

    def _announce(self, method: ContractTransactionHandler, args: Sequence[Any], value: int):
        contract = method.contract
        lines = [f"\nTransacting {contract.contract_type.name}[{contract.address[:10]}].{method}"]
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        lines.extend(f"\t{name}={arg}" for name, arg in named_args.items())
        if value:
            lines.append(f"\tvalue={value}")
        print("\n".join(lines))
        if not self._autosign:
            _continue()

    def _take_nonce(self) -> int:
        # the node only counts mined transactions; unmined ones are tracked here
        nonce = self._account.nonce
        if self._next_nonce is not None:
            nonce = max(nonce, self._next_nonce)
        self._next_nonce = nonce + 1
        return nonce

    def submit(
        self, method: ContractTransactionHandler, *args, value: int = 0
    ) -> PendingTransaction:
        """Signs and broadcasts a transaction without waiting for it to be mined."""
        self._announce(method, args, value)
        txn = method.as_transaction(
            *args, sender=self._account, value=value, nonce=self._take_nonce(), sign=True
        )
        if txn.signature is None:
            raise SignatureError("The transaction was not signed.", transaction=txn)
        txn_hash = networks.provider.web3.eth.send_raw_transaction(txn.serialize_transaction())
        return PendingTransaction(txn_hash=to_hex(txn_hash), nonce=txn.nonce)

    def transact(self, method: ContractTransactionHandler, *args, value: int = 0) -> ReceiptAPI:
        """Sends a transaction and waits until it is confirmed."""
        pending = self.submit(method, *args, value=value)
        receipt = pending.await_confirmations()
        pending.raise_for_status()
        return receipt


class Deployer(Transactor):
    """
    A Transactor that also deploys the ticketing contracts, most of them
    behind transparent proxies, from the parameters of a deployment.
    """

    def __init__(
        self,
        config: Dict,
        path: Path,
        verify: bool,
        account: Optional[AccountAPI] = None,
        autosign: bool = False,
        total_tickets: Optional[int] = None,
    ):
        super().__init__(account, autosign)
        if verify:
            require_explorer_api_key()

        self.config = config
        self.path = path
        self.verify = verify
        self.registry_filepath = check_params(self.config)
        self.parameters = DeploymentParameters.from_config(
            self.config, deployer_address=self._account.address, total_tickets=total_tickets
        )
        self.context = self.parameters.context
        self._implementations: Dict[str, ContractInstance] = dict()

        self._print_deployment_info()
        if not self._autosign:
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, **kwargs) -> "Deployer":
        return cls(config=read_params_file(filepath), path=filepath, **kwargs)

    def _deploy_contract(self, container: ContractContainer, *args) -> ContractInstance:
        if not self._autosign:
            _confirm_resolution(args, container.contract_type.name, initializer="constructor")
        return self._account.deploy(container, *args, publish=self.verify)

    def deploy(self, contract_name: str, *args) -> ContractInstance:
        """Deploys a contract without a proxy."""
        return self._deploy_contract(get_contract_container(contract_name), *args)

    def _get_implementation(self, container: ContractContainer) -> ContractInstance:
        """Deploys the logic contract once per run; later proxies of the same type reuse it."""
        contract_name = container.contract_type.name
        if contract_name not in self._implementations:
            print(f"\nDeploying {contract_name} implementation.")
            self._implementations[contract_name] = self._deploy_contract(container)
        return self._implementations[contract_name]

    def deploy_proxy(self, contract_name: str, initializer: str, *args) -> ContractInstance:
        """
        Deploys a TransparentUpgradeableProxy in front of `contract_name`, initialized
        by calling `initializer` with `args` in the proxy constructor.
        """
        container = get_contract_container(contract_name)
        implementation = self._get_implementation(container)
        initialize = getattr(implementation, initializer)

        _validate_method_args(method_abis=initialize.abis, args=args)
        if not self._autosign:
            _confirm_resolution(args, contract_name, initializer=initializer)

        print(f"\nDeploying {PROXY_CONTRACT_NAME} contract to proxy {contract_name}.")
        proxy = self._account.deploy(
            get_proxy_container(),
            implementation.address,
            self._account.address,
            initialize.encode_input(*args),
            publish=self.verify,
        )
        print(f"\nWrapping {contract_name} into {PROXY_CONTRACT_NAME} at {proxy.address}.")
        return container.at(proxy.address)

    def finalize(self, deployments: Dict[str, ContractInstance]) -> Path:
        """Publishes the deployments to the registry."""
        return record_deployments(deployments=deployments, filepath=self.registry_filepath)

    def _print_deployment_info(self):
        network = networks.provider.network
        print(
            f"Account: {self._account.address}",
            f"Parameters: {self.path}",
            f"Registry: {self.registry_filepath}",
            f"Verify: {self.verify}",
            f"Network: {network.ecosystem.name}:{network.name} (chain {network.chain_id})",
            f"Total tickets: {self.context.total_tickets}",
            sep="\n",
        )
