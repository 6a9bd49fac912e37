import os
from typing import NamedTuple, Optional

from ape import networks
from ape.api.networks import ProviderContextManager
from ape_accounts.accounts import ApeSigner

from ticketing.constants import DEFAULT_NETWORK, PRIVATE_KEY_ENVVAR, RPC_URL_ENVVAR


class DeploymentIdentity(NamedTuple):
    """Signing key and node endpoint, read once from the environment."""

    private_key: Optional[str]
    rpc_url: Optional[str]

    @classmethod
    def from_environment(cls) -> "DeploymentIdentity":
        # presence only; a missing value fails where it is first used
        return cls(
            private_key=os.environ.get(PRIVATE_KEY_ENVVAR),
            rpc_url=os.environ.get(RPC_URL_ENVVAR),
        )

    def account(self) -> "EnvironmentAccount":
        return EnvironmentAccount(private_key=self.private_key)


class EnvironmentAccount(ApeSigner):
    """
    Signs with a raw private key held in memory. Unlike imported ape accounts,
    the key is never written to a keyfile and there is nothing to unlock.
    """

    @property
    def alias(self) -> str:
        return "ENVIRONMENT"

    def set_autosign(self, enabled: bool, passphrase: Optional[str] = None):
        # always signs without prompting
        pass


def connect(identity: DeploymentIdentity, network: str = DEFAULT_NETWORK) -> ProviderContextManager:
    """
    Returns a provider context for `network` (``ecosystem:network``) backed by
    the identity's RPC endpoint.
    """
    return networks.parse_network_choice(f"{network}:{identity.rpc_url}")
