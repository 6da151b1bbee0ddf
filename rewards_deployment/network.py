from typing import Any, Callable, List, Optional

from ape import networks, project
from ape.api import AccountAPI
from ape.contracts import ContractContainer, ContractInstance
from ape_etherscan.utils import API_KEY_ENV_KEY_MAP

from rewards_deployment.config import etherscan_api_key
from rewards_deployment.constants import (
    ETHERSCAN_API_KEY_ENVVAR,
    LOCAL_BLOCKCHAIN_ENVIRONMENTS,
    OZ_DEPENDENCY_NAME,
    OZ_DEPENDENCY_VERSION,
    PROXY_CONTRACT_NAME,
)
from rewards_deployment.fees import FixedFeeProvider
from rewards_deployment.pipeline import Deployment, DeploymentNetwork, TransactionFailed


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_BLOCKCHAIN_ENVIRONMENTS


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the API key environment variable of the connected ecosystem is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        import ape_etherscan  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to verify contracts.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name, ETHERSCAN_API_KEY_ENVVAR)
    if not etherscan_api_key(envvar=explorer_envvar):
        raise ValueError(f"{explorer_envvar} is not set.")


def verify_contracts(addresses: List[str]) -> None:
    explorer = networks.provider.network.explorer
    for address in addresses:
        print(f"(i) Verifying {address}...")
        explorer.publish_contract(address)


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            return getattr(dependency_api, contract)
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    """Returns the compiled artifact (bytecode + ABI) for a contract name."""
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def get_proxy_container() -> ContractContainer:
    oz_dependency = project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]
    return getattr(oz_dependency, PROXY_CONTRACT_NAME)


def encode_initializer(container: ContractContainer, method_name: str, args: List[Any]) -> bytes:
    """
    Encodes a call to `method_name` from the contract ABI alone,
    so that no deployed instance is needed.
    """
    method_abis = [
        abi
        for abi in container.contract_type.methods
        if abi.name == method_name and len(abi.inputs) == len(args)
    ]
    if not method_abis:
        raise ValueError(
            f"{container.contract_type.name} has no method '{method_name}' "
            f"taking {len(args)} arguments."
        )
    abi = method_abis[0]
    ecosystem = networks.provider.network.ecosystem
    return bytes(ecosystem.get_method_selector(abi)) + bytes(ecosystem.encode_calldata(abi, *args))


def _to_deployment(
    instance: ContractInstance, implementation: Optional[ContractInstance] = None
) -> Deployment:
    receipt = instance.receipt
    return Deployment(
        address=instance.address,
        tx_hash=str(receipt.txn_hash),
        confirmed=not receipt.failed,
        implementation=implementation.address if implementation else None,
    )


class ApeNetwork(DeploymentNetwork):
    """
    Deploys contracts with an ape account, pricing every
    transaction with the fixed fee provider.
    """

    def __init__(
        self,
        account: AccountAPI,
        fee_provider: FixedFeeProvider,
        container_lookup: Callable[[str], ContractContainer] = get_contract_container,
        proxy_lookup: Callable[[], ContractContainer] = get_proxy_container,
        initializer_encoder: Callable[
            [ContractContainer, str, List[Any]], bytes
        ] = encode_initializer,
    ):
        super().__init__(fee_provider=fee_provider)
        self.account = account
        self._container_lookup = container_lookup
        self._proxy_lookup = proxy_lookup
        self._initializer_encoder = initializer_encoder

    @property
    def deployer_address(self) -> str:
        return self.account.address

    def _get_kwargs(self) -> dict:
        """Returns the deployment kwargs; fees are re-read for every transaction."""
        return dict(self.fee_provider.transaction_kwargs())

    def _deploy_contract(self, container: ContractContainer, args: List[Any]) -> ContractInstance:
        instance = self.account.deploy(container, *args, **self._get_kwargs())
        if instance.receipt.failed:
            raise TransactionFailed(
                f"{container.contract_type.name} deployment transaction "
                f"{instance.receipt.txn_hash} failed."
            )
        return instance

    def deploy(self, contract_name: str, args: List[Any]) -> Deployment:
        container = self._container_lookup(contract_name)
        instance = self._deploy_contract(container, args)
        return _to_deployment(instance)

    def deploy_proxy(self, contract_name: str, initializer: str, args: List[Any]) -> Deployment:
        container = self._container_lookup(contract_name)
        # nothing is broadcast if the initializer arguments cannot be encoded
        calldata = self._initializer_encoder(container, initializer, args)

        implementation = self._deploy_contract(container, [])
        print(f"{contract_name} implementation deployed to: {implementation.address}")

        proxy_container = self._proxy_lookup()
        print(
            f"\nDeploying {proxy_container.contract_type.name} "
            f"contract to proxy {contract_name} (initializer: {initializer})."
        )
        # the proxy constructor delegates the initializer call, so both are mined together
        proxy = self._deploy_contract(
            proxy_container, [implementation.address, self.deployer_address, calldata]
        )
        return _to_deployment(proxy, implementation=implementation)
