import itertools
import typing
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from eth_utils import is_address, to_checksum_address

from rewards_deployment.fees import FeePolicy, FixedFeeProvider
from rewards_deployment.params import DeploymentPlan
from rewards_deployment.pipeline import Deployment, DeploymentNetwork

# Common constants
DEPLOYER = to_checksum_address("0x" + "de" * 20)

STAKED_TOKEN = to_checksum_address("0x" + "11" * 20)
REWARD_TOKEN = to_checksum_address("0x" + "22" * 20)
OPERATOR = to_checksum_address("0x" + "33" * 20)
REWARDS_VAULT = to_checksum_address("0x" + "44" * 20)
BAL_OPERATION_VAULT = to_checksum_address("0x" + "55" * 20)
BAL_TOKEN = to_checksum_address("0x" + "66" * 20)
BALANCER_MINTER = to_checksum_address("0x" + "77" * 20)

ENVIRONMENT = {
    "STAKEDTOKEN": STAKED_TOKEN,
    "REWARDTOKEN": REWARD_TOKEN,
    "OPERATOR": OPERATOR,
    "REWARDSVAULT": REWARDS_VAULT,
    "BALOPERATIONVAULT": BAL_OPERATION_VAULT,
    "BALTOKEN": BAL_TOKEN,
    "BALANCERMINTER": BALANCER_MINTER,
}

INITIALIZER_ARGS = [
    STAKED_TOKEN,
    REWARD_TOKEN,
    OPERATOR,
    REWARDS_VAULT,
    BAL_OPERATION_VAULT,
    BAL_TOKEN,
    BALANCER_MINTER,
]

PLAN_CONSTANTS = {
    "STAKED_TOKEN": STAKED_TOKEN,
    "REWARD_TOKEN": REWARD_TOKEN,
    "OPERATOR": OPERATOR,
    "REWARDS_VAULT": REWARDS_VAULT,
    "BAL_OPERATION_VAULT": BAL_OPERATION_VAULT,
    "BAL_TOKEN": BAL_TOKEN,
    "BALANCER_MINTER": BALANCER_MINTER,
}

PLAN_CONFIG = {
    "deployment": {"name": "staking-rewards-test", "chain_id": 1337},
    "artifacts": {"filename": "test.json"},
    "fees": {"max_fee": "100 gwei", "max_priority_fee": "5 gwei", "base_fee": "20 gwei"},
    "constants": {
        "STAKED_TOKEN": None,
        "REWARD_TOKEN": None,
        "OPERATOR": None,
        "REWARDS_VAULT": None,
        "BAL_OPERATION_VAULT": None,
        "BAL_TOKEN": None,
        "BALANCER_MINTER": None,
    },
    "contracts": [
        {
            "StakingRewards": {
                "proxy": {
                    "initializer": "initialize",
                    "arguments": {
                        "_stakedToken": "$STAKED_TOKEN",
                        "_rewardToken": "$REWARD_TOKEN",
                        "_operator": "$OPERATOR",
                        "_rewardsVault": "$REWARDS_VAULT",
                        "_balOperationVault": "$BAL_OPERATION_VAULT",
                        "_balToken": "$BAL_TOKEN",
                        "_balancerMinter": "$BALANCER_MINTER",
                    },
                }
            }
        },
        {"DepositToken": {"constructor": {"_stakingRewards": "$StakingRewards"}}},
        {
            "BALRewardPool": {
                "constructor": {
                    "_depositToken": "$DepositToken",
                    "_balToken": "$BAL_TOKEN",
                    "_stakingRewards": "$StakingRewards",
                }
            }
        },
    ],
}


class Reverted(Exception):
    """Stands in for a contract logic error raised by the network layer."""


class Submission(typing.NamedTuple):
    kind: str
    name: str
    args: List[Any]
    fee_data: FeePolicy
    initializer: Optional[str] = None


class FakeNetwork(DeploymentNetwork):
    """
    Records every submission and hands out sequential addresses.
    Arguments that look like addresses must be well-formed, otherwise the deployment reverts.
    """

    def __init__(
        self,
        fee_provider: FixedFeeProvider,
        failures: Optional[Dict[str, Exception]] = None,
        unconfirmed: typing.Iterable[str] = (),
    ):
        super().__init__(fee_provider=fee_provider)
        self.failures = failures or dict()
        self.unconfirmed = set(unconfirmed)
        self.submissions: List[Submission] = list()
        self._counter = itertools.count(1)

    @property
    def deployer_address(self) -> str:
        return DEPLOYER

    @property
    def submitted_names(self) -> List[str]:
        return [s.name for s in self.submissions]

    def _next_address(self) -> str:
        return to_checksum_address(f"0x{next(self._counter):040x}")

    def _submit(self, kind: str, name: str, args: List[Any], initializer=None) -> Deployment:
        submission = Submission(
            kind=kind,
            name=name,
            args=list(args),
            fee_data=self.fee_provider.get_fee_data(),
            initializer=initializer,
        )
        self.submissions.append(submission)
        if name in self.failures:
            raise self.failures[name]
        for arg in args:
            if isinstance(arg, str) and not is_address(arg):
                raise Reverted(f"{name}: invalid address argument '{arg}'")
        address = self._next_address()
        return Deployment(
            address=address,
            tx_hash=f"0x{len(self.submissions):064x}",
            confirmed=name not in self.unconfirmed,
            implementation=self._next_address() if kind == "proxy" else None,
        )

    def deploy(self, contract_name: str, args: List[Any]) -> Deployment:
        return self._submit("plain", contract_name, args)

    def deploy_proxy(self, contract_name: str, initializer: str, args: List[Any]) -> Deployment:
        return self._submit("proxy", contract_name, args, initializer=initializer)


class TickingClock:
    """Advances by a fixed step every time it is read."""

    def __init__(self, step_ms: int = 250):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = timedelta(milliseconds=step_ms)

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


# Fixtures
@pytest.fixture
def fee_policy():
    return FeePolicy.default()


@pytest.fixture
def fee_provider(fee_policy):
    return FixedFeeProvider(fee_policy)


@pytest.fixture
def network(fee_provider):
    return FakeNetwork(fee_provider=fee_provider)


@pytest.fixture
def plan():
    return DeploymentPlan.from_config(PLAN_CONFIG, constants=PLAN_CONSTANTS)


@pytest.fixture
def clock():
    return TickingClock()
