from pathlib import Path

import rewards_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(rewards_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

PLAN_FILENAME = "staking-rewards.yml"

#
# Networks
#

LOCAL = "local"
SEPOLIA = "sepolia"
MAINNET = "mainnet"

SUPPORTED_NETWORKS = [LOCAL, SEPOLIA, MAINNET]

LOCAL_BLOCKCHAIN_ENVIRONMENTS = ["local", "development", "test"]

#
# Contracts
#

STAKING_REWARDS = "StakingRewards"
DEPOSIT_TOKEN = "DepositToken"
BAL_REWARD_POOL = "BALRewardPool"

DEFAULT_INITIALIZER = "initialize"

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"
PROXY_CONTRACT_NAME = "TransparentUpgradeableProxy"

#
# Fees
#

DEFAULT_MAX_FEE = "100 gwei"
DEFAULT_MAX_PRIORITY_FEE = "5 gwei"
DEFAULT_BASE_FEE = "20 gwei"

#
# Environment
#

# environment variable -> plan constant
ENVIRONMENT_CONSTANTS = {
    "STAKEDTOKEN": "STAKED_TOKEN",
    "REWARDTOKEN": "REWARD_TOKEN",
    "OPERATOR": "OPERATOR",
    "REWARDSVAULT": "REWARDS_VAULT",
    "BALOPERATIONVAULT": "BAL_OPERATION_VAULT",
    "BALTOKEN": "BAL_TOKEN",
    "BALANCERMINTER": "BALANCER_MINTER",
}

PRIVATE_KEY_ENVVAR = "PRI_KEY"
PASSPHRASE_ENVVAR = "DEPLOYER_PASSPHRASE"
ETHERSCAN_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"

DEFAULT_ACCOUNT_ALIAS = "staking-rewards-deployer"
