#!/usr/bin/python3
import sys
from pathlib import Path

import click
from ape import accounts
from ape.cli import ConnectedProviderCommand, network_option

from rewards_deployment.accounts import load_deployer_account
from rewards_deployment.config import (
    deployer_passphrase,
    deployer_private_key,
    environment_constants,
    load_environment,
)
from rewards_deployment.deployer import Deployer, report_failure
from rewards_deployment.fees import FixedFeeProvider
from rewards_deployment.network import (
    ApeNetwork,
    check_etherscan_plugin,
    is_local_network,
    verify_contracts,
)
from rewards_deployment.options import (
    account_alias_option,
    auto_option,
    base_fee_option,
    max_fee_option,
    max_priority_fee_option,
    params_option,
    resume_option,
    verify_option,
)
from rewards_deployment.params import DeploymentPlan
from rewards_deployment.utils import plan_filepath_from_network


@click.command(cls=ConnectedProviderCommand, name="deploy-staking-rewards")
@network_option(required=True)
@params_option
@account_alias_option
@verify_option
@auto_option
@resume_option
@max_fee_option
@max_priority_fee_option
@base_fee_option
def cli(
    network,
    params_filepath,
    account_alias,
    verify,
    auto,
    resume,
    max_fee,
    max_priority_fee,
    base_fee,
):
    """
    Deploys StakingRewards behind a proxy, then DepositToken and BALRewardPool.

    ape run deploy_staking_rewards --network ethereum:sepolia:alchemy
    """
    load_environment()
    click.echo(f"Connected to {network.name} network.")

    try:
        if params_filepath:
            filepath = Path(params_filepath)
        else:
            filepath = plan_filepath_from_network(network.name)
        plan = DeploymentPlan.from_yaml(filepath, constants=environment_constants())
        fee_policy = plan.fee_policy.replace(
            max_fee=max_fee, max_priority_fee=max_priority_fee, base_fee=base_fee
        )

        if is_local_network():
            account = accounts.test_accounts[0]
        else:
            account = load_deployer_account(
                alias=account_alias,
                private_key=deployer_private_key(),
                passphrase=deployer_passphrase(),
                autosign=auto,
            )

        if verify:
            check_etherscan_plugin()

        deployer = Deployer(
            plan=plan,
            network=ApeNetwork(account=account, fee_provider=FixedFeeProvider(fee_policy)),
            chain_id=network.chain_id,
            autosign=auto,
            resume=resume,
            verifier=verify_contracts if verify else None,
        )
        results = deployer.run()
    except Exception as e:
        sys.exit(report_failure(e))

    click.echo(f"\nDeployed {len(results)} contracts; registry at {deployer.registry_filepath}")
