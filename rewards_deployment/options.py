import click

from rewards_deployment.types import FeeAmount

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help="Deployment plan YAML. Defaults to the plan of the connected network.",
    type=click.Path(exists=True, dir_okay=False),
    required=False,
)

account_alias_option = click.option(
    "--account",
    "account_alias",
    help="Alias of the ape account that signs all transactions.",
    type=str,
    required=False,
)

verify_option = click.option(
    "--verify",
    help="Publish deployed contracts to the block explorer.",
    is_flag=True,
)

auto_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

resume_option = click.option(
    "--resume",
    help="Reuse deployments already recorded in the registry for this chain.",
    is_flag=True,
)

max_fee_option = click.option(
    "--max-fee",
    help="Max fee per gas, e.g. '100 gwei'. Overrides the plan.",
    type=FeeAmount(),
    required=False,
)

max_priority_fee_option = click.option(
    "--max-priority-fee",
    help="Max priority fee per gas, e.g. '5 gwei'. Overrides the plan.",
    type=FeeAmount(),
    required=False,
)

base_fee_option = click.option(
    "--base-fee",
    help="Base fee per gas, e.g. '20 gwei'. Overrides the plan.",
    type=FeeAmount(),
    required=False,
)
