import click
import pytest
from click.testing import CliRunner

from rewards_deployment.config import (
    deployer_passphrase,
    deployer_private_key,
    environment_constants,
    etherscan_api_key,
    load_environment,
)
from rewards_deployment.options import base_fee_option, max_fee_option
from rewards_deployment.utils import get_artifact_filepath, plan_filepath_from_network
from tests.conftest import ENVIRONMENT, STAKED_TOKEN


def test_environment_constants():
    constants = environment_constants(ENVIRONMENT)
    assert constants["STAKED_TOKEN"] == STAKED_TOKEN
    assert set(constants) == {
        "STAKED_TOKEN",
        "REWARD_TOKEN",
        "OPERATOR",
        "REWARDS_VAULT",
        "BAL_OPERATION_VAULT",
        "BAL_TOKEN",
        "BALANCER_MINTER",
    }


def test_unset_environment_is_not_validated():
    constants = environment_constants({"STAKEDTOKEN": "not an address"})
    assert constants["STAKED_TOKEN"] == "not an address"
    assert constants["BAL_TOKEN"] is None


def test_secrets():
    environ = {"PRI_KEY": "0xabc", "DEPLOYER_PASSPHRASE": "", "ETHERSCAN_API_KEY": "key"}
    assert deployer_private_key(environ) == "0xabc"
    assert deployer_passphrase(environ) is None
    assert etherscan_api_key(environ) == "key"
    assert deployer_private_key({}) is None


def test_load_environment(tmp_path, monkeypatch):
    dotenv = tmp_path / ".env"
    dotenv.write_text("STAKEDTOKEN=0xfromdotenv\nBALTOKEN=0xdotenvbal\n")
    monkeypatch.setenv("STAKEDTOKEN", "")  # restored on teardown
    monkeypatch.delenv("STAKEDTOKEN")
    monkeypatch.setenv("BALTOKEN", "0xfromshell")

    assert load_environment(dotenv)
    constants = environment_constants()
    assert constants["STAKED_TOKEN"] == "0xfromdotenv"
    assert constants["BAL_TOKEN"] == "0xfromshell"  # existing variables win


def test_plan_filepath_from_network():
    assert plan_filepath_from_network("sepolia").name == "staking-rewards.yml"
    with pytest.raises(ValueError, match="Unsupported network"):
        plan_filepath_from_network("goerli")


def test_artifact_filepath():
    assert get_artifact_filepath({"dir": "out", "filename": "x.json"}).as_posix() == "out/x.json"
    with pytest.raises(ValueError, match="artifact filename"):
        get_artifact_filepath({})


@click.command()
@max_fee_option
@base_fee_option
def fees(max_fee, base_fee):
    click.echo(f"{max_fee} {base_fee}")


@pytest.mark.parametrize(
    "args, output",
    [
        (["--max-fee", "100 gwei"], "100000000000 None"),
        (["--max-fee", "7", "--base-fee", "0.5 gwei"], "7 500000000"),
    ],
)
def test_fee_options(args, output):
    result = CliRunner().invoke(fees, args)
    assert result.exit_code == 0
    assert result.output.strip() == output


@pytest.mark.parametrize("value", ["lots", "-1", "3 parsecs"])
def test_fee_options_reject_invalid_amounts(value):
    result = CliRunner().invoke(fees, ["--max-fee", value])
    assert result.exit_code == 2
