import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from rewards_deployment.constants import (
    ENVIRONMENT_CONSTANTS,
    ETHERSCAN_API_KEY_ENVVAR,
    PASSPHRASE_ENVVAR,
    PRIVATE_KEY_ENVVAR,
)


def load_environment(dotenv_path: Optional[Path] = None) -> bool:
    """Loads a .env file into the process environment without overriding existing variables."""
    return load_dotenv(dotenv_path=dotenv_path, override=False)


def environment_constants(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Optional[str]]:
    """
    Returns the deployment plan constants supplied through the environment.
    Values are opaque strings; unset variables map to None and are not validated here.
    """
    environ = os.environ if environ is None else environ
    return {
        constant_name: environ.get(envvar)
        for envvar, constant_name in ENVIRONMENT_CONSTANTS.items()
    }


def deployer_private_key(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    environ = os.environ if environ is None else environ
    return environ.get(PRIVATE_KEY_ENVVAR) or None


def deployer_passphrase(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    environ = os.environ if environ is None else environ
    return environ.get(PASSPHRASE_ENVVAR) or None


def etherscan_api_key(
    environ: Optional[Mapping[str, str]] = None, envvar: str = ETHERSCAN_API_KEY_ENVVAR
) -> Optional[str]:
    environ = os.environ if environ is None else environ
    return environ.get(envvar) or None
