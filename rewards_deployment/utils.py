import json
from pathlib import Path
from typing import Dict

import yaml

from rewards_deployment.constants import (
    ARTIFACTS_DIR,
    CONSTRUCTOR_PARAMS_DIR,
    PLAN_FILENAME,
    SUPPORTED_NETWORKS,
)


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def plan_filepath_from_network(network_name: str) -> Path:
    if network_name not in SUPPORTED_NETWORKS:
        raise ValueError(f"Unsupported network '{network_name}'")
    p = CONSTRUCTOR_PARAMS_DIR / network_name / PLAN_FILENAME
    if not p.exists():
        raise ValueError(f"No deployment plan found for network '{network_name}'")
    return p


def get_artifact_filepath(config: Dict) -> Path:
    """Returns the filepath of the registry artifact file."""
    artifact_config = config or dict()
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise ValueError("artifact filename is not set in params file.")
    return artifact_dir / filename
