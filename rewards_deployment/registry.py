import json
import typing
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from eth_utils import to_checksum_address

from rewards_deployment.pipeline import DeploymentResult, StepTiming
from rewards_deployment.utils import _load_json

ChainId = int
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(typing.NamedTuple):
    """Represents a single confirmed deployment in a registry file."""

    chain_id: ChainId
    name: ContractName
    address: str
    tx_hash: str
    proxy: bool
    implementation: Optional[str]
    started_at: str
    finished_at: str
    elapsed_ms: int

    @classmethod
    def from_result(cls, chain_id: ChainId, result: DeploymentResult) -> "RegistryEntry":
        return cls(
            chain_id=chain_id,
            name=result.name,
            address=to_checksum_address(result.address),
            tx_hash=result.tx_hash,
            proxy=result.proxy,
            implementation=(
                to_checksum_address(result.implementation) if result.implementation else None
            ),
            started_at=result.timing.started_at.isoformat(),
            finished_at=result.timing.finished_at.isoformat(),
            elapsed_ms=result.elapsed_ms,
        )

    def to_result(self) -> DeploymentResult:
        timing = StepTiming(
            started_at=datetime.fromisoformat(self.started_at),
            finished_at=datetime.fromisoformat(self.finished_at),
        )
        return DeploymentResult(
            name=self.name,
            address=self.address,
            tx_hash=self.tx_hash,
            timing=timing,
            proxy=self.proxy,
            implementation=self.implementation,
        )


def read_registry(filepath: Path) -> List[RegistryEntry]:
    data = _load_json(filepath)
    registry_entries = list()
    for chain_id, entries in data.items():
        for contract_name, artifacts in entries.items():
            registry_entry = RegistryEntry(
                chain_id=int(chain_id),
                name=contract_name,
                address=artifacts["address"],
                tx_hash=artifacts["tx_hash"],
                proxy=artifacts.get("proxy", False),
                implementation=artifacts.get("implementation"),
                started_at=artifacts["started_at"],
                finished_at=artifacts["finished_at"],
                elapsed_ms=int(artifacts["elapsed_ms"]),
            )
            registry_entries.append(registry_entry)
    return registry_entries


def completed_results(filepath: Path, chain_id: ChainId) -> Dict[ContractName, DeploymentResult]:
    """Returns the deployments already recorded for a chain, keyed by contract name."""
    if not filepath.exists():
        return dict()
    return {
        entry.name: entry.to_result()
        for entry in read_registry(filepath)
        if entry.chain_id == chain_id
    }


def write_registry(entries: List[RegistryEntry], filepath: Path) -> Path:
    """
    Writes registry entries to a file, replacing the entries of the
    same chain and contract name and keeping everything else.
    """
    data = defaultdict(dict)
    if filepath.exists():
        data.update(_load_json(filepath))

    for entry in entries:
        data[str(entry.chain_id)][entry.name] = {
            "address": entry.address,
            "tx_hash": entry.tx_hash,
            "proxy": entry.proxy,
            "implementation": entry.implementation,
            "started_at": entry.started_at,
            "finished_at": entry.finished_at,
            "elapsed_ms": entry.elapsed_ms,
        }

    # Create the parent directory if it does not exist
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)
        file.write("\n")
    return filepath


class RegistryRecorder:
    """Persists each confirmed deployment as soon as it is known."""

    def __init__(self, filepath: Path, chain_id: ChainId):
        self.filepath = filepath
        self.chain_id = chain_id

    def __call__(self, result: DeploymentResult) -> None:
        entry = RegistryEntry.from_result(chain_id=self.chain_id, result=result)
        write_registry([entry], self.filepath)


def check_registry(filepath: Path, chain_id: ChainId) -> None:
    """Checks that no deployment is already recorded for the chain."""
    if completed_results(filepath, chain_id):
        raise ValueError(
            f"Deployment is already recorded for chain_id {chain_id} in {filepath}. "
            "Use --resume to continue it."
        )
