import sys
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from rewards_deployment.confirm import _confirm_fee_policy, _confirm_resolution
from rewards_deployment.params import DeploymentPlan
from rewards_deployment.pipeline import (
    DeploymentFailure,
    DeploymentNetwork,
    DeploymentPipeline,
    DeploymentResult,
)
from rewards_deployment.registry import RegistryRecorder, check_registry, completed_results
from rewards_deployment.utils import get_artifact_filepath


class Deployer:
    """
    Runs a deployment plan on a network, recording every
    confirmed deployment in a registry file.
    """

    def __init__(
        self,
        plan: DeploymentPlan,
        network: DeploymentNetwork,
        chain_id: int,
        registry_filepath: Optional[Path] = None,
        autosign: bool = False,
        resume: bool = False,
        verifier: Optional[Callable[[List[str]], None]] = None,
    ):
        if plan.chain_id is not None and plan.chain_id != chain_id:
            raise ValueError(
                f"chain_id in params file ({plan.chain_id}) does not match "
                f"chain_id of current network ({chain_id})."
            )
        self.plan = plan
        self.network = network
        self.chain_id = chain_id
        self.registry_filepath = registry_filepath or get_artifact_filepath(plan.artifacts)
        self.autosign = autosign
        self.verifier = verifier

        if resume:
            self.completed = completed_results(self.registry_filepath, chain_id)
        else:
            check_registry(self.registry_filepath, chain_id)
            self.completed = dict()

    @classmethod
    def from_yaml(
        cls, filepath: Path, constants: Optional[Mapping[str, Any]] = None, **kwargs
    ) -> "Deployer":
        plan = DeploymentPlan.from_yaml(filepath, constants=constants)
        return cls(plan=plan, **kwargs)

    def _print_deployment_info(self) -> None:
        print(
            f"Plan: {self.plan.name}",
            f"Account: {self.network.deployer_address}",
            f"Registry: {self.registry_filepath}",
            f"Chain ID: {self.chain_id}",
            f"Steps: {' -> '.join(self.plan.step_names)}",
            f"Resuming: {', '.join(self.completed) or 'no'}",
            f"Verify: {self.verifier is not None}",
            sep="\n",
        )

    def run(self) -> List[DeploymentResult]:
        self._print_deployment_info()
        if not self.autosign:
            _confirm_fee_policy(self.network.fee_provider.get_fee_data())

        pipeline = DeploymentPipeline(
            plan=self.plan,
            network=self.network,
            completed=self.completed,
            confirm=None if self.autosign else _confirm_resolution,
            on_result=RegistryRecorder(self.registry_filepath, self.chain_id),
        )
        results = pipeline.run()

        if self.verifier:
            new_addresses = list()
            for result in results:
                if result.name in self.completed:
                    continue
                if result.implementation:
                    new_addresses.append(result.implementation)
                new_addresses.append(result.address)
            self.verifier(new_addresses)
        return results


def report_failure(error: BaseException) -> int:
    """Prints what is known about a failed deployment and returns the process exit code."""
    if isinstance(error, DeploymentFailure):
        if error.completed:
            print("\nConfirmed before the failure:", file=sys.stderr)
            for result in error.completed:
                print(f"\t{result.name}: {result.address} ({result.tx_hash})", file=sys.stderr)
        else:
            print("\nNo deployment was confirmed.", file=sys.stderr)
        print(f"Aborted at {error.step}.", file=sys.stderr)
    print(f"Error: {error}", file=sys.stderr)
    return 1
