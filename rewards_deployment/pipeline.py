import typing
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from rewards_deployment.fees import FixedFeeProvider
from rewards_deployment.params import DeploymentPlan, PlanStep, ResolutionContext


class TransactionFailed(Exception):
    """Raised when a deployment transaction is mined but not successful."""


class Deployment(typing.NamedTuple):
    """What the network layer reports back for a mined deployment."""

    address: str
    tx_hash: str
    confirmed: bool
    implementation: Optional[str] = None


class StepTiming(typing.NamedTuple):
    started_at: datetime
    finished_at: datetime

    @property
    def elapsed_ms(self) -> int:
        return int((self.finished_at - self.started_at).total_seconds() * 1000)


class DeploymentResult(typing.NamedTuple):
    """A confirmed deployment. Immutable once created."""

    name: str
    address: str
    tx_hash: str
    timing: StepTiming
    proxy: bool = False
    implementation: Optional[str] = None
    confirmed: bool = True

    @property
    def elapsed_ms(self) -> int:
        return self.timing.elapsed_ms


class DeploymentFailure(Exception):
    """Raised when a deployment step fails; no later step has been submitted."""

    def __init__(self, step: str, error: BaseException, completed: List[DeploymentResult]):
        self.step = step
        self.error = error
        self.completed = list(completed)
        super().__init__(f"Deployment of {step} failed: {error}")


class DeploymentNetwork(ABC):
    """
    The network collaborator of a deployment: signs, broadcasts and waits
    for each transaction using the injected fee provider.
    """

    def __init__(self, fee_provider: FixedFeeProvider):
        self.fee_provider = fee_provider

    @property
    @abstractmethod
    def deployer_address(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def deploy(self, contract_name: str, args: List[Any]) -> Deployment:
        """Deploys a contract and blocks until its transaction is mined."""
        raise NotImplementedError

    @abstractmethod
    def deploy_proxy(self, contract_name: str, initializer: str, args: List[Any]) -> Deployment:
        """
        Deploys a contract behind an upgradeable proxy, running `initializer`
        with `args` exactly once. Blocks until every transaction is mined.
        """
        raise NotImplementedError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentPipeline:
    """
    Runs the steps of a deployment plan strictly in order.
    Each step is built only after the steps it references are confirmed.
    """

    def __init__(
        self,
        plan: DeploymentPlan,
        network: DeploymentNetwork,
        completed: Optional[Mapping[str, DeploymentResult]] = None,
        confirm: Optional[Callable[[PlanStep, "typing.OrderedDict[str, Any]"], None]] = None,
        on_result: Optional[Callable[[DeploymentResult], None]] = None,
        clock: Callable[[], datetime] = _now,
    ):
        completed = dict(completed or dict())
        unknown = set(completed) - set(plan.step_names)
        if unknown:
            raise ValueError(f"Completed step(s) not in plan: {', '.join(sorted(unknown))}")
        self.plan = plan
        self.network = network
        self.completed = completed
        self.confirm = confirm
        self.on_result = on_result
        self.clock = clock
        self.results: List[DeploymentResult] = list()

    @property
    def addresses(self) -> Dict[str, str]:
        return {result.name: result.address for result in self.results}

    def _context(self) -> ResolutionContext:
        return ResolutionContext(
            addresses=self.addresses,
            constants=self.plan.constants,
            deployer=self.network.deployer_address,
        )

    def run(self) -> List[DeploymentResult]:
        print(f"=== {self.plan.name or 'Deployment'} ===")
        print(f"Fee policy: {self.network.fee_provider.get_fee_data()}")
        for step in self.plan:
            if step.name in self.completed:
                result = self.completed[step.name]
                print(f"(i) {step.name} already deployed to: {result.address}; skipping.")
                self.results.append(result)
                continue

            try:
                result = self._run_step(step)
            except Exception as e:
                raise DeploymentFailure(step=step.name, error=e, completed=self.results) from e

            self.results.append(result)
            print(f"{step.name} deployed to: {result.address} took {result.elapsed_ms} ms")
            if self.on_result:
                try:
                    self.on_result(result)
                except Exception as e:
                    # the step itself is confirmed and stays in the completed list
                    raise DeploymentFailure(step=step.name, error=e, completed=self.results) from e

        return list(self.results)

    def _run_step(self, step: PlanStep) -> DeploymentResult:
        context = self._context()
        if self.confirm:
            self.confirm(step, step.resolve_named(context))

        started_at = self.clock()
        args = step.resolve(context)
        if step.proxy:
            print(f"Deploying {step.name} behind a proxy...")
            deployment = self.network.deploy_proxy(step.name, step.initializer, args)
        else:
            print(f"Deploying {step.name}...")
            deployment = self.network.deploy(step.name, args)
        finished_at = self.clock()

        if not deployment.confirmed:
            raise TransactionFailed(f"{step.name} deployment transaction {deployment.tx_hash} failed.")

        return DeploymentResult(
            name=step.name,
            address=deployment.address,
            tx_hash=deployment.tx_hash,
            timing=StepTiming(started_at=started_at, finished_at=finished_at),
            proxy=step.proxy,
            implementation=deployment.implementation,
        )
