import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from rewards_deployment.constants import DEFAULT_INITIALIZER
from rewards_deployment.fees import FeePolicy
from rewards_deployment.utils import _load_yaml

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_PROXY_PARAMETER_KEY = "proxy"


class ResolutionContext(typing.NamedTuple):
    """Runtime values available to variables while a deployment is in progress."""

    addresses: Mapping[str, str]
    constants: Mapping[str, Any]
    deployer: Optional[str] = None


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, context: ResolutionContext) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        return isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({', '.join(map(repr, vars(self).values()))})"


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, context: ResolutionContext) -> Any:
        if context.deployer is None:
            raise ValueError("Deployer account is not available for '$deployer'.")
        return context.deployer


class Constant(Variable):
    def __init__(self, constant_name: str, constants: Mapping[str, Any]):
        if constant_name not in constants:
            raise DeploymentPlan.Invalid(f"Constant '{constant_name}' not found in deployment plan.")
        self.constant_name = constant_name

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self, context: ResolutionContext) -> Any:
        value = context.constants.get(self.constant_name)
        # unset configuration is passed through and fails at submission time
        return "" if value is None else value


class ContractAddress(Variable):
    def __init__(self, step_name: str):
        self.step_name = step_name

    def resolve(self, context: ResolutionContext) -> Any:
        """Resolves the confirmed address of an earlier step."""
        try:
            return context.addresses[self.step_name]
        except KeyError:
            raise ValueError(f"'{self.step_name}' has not been deployed yet.")


def _variable_from_value(value: str, constants: Mapping[str, Any], known_steps: List[str]) -> Variable:
    variable = value[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif Constant.is_constant(variable):
        return Constant(variable, constants)
    elif variable in known_steps:
        return ContractAddress(variable)
    raise DeploymentPlan.Invalid(
        f"'{value}' does not reference a constant or a previously declared contract."
    )


def _process_raw_value(value: Any, constants: Mapping[str, Any], known_steps: List[str]) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, constants, known_steps) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, constants, known_steps)

    return value


def _resolve_param(value: Any, context: ResolutionContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context)

    return value  # literally a value


def _dependencies(value: Any) -> List[str]:
    if isinstance(value, list):
        return [name for v in value for name in _dependencies(v)]
    if isinstance(value, ContractAddress):
        return [value.step_name]
    return []


class PlanStep(typing.NamedTuple):
    """A single contract deployment in a plan."""

    name: str
    arguments: "OrderedDict[str, Any]"
    proxy: bool = False
    initializer: Optional[str] = None

    @property
    def depends_on(self) -> List[str]:
        """Names of the earlier steps whose addresses this step consumes, in order of use."""
        dependencies = list()
        for value in self.arguments.values():
            for name in _dependencies(value):
                if name not in dependencies:
                    dependencies.append(name)
        return dependencies

    def resolve(self, context: ResolutionContext) -> List[Any]:
        """Resolves the ordered constructor (or initializer) arguments."""
        return [_resolve_param(value, context) for value in self.arguments.values()]

    def resolve_named(self, context: ResolutionContext) -> "OrderedDict[str, Any]":
        return OrderedDict(
            (name, _resolve_param(value, context)) for name, value in self.arguments.items()
        )


class DeploymentPlan:
    """An ordered chain of contract deployments and the fee policy they use."""

    class Invalid(ValueError):
        """Raised when the deployment plan is malformed"""

    def __init__(
        self,
        name: str,
        chain_id: Optional[int],
        steps: List[PlanStep],
        constants: Dict[str, Any],
        fee_policy: FeePolicy,
        artifacts: Optional[Dict[str, Any]] = None,
    ):
        if not steps:
            raise self.Invalid("Deployment plan has no contracts.")
        names = [step.name for step in steps]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise self.Invalid(f"Contract(s) declared more than once: {', '.join(duplicates)}")
        self.name = name
        self.chain_id = chain_id
        self.steps = steps
        self.constants = constants
        self.fee_policy = fee_policy
        self.artifacts = artifacts or dict()

    def __iter__(self) -> typing.Iterator[PlanStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]

    def get_step(self, name: str) -> PlanStep:
        for step in self.steps:
            if step.name == name:
                return step
        raise KeyError(name)

    @classmethod
    def from_yaml(
        cls, filepath: Path, constants: Optional[Mapping[str, Any]] = None
    ) -> "DeploymentPlan":
        config = _load_yaml(filepath)
        if not isinstance(config, dict):
            raise cls.Invalid(f"Malformed deployment plan at {filepath}.")
        return cls.from_config(config, constants=constants)

    @classmethod
    def from_config(
        cls, config: typing.Dict, constants: Optional[Mapping[str, Any]] = None
    ) -> "DeploymentPlan":
        """
        Builds a plan from a parsed deployment YAML.
        Externally supplied constants (e.g. from the environment) take precedence
        over the plan's own 'constants' section; unset (None) ones do not.
        """
        deployment = config.get("deployment")
        if not deployment:
            raise cls.Invalid("deployment is not set in params file.")
        contracts = config.get("contracts")
        if not contracts:
            raise cls.Invalid("Deployment plan missing 'contracts' field.")

        merged_constants = dict(config.get("constants") or dict())
        merged_constants.update(
            {name: value for name, value in (constants or dict()).items() if value is not None}
        )

        try:
            fee_policy = FeePolicy.from_config(config.get("fees"))
        except FeePolicy.Invalid as e:
            raise cls.Invalid(str(e)) from e

        steps = list()
        for contract_info in contracts:
            step = cls._process_step(contract_info, merged_constants, [s.name for s in steps])
            steps.append(step)

        chain_id = deployment.get("chain_id")
        return cls(
            name=deployment.get("name", ""),
            chain_id=int(chain_id) if chain_id is not None else None,
            steps=steps,
            constants=merged_constants,
            fee_policy=fee_policy,
            artifacts=config.get("artifacts"),
        )

    @classmethod
    def _process_step(
        cls, contract_info: Any, constants: Mapping[str, Any], known_steps: List[str]
    ) -> PlanStep:
        if isinstance(contract_info, str):
            return PlanStep(name=contract_info, arguments=OrderedDict())

        if not isinstance(contract_info, dict) or len(contract_info) != 1:
            raise cls.Invalid("Malformed contract entry in deployment plan.")

        contract_name = list(contract_info.keys())[0]  # only one entry
        contract_data = contract_info[contract_name] or dict()
        if not isinstance(contract_data, dict):
            raise cls.Invalid(f"Malformed deployment parameters for {contract_name}.")

        proxy_data = contract_data.get(CONTRACT_PROXY_PARAMETER_KEY)
        is_proxy = CONTRACT_PROXY_PARAMETER_KEY in contract_data
        if is_proxy:
            proxy_data = proxy_data or dict()
            if CONTRACT_CONSTRUCTOR_PARAMETER_KEY in contract_data:
                raise cls.Invalid(
                    f"{contract_name} is proxied: its parameters belong under "
                    f"'{CONTRACT_PROXY_PARAMETER_KEY}.arguments'."
                )
            raw_arguments = proxy_data.get("arguments") or dict()
            initializer = proxy_data.get("initializer", DEFAULT_INITIALIZER)
        else:
            raw_arguments = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or dict()
            initializer = None

        if not isinstance(raw_arguments, dict):
            raise cls.Invalid(f"Malformed parameters for {contract_name}.")

        arguments = OrderedDict(
            (name, _process_raw_value(value, constants, known_steps))
            for name, value in raw_arguments.items()
        )
        return PlanStep(
            name=contract_name,
            arguments=arguments,
            proxy=is_proxy,
            initializer=initializer,
        )
