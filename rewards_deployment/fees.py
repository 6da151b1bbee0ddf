import typing
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Union

from web3 import Web3

from rewards_deployment.constants import (
    DEFAULT_BASE_FEE,
    DEFAULT_MAX_FEE,
    DEFAULT_MAX_PRIORITY_FEE,
)

FeeValue = Union[int, str]


def to_wei(value: FeeValue) -> int:
    """
    Converts a fee value to wei.
    Accepts integers (already in wei) or strings such as "100 gwei" or "1500000000".
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid fee value '{value}'")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid fee value '{value}'")

    elements = value.strip().split()
    if len(elements) == 1:
        amount, unit = elements[0], "wei"
    elif len(elements) == 2:
        amount, unit = elements
    else:
        raise ValueError(f"Invalid fee value '{value}'")

    try:
        return int(Web3.to_wei(Decimal(amount), unit.lower()))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid fee value '{value}': {e}") from e


class FeePolicy(typing.NamedTuple):
    """Fixed gas fee parameters (in wei) used for every transaction of a deployment."""

    max_fee: int
    max_priority_fee: int
    base_fee: int

    class Invalid(ValueError):
        """Raised when the fee parameters are invalid"""

    @classmethod
    def create(cls, max_fee: FeeValue, max_priority_fee: FeeValue, base_fee: FeeValue) -> "FeePolicy":
        try:
            policy = cls(
                max_fee=to_wei(max_fee),
                max_priority_fee=to_wei(max_priority_fee),
                base_fee=to_wei(base_fee),
            )
        except ValueError as e:
            raise cls.Invalid(str(e)) from e
        policy.validate()
        return policy

    @classmethod
    def default(cls) -> "FeePolicy":
        return cls.create(DEFAULT_MAX_FEE, DEFAULT_MAX_PRIORITY_FEE, DEFAULT_BASE_FEE)

    @classmethod
    def from_config(cls, config: typing.Optional[Dict[str, Any]]) -> "FeePolicy":
        """Loads the fee policy from the 'fees' section of a deployment plan."""
        config = config or dict()
        unknown = set(config) - set(cls._fields)
        if unknown:
            raise cls.Invalid(f"Unknown fee parameter(s): {', '.join(sorted(unknown))}")
        return cls.create(
            max_fee=config.get("max_fee", DEFAULT_MAX_FEE),
            max_priority_fee=config.get("max_priority_fee", DEFAULT_MAX_PRIORITY_FEE),
            base_fee=config.get("base_fee", DEFAULT_BASE_FEE),
        )

    def validate(self) -> None:
        for name, value in self._asdict().items():
            if value < 0:
                raise self.Invalid(f"Fee parameter '{name}' must be non-negative, got {value}")
        if self.max_priority_fee > self.max_fee:
            raise self.Invalid(
                f"max_priority_fee ({self.max_priority_fee}) cannot exceed max_fee ({self.max_fee})"
            )

    def replace(self, **overrides: typing.Optional[FeeValue]) -> "FeePolicy":
        """Returns a new policy with the given (non-empty) parameters overridden."""
        values = self._asdict()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return self.create(**values)

    def __str__(self) -> str:
        return ", ".join(
            f"{name}={Web3.from_wei(value, 'gwei')} gwei" for name, value in self._asdict().items()
        )


class FixedFeeProvider:
    """
    Supplies the same fee policy for every transaction instead of
    relying on the provider's fee estimation.
    """

    def __init__(self, policy: FeePolicy):
        policy.validate()
        self._policy = policy

    def get_fee_data(self) -> FeePolicy:
        return self._policy

    def transaction_kwargs(self) -> Dict[str, int]:
        """Returns the fee keyword arguments for an ape transaction."""
        policy = self.get_fee_data()
        return {
            "max_fee": policy.max_fee,
            "max_priority_fee": policy.max_priority_fee,
        }
