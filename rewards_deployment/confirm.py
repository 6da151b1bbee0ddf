from collections import OrderedDict

from rewards_deployment.fees import FeePolicy
from rewards_deployment.params import PlanStep


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        exit(1)


def _confirm_empty_value() -> None:
    answer = input("Empty value detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        exit(1)


def _confirm_fee_policy(policy: FeePolicy) -> None:
    """Asks the user to confirm the fixed fees used for every transaction."""
    print("\nFixed fee policy for all transactions")
    for name, value in policy._asdict().items():
        print(f"\t{name}={value} wei")
    _continue()


def _confirm_resolution(step: PlanStep, resolved_params: OrderedDict) -> None:
    """Asks the user to confirm the resolved parameters of a single step."""
    kind = f"initializer '{step.initializer}'" if step.proxy else "constructor"
    if len(resolved_params) == 0:
        print(f"\n(i) No {kind} parameters for {step.name}")
        _continue()
        return

    print(f"\n{kind.capitalize()} parameters for {step.name}")
    contains_empty_value = False
    for name, resolved_value in resolved_params.items():
        print(f"\t{name}={resolved_value}")
        if not contains_empty_value:
            contains_empty_value = resolved_value in ("", None)
    _continue()
    if contains_empty_value:
        _confirm_empty_value()
