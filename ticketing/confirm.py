import sys
from typing import Any, Sequence

from ape.utils import ZERO_ADDRESS


def _abort() -> None:
    print("Aborting deployment!")
    sys.exit(-1)


def _confirm_deployment(contract_name: str) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    answer = input(f"Deploy {contract_name} Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _contains_zero_address(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return any(_contains_zero_address(v) for v in value)
    return value == ZERO_ADDRESS


def _confirm_resolution(args: Sequence[Any], contract_name: str, initializer: str = None) -> None:
    """Asks the user to confirm the resolved initializer arguments for a single contract."""
    if len(args) == 0:
        print(f"\n(i) No initializer arguments for {contract_name}")
        _confirm_deployment(contract_name)
        return

    print(f"\nInitializer arguments for {contract_name}.{initializer}")
    for position, value in enumerate(args):
        print(f"\t[{position}]={value}")
    _confirm_deployment(contract_name)
    if _contains_zero_address(args):
        _confirm_zero_address()
