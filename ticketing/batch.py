from typing import Any, Callable, Iterable, List, NamedTuple, Tuple

from ticketing.interfaces import Ledger, Receipt


class Call(NamedTuple):
    method: Callable
    args: Tuple[Any, ...] = ()
    value: int = 0


def call(method: Callable, *args, value: int = 0) -> Call:
    return Call(method=method, args=args, value=value)


def await_receipts(receipts: Iterable[Receipt]) -> List[Receipt]:
    """Waits for every receipt in submission order; raises on the first failed one."""
    receipts = list(receipts)
    for receipt in receipts:
        receipt.await_confirmations()
        receipt.raise_for_status()
    return receipts


def submit_batch(ledger: Ledger, calls: Iterable[Call]) -> List[Receipt]:
    """
    Submits all calls, then waits for all of them.

    Not atomic: if a submission or a confirmation fails, the error propagates
    but transactions submitted before it stay submitted and may still be mined.
    """
    receipts = [ledger.submit(c.method, *c.args, value=c.value) for c in calls]
    return await_receipts(receipts)
