from typing import Any

from ticketing.interfaces import Contract, Ledger

DEFAULT_ALLOWANCE = 10**18  # 1 LINK
DEFAULT_DEPOSIT = 2 * 10**17  # 0.2 LINK
DEFAULT_TASK = (1, 1)  # token id, task id


def fund_external_adapter(
    ledger: Ledger,
    collection: Contract,
    link_token: Contract,
    allowance: int = DEFAULT_ALLOWANCE,
    deposit: int = DEFAULT_DEPOSIT,
    task: tuple = DEFAULT_TASK,
) -> Any:
    """
    Funds a collection's external adapter requests with LINK, asks it whether a
    task is completed and returns the job result the adapter reported.
    """
    print(f"\nApproving {allowance} LINK for {collection.address}")
    ledger.transact(link_token.approve, collection.address, allowance)

    print(f"Depositing {deposit} LINK")
    ledger.transact(collection.deposit, deposit, link_token.address)

    receipt = ledger.transact(collection.isTaskCompleted, *task)
    print(f"External Adaptor confirmed: {receipt}")

    job_result = collection.jobResult()
    print(f"Job result: {job_result}")
    return job_result
