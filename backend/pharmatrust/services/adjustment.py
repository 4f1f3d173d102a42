"""Add/subtract on a non-negative counter (medicine stock, loyalty points)."""
from pharmatrust.core.exceptions import BusinessError

ADD = "add"
SUBTRACT = "subtract"


def apply_adjustment(current: int, amount: int, operation: str, shortfall_message: str) -> int:
    """
    Return the new counter value.

    Raises a 400 for an unknown operation, a non-positive amount, or a
    subtraction that would take the counter below zero.
    """
    if operation not in (ADD, SUBTRACT):
        raise BusinessError.bad_request('Invalid operation. Use "add" or "subtract"')
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise BusinessError.bad_request("Amount must be a positive whole number")

    if operation == ADD:
        return current + amount

    new_value = current - amount
    if new_value < 0:
        raise BusinessError.rule_violation(shortfall_message)
    return new_value


def past_tense(operation: str) -> str:
    return "added" if operation == ADD else "subtracted"
