from .dispatcher import try_send, find_send_candidate, first_clickable_ancestor
from .outcomes import SendOutcome, describe

__all__ = [
    "try_send",
    "find_send_candidate",
    "first_clickable_ancestor",
    "SendOutcome",
    "describe",
]
