"""
Identifier generation.

Entity ids are opaque random strings. Services receive the generator
as a callable so tests can supply deterministic ids.
"""

import itertools
import secrets
import string
from typing import Callable, Iterator


IdGenerator = Callable[[], str]

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9


def random_id(length: int = ID_LENGTH) -> str:
    """Generate a random lowercase alphanumeric identifier."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def sequential_ids(prefix: str = "id-", start: int = 1) -> IdGenerator:
    """
    Build a deterministic generator yielding prefix1, prefix2, ...
    
    Args:
        prefix: Prefix for every generated id.
        start: First sequence number.
        
    Returns:
        Zero-argument callable returning the next id.
    """
    counter: Iterator[int] = itertools.count(start)
    return lambda: f"{prefix}{next(counter)}"
