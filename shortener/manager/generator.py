"""
Alias and record-id generation for the shortener.

- generate_alias: random alphanumeric string of a fixed length
- generate_id:    UUID-v4 string
- AliasGenerator: configured pair of the two, injected into the manager

Aliases are drawn uniformly from the 62-symbol alphabet [A-Za-z0-9] using
random.SystemRandom, so every call is seeded from OS entropy. Uniqueness is
not guaranteed here; storage reports alias collisions and the manager retries.
"""

import random
import string
import uuid
from dataclasses import dataclass

from ..errors import InvalidConfiguration

ALIAS_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits

_rng = random.SystemRandom()


def generate_alias(length: int) -> str:
    """
    Return a random alias of exactly `length` characters.

    Raises:
        InvalidConfiguration: if length is not positive.
    """
    if length < 1:
        raise InvalidConfiguration(f"alias length must be positive, got {length}")
    return "".join(_rng.choice(ALIAS_ALPHABET) for _ in range(length))


def generate_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class AliasGenerator:
    """Generator bound to one alias length; validates it up front so bad config fails at startup."""
    alias_length: int = 5

    def __post_init__(self):
        if self.alias_length < 1:
            raise InvalidConfiguration(f"alias length must be positive, got {self.alias_length}")

    def alias(self) -> str:
        return generate_alias(self.alias_length)

    def uuid(self) -> str:
        return generate_id()
