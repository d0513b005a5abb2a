from __future__ import annotations

"""Rate source abstraction.

A RateSource performs exactly one upstream call per ``fetch()`` and returns the
raw currency-code -> rate-string mapping. Callers treat every failure the same
way, so implementations wrap whatever went wrong in RateFetchError.
"""
from abc import ABC, abstractmethod
from typing import Dict


class RateFetchError(Exception):
    pass


class RateSource(ABC):
    name: str = "abstract"

    @abstractmethod
    def fetch(self) -> Dict[str, str]:
        """Return rates keyed by currency code, relative to the provider's base."""
        raise NotImplementedError
