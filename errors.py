"""
errors.py — exception types shared by the sourcing pipeline.

Only NotFound and ConfigurationError ever reach the caller of run_search();
everything below the orchestrator converts ProviderError into an empty result.
"""
from __future__ import annotations


class SourcingError(Exception):
    """Base class for every error raised by this package."""


class ProviderError(SourcingError):
    """Network / HTTP / parse failure from SerpApi or a Vision-Language Service."""


class VerificationParseError(SourcingError):
    """The verifier's model response was not a JSON array of indices."""


class ConfigurationError(SourcingError):
    """A required credential is missing — raised before any network call."""


class NotFound(SourcingError):
    """Every stage, including the keyword fallback, produced zero candidates."""

    def __init__(self, product_name: str) -> None:
        self.product_name = product_name
        super().__init__(
            f'We searched the globe but couldn\'t find "{product_name}". '
            "Try a clearer image."
        )
