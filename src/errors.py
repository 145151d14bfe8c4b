"""Error taxonomy shared by the store, the provider and the API layer."""


class AthleteInsightsError(Exception):
    """Base class for errors raised by this service."""


class StoreError(AthleteInsightsError):
    """The record store is unreachable, unconfigured or rejected a write."""


class ProviderError(AthleteInsightsError):
    """The generative-text provider failed to produce a response."""


class ProviderRateLimitError(ProviderError):
    """The provider (or the local dispatch queue) is throttling requests."""


class QueueFullError(ProviderRateLimitError):
    """The dispatch queue reached its configured backlog bound."""
