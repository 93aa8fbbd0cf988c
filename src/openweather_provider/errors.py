"""Error types raised by the weather provider."""


class WeatherProviderError(RuntimeError):
    """Base error."""


class RemoteError(WeatherProviderError):
    """The remote service call failed or reported an application error."""


class FetchFailure(WeatherProviderError):
    """
    Weather data could not be fetched.

    Normalizes transport failures, timeouts and error-coded responses into a
    single recoverable kind. Drives the scheduler's bounded fetch retry.
    """


class NoPositionAvailable(WeatherProviderError):
    """The host has no vessel position yet."""


class WatchdogTrip(WeatherProviderError):
    """The periodic wake timer fired implausibly soon after the previous tick."""


class RetryBudgetExhausted(WeatherProviderError):
    """All retry attempts of a cycle failed; waiting for the next wake."""


class ProviderError(WeatherProviderError):
    """Generic failure surfaced to on-demand query callers."""
