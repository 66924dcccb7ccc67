"""Error taxonomy shared by the adapters, the service and the presentation layer."""


class WeatherNewsError(Exception):
    """Base class for all recoverable weather-news errors."""


class MissingCredentialError(WeatherNewsError):
    """A provider API key is not configured; nothing was sent upstream."""


class UpstreamUnavailableError(WeatherNewsError):
    """A provider call failed, timed out, or returned a non-success status."""


class ValidationFailureError(UpstreamUnavailableError):
    """A provider response did not match the expected schema."""


class LocationUnavailableError(WeatherNewsError):
    """The device position could not be determined.

    ``reason`` is a :class:`weather_news.location.LocationFailure` member and
    carries the user-facing message.
    """

    def __init__(self, reason: object) -> None:
        self.reason = reason
        super().__init__(getattr(reason, "message", str(reason)))


class SettingsPersistenceError(WeatherNewsError):
    """The settings store could not read or write a record."""
