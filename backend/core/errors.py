"""
Domain Errors
=============
Exceptions raised by the generation pipeline and the image proxy.
Each error carries the HTTP status the API layer responds with.
"""

from fastapi import status


class TravelSpotsError(Exception):
    """Base class for spot generation errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingCredentialError(TravelSpotsError):
    """No model API key was supplied."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidAddressError(TravelSpotsError):
    """The requested address is empty."""

    status_code = status.HTTP_400_BAD_REQUEST


class BudgetExceededError(TravelSpotsError):
    """Today's model spend has reached the daily ceiling."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class GenerationFailedError(TravelSpotsError):
    """The model call failed or returned an unusable payload."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ImageProxyError(Exception):
    """Base class for image proxy failures."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidImageUrlError(ImageProxyError):
    """The url parameter is missing or is not an absolute http(s) URL."""

    status_code = status.HTTP_400_BAD_REQUEST


class HostNotAllowedError(ImageProxyError):
    """The url points at a host other than the allow-listed media host."""

    status_code = status.HTTP_403_FORBIDDEN


class UpstreamTimeoutError(ImageProxyError):
    """The upstream fetch did not finish within the proxy deadline."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT


class UpstreamFetchError(ImageProxyError):
    """The upstream fetch failed at the transport level."""

    status_code = status.HTTP_502_BAD_GATEWAY


class UpstreamStatusError(ImageProxyError):
    """The upstream answered with a non-2xx status, proxied as-is."""
