"""Exceptions raised by the signer, the callback listener and the login flow."""


class OAuthError(Exception):
    """Base class for every failure this package reports."""


class ConfigError(OAuthError):
    """A required setting is missing from the environment."""


class NetworkError(OAuthError):
    """Transport failure talking to the API, or a local bind/accept failure."""


class ProtocolError(OAuthError):
    """The API answered with a non-success status."""

    def __init__(self, step, status, body):
        self.step = step
        self.status = status
        self.body = body
        super().__init__(f"{step} failed ({status}): {body}")


class MalformedResponse(OAuthError):
    """An expected form-encoded field was absent."""

    def __init__(self, field, where="response"):
        self.field = field
        super().__init__(f"Missing {field} in {where}")


class TokenMismatch(OAuthError):
    """The callback carried a different token than the one we requested."""

    def __init__(self):
        super().__init__("OAuth token mismatch")


class BrowserLaunchFailure(OAuthError):
    """No browser could be opened; the user has to visit the URL by hand."""


class ParameterCollision(OAuthError):
    """An extra signing parameter reuses a protocol parameter name."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Extra parameter {name} collides with a protocol parameter")
