"""Error taxonomy shared by the adapters and the submission endpoint."""


class WishsheetError(Exception):
    """Base class for errors raised by this service."""


class ConfigurationError(WishsheetError):
    """Credentials, token or a required setting is missing or unparsable."""


class UpstreamError(WishsheetError):
    """The spreadsheet or mail API call itself failed."""


class ValidationError(WishsheetError):
    """The submission is missing its wish text (client error)."""
