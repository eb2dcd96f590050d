class RequestError(Exception):
    """The caller sent something we cannot evaluate (HTTP 400)."""


class EmptyRequest(RequestError):
    pass


class MalformedEnvelope(RequestError):
    pass


class MalformedWorkload(RequestError):
    pass


class ApplicationError(Exception):
    """Something went wrong on our side (HTTP 500)."""


class ResponseEncodeFault(ApplicationError):
    pass


class ProviderError(ApplicationError):
    pass
