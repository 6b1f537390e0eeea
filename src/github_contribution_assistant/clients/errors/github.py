ExtraInfoType = dict[str, str | None]


class ClientError(Exception):
    """A request error from the GitHub repository client."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class RequestError(ClientError):
    """A failed request against the GitHub REST API."""

    def __init__(self, action: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(message="A request error occured.", extra_info={"action": action, "message": message, **extra_info})


class ResourceNotFoundError(RequestError):
    """The requested repository, file or directory does not exist (or is not visible to the token)."""

    def __init__(self, action: str, resource: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(
            action=action,
            message="The resource could not be found.",
            extra_info={"resource": resource, **extra_info},
        )


class ContentDecodeError(ClientError):
    """A file body returned by the contents API could not be decoded to text."""

    def __init__(self, path: str, encoding: str | None = None):
        super().__init__(message="The file content could not be decoded.", extra_info={"path": path, "encoding": encoding})
