ExtraInfoType = dict[str, str | None]

INDEX_FAILURE_MESSAGE = "Failed to index repository. Check if the URL is correct and the repository is public."


class ServerError(Exception):
    """A request error from the GitHub Contribution Assistant server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class RepositoryUnavailableError(ServerError):
    """The repository metadata could not be fetched from GitHub."""

    def __init__(self, full_name: str):
        super().__init__(message=INDEX_FAILURE_MESSAGE, extra_info={"repository": full_name})
