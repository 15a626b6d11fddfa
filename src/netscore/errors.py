"""Exceptions raised while resolving, fetching and scoring packages."""


class NetScoreError(Exception):
    """Base class for all scoring failures."""


class InvalidIdentifier(NetScoreError):
    """Raised when a package URL is malformed or from an unsupported host."""

    def __init__(self, url: str, reason: str = "Unsupported package URL") -> None:
        self.url = url
        super().__init__(f"{reason}: {url}")


class InvalidAddress(NetScoreError):
    """Raised when an address cannot be decomposed into owner/repository."""

    def __init__(self, address: str, reason: str = "Invalid GitHub repository path") -> None:
        self.address = address
        super().__init__(f"{reason}: {address}")


class NoRepositoryFound(NetScoreError):
    """Raised when an npm package declares no source repository."""

    def __init__(self, package: str) -> None:
        self.package = package
        super().__init__(f"No repository URL found in npm data for '{package}'")


class UpstreamError(NetScoreError):
    """Raised when a required upstream call fails or times out."""

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        reason: str = "",
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        detail = f"HTTP {status_code}" if status_code is not None else "request failed"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(f"Upstream error for {url}: {detail}")


class MissingCredential(NetScoreError):
    """Raised when the repository API credential is not configured."""

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"{variable} is not set in the environment")
