from __future__ import annotations

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SECOND_FACTOR = 2


class InstallerError(RuntimeError):
    """Fatal installer failure. Aborts the whole workflow."""

    exit_code = EXIT_FAILURE


class ExternalToolError(InstallerError):
    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class NetworkError(InstallerError):
    pass


class ArchiveError(InstallerError):
    pass


class ProfileError(InstallerError):
    pass


class SecondFactorRequired(InstallerError):
    """Steam Guard input is needed; recovery instructions were written."""

    exit_code = EXIT_SECOND_FACTOR
