"""
Standard exit codes and error types for srcvault commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
CONFIG_ERROR = 66        # Configuration file error
NETWORK_ERROR = 68       # Network connection failed
DATA_ERROR = 70          # Data format or validation error
PARTIAL_SUCCESS = 71     # Some operations succeeded, some failed
REPOSITORY_ERROR = 72    # Writing to the target repository failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class TransportError(CommandError):
    """Raised when fetching metadata or an archive over the network fails."""
    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, NETWORK_ERROR)
        self.url = url


class MalformedMetadata(CommandError):
    """Raised when a catalog page lacks the structure we parse."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class InvalidArchive(CommandError):
    """Raised when an archive cannot be read as a gzip tar stream."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class InvalidArchiveMode(InvalidArchive):
    """Raised when a tar member's permission bits map to no git file mode."""
    def __init__(self, mode: int, path: str = ""):
        message = f"invalid tar archive mode: {mode:o}"
        if path:
            message += f" ({path})"
        super().__init__(message)
        self.mode = mode
        self.path = path


class RepositoryWriteError(CommandError):
    """Raised when the object store fails to write a blob, tree, commit or ref."""
    def __init__(self, message: str):
        super().__init__(message, REPOSITORY_ERROR)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class PartialSuccessError(CommandError):
    """Raised when some operations succeed and some fail."""
    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, PARTIAL_SUCCESS)
        self.succeeded = succeeded
        self.failed = failed
