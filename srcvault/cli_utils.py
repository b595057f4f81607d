"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
import click
from functools import wraps

from .config import logger
from .exit_codes import (
    INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .output import emit_error


def standard_command(func):
    """
    Decorator that provides standard CLI error handling:
    - CommandError subclasses exit with their own code
    - Ctrl+C exits with 130
    - Anything else is reported and mapped to an exit code

    Errors are written to stderr as a JSON object so stdout stays clean
    for data.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            emit_error("Interrupted by user", type="KeyboardInterrupt")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            error_context = {"exit_code": e.exit_code}
            if getattr(e, 'url', None):
                error_context['url'] = e.url
            if hasattr(e, 'succeeded'):
                error_context['succeeded'] = e.succeeded
                error_context['failed'] = e.failed
            emit_error(str(e), type=type(e).__name__, context=error_context)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("unexpected error", exc_info=True)
            emit_error(f"Command failed: {e}", type=type(e).__name__)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that many commands share
common_options = {
    'pretty': click.option('--pretty', is_flag=True,
                           help='Display as a table instead of JSONL'),
    'bare': click.option('--bare/--no-bare', default=None,
                         help='Create bare repositories (default from config: git.bare)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('pretty')
        def my_command(pretty):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
