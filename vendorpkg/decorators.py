import functools
import click
import sys
from .cli_logger import logger
from .errors import BuildError, VendorError

def handle_exceptions(func):
    """Report errors of CLI commands and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
            sys.exit(1)
        except BuildError as e:
            logger.error(f"Build Error: {e}")
            sys.exit(1)
        except VendorError as e:
            logger.error(f"Error: {e}")
            sys.exit(1)
        except click.ClickException:
            raise
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper
