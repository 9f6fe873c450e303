import click
import importlib.metadata
from .. import __version__
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of vendorpkg."""
    try:
        ver = importlib.metadata.version("vendorpkg")
    except importlib.metadata.PackageNotFoundError:
        logger.warning("vendorpkg does not appear to be installed; reporting the source tree version.")
        ver = __version__
    click.echo(f"vendorpkg version {ver}")
