import click
from .. import installer
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@click.option("--verbose", "-v", is_flag=True, help="Stream the output of build instructions.")
@click.option("--script", "-s", type=click.Path(dir_okay=False, writable=True), default=None,
              help="Write the build instructions to a shell script instead of running them.")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None,
              help="Number of packages fetched in parallel (default from vendorpkg.toml, else 4).")
@handle_exceptions
def install(ctx, verbose, script, jobs):
    """Fetch the packages listed in pkg.json and build them.

    Dependencies declared in the pkg.json of fetched git packages are
    fetched too, and every package is built after its own dependencies.
    """
    pkg_home = ctx.obj["path"]
    logger.info(f"Installing packages for {pkg_home}...")
    installer.install(pkg_home, verbose=verbose, script=script, jobs=jobs)
