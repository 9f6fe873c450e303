import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the directory holding pkg.json.")
@click.pass_context
def cli(ctx, path):
    """vendorpkg: fetch and build the C/C++ dependencies listed in pkg.json."""
    ctx.obj = {"path": path}

cli.add_command(init)
cli.add_command(fetch)
cli.add_command(install)
cli.add_command(clean)
cli.add_command(config)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
