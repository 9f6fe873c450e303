import click
from .. import installer
from ..dependency_tree import render_tree
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None,
              help="Number of packages fetched in parallel (default from vendorpkg.toml, else 4).")
@handle_exceptions
def fetch(ctx, jobs):
    """Fetch the packages listed in pkg.json without building them, then print the dependency tree."""
    tree = installer.fetch_dependencies(ctx.obj["path"], jobs=jobs)
    click.echo(render_tree(tree))
