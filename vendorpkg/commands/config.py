import click
import os
import json
import toml
from .. import config as config_module
from ..cli_logger import logger

MISSING_CONFIG = "Error: No vendorpkg.toml found. Use 'vendorpkg config set' to create one."
HIDDEN = "***"


def _config_file(ctx):
    return os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)


def _load_or_report(ctx):
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(MISSING_CONFIG)
    return conf


def _parent_of(conf, key, create=False):
    """Return the table holding the last component of a dotted key, and that component."""
    *parents, leaf = key.split(".")
    table = conf
    for name in parents:
        table = table.setdefault(name, {}) if create else table[name]
        if not isinstance(table, dict):
            raise KeyError(name)
    return table, leaf


def _parse_value(value):
    """Interpret value as a TOML literal (30, true, "x"); anything else stays a string."""
    try:
        return toml.loads(f"value = {value}")["value"]
    except (ValueError, IndexError):
        return value


def _hide_tokens(conf):
    shown = dict(conf)
    if isinstance(shown.get("auth"), list):
        shown["auth"] = [
            dict(entry, token=HIDDEN) if isinstance(entry, dict) and entry.get("token") else entry
            for entry in shown["auth"]
        ]
    return shown


@click.group()
@click.pass_context
def config(ctx):
    """Inspect or change the vendorpkg.toml of the project (credentials and fetch settings)."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """Print vendorpkg.toml as it is on disk."""
    config_file_path = _config_file(ctx)
    if not os.path.exists(config_file_path):
        logger.error(MISSING_CONFIG)
        return
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading {config_file_path}: {e}")

@config.command()
@click.pass_context
def edit(ctx):
    """Open vendorpkg.toml in your default editor."""
    try:
        click.edit(filename=_config_file(ctx))
    except click.ClickException as e:
        logger.error(f"Could not start an editor for vendorpkg.toml: {e}")
        logger.info("Set the EDITOR environment variable to choose one.")

@config.command("list")
@click.pass_context
def list_config(ctx):
    """List all settings as JSON, with tokens hidden."""
    conf = _load_or_report(ctx)
    if conf:
        click.echo(json.dumps(_hide_tokens(conf), indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Print the value of a dotted KEY, e.g. fetch.workers."""
    conf = _load_or_report(ctx)
    if not conf:
        return
    try:
        table, leaf = _parent_of(conf, key)
        value = table[leaf]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in vendorpkg.toml")
        return
    click.echo(json.dumps(_hide_tokens(value)) if isinstance(value, dict) else value)

@config.command("set")
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Set a dotted KEY to VALUE, creating vendorpkg.toml if needed.

    VALUE is read as a TOML literal, so `30` is stored as a number and `true`
    as a boolean.
    """
    conf = config_module.load_config(path=ctx.obj["path"])
    try:
        table, leaf = _parent_of(conf, key, create=True)
    except KeyError as e:
        logger.error(f"Error: '{e.args[0]}' in '{key}' is not a table")
        return
    table[leaf] = _parse_value(value)

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to {table[leaf]!r}")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a dotted KEY from vendorpkg.toml."""
    conf = _load_or_report(ctx)
    if not conf:
        return
    try:
        table, leaf = _parent_of(conf, key)
        del table[leaf]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in vendorpkg.toml")
        return
    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Unset '{key}'")
