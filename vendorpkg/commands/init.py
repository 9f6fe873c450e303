import click
import json
import os
from ..cli_logger import logger
from ..manifest import MANIFEST_FILE, empty_manifest_data

@click.command()
@click.pass_context
@click.option("--force", is_flag=True, help="Overwrite an existing pkg.json.")
def init(ctx, force):
    """Create an empty pkg.json in the project directory."""
    path = ctx.obj["path"]
    manifest_path = os.path.join(path, MANIFEST_FILE)
    if os.path.exists(manifest_path) and not force:
        logger.warning(f"{manifest_path} already exists. Use --force to overwrite it.")
        return
    try:
        os.makedirs(path, exist_ok=True)
        with open(manifest_path, "w") as f:
            json.dump(empty_manifest_data(), f, indent=2)
            f.write("\n")
    except IOError as e:
        logger.error(f"Error writing {manifest_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        raise SystemExit(1)
    logger.success(f"Created {manifest_path}")
