import click
import shutil
import os
import sys
from ..cli_logger import logger
from ..manifest import INSTALL_DIR, SRC_DIR, get_vendor_path

@click.command()
@click.pass_context
@click.option("--all", "clean_all", is_flag=True, help="Also remove installed files under vendor/pkg.")
def clean(ctx, clean_all):
    """Remove fetched sources so the next install downloads them again."""
    vendor_path = get_vendor_path(ctx.obj["path"])
    targets = [os.path.join(vendor_path, SRC_DIR)]
    if clean_all:
        targets.append(os.path.join(vendor_path, INSTALL_DIR))

    items_removed = 0
    failed = False
    for path in targets:
        if not os.path.isdir(path):
            continue
        logger.info(f"Attempting to remove directory {path}...")
        try:
            shutil.rmtree(path)
            logger.success(f"Removed directory {path}")
            items_removed += 1
        except OSError as e:
            logger.error(f"Error removing directory {path}: {e}")
            logger.info("Please check file permissions and ensure the directory is not in use.")
            failed = True
        except Exception as e:
            logger.error(f"An unexpected error occurred while removing {path}: {e}")
            logger.exception(*sys.exc_info())
            failed = True

    if failed:
        sys.exit(1)
    if items_removed > 0:
        logger.success(f"Cleaning complete. Removed {items_removed} items.")
    else:
        logger.info("Project is already clean.")
