import os

from . import builder
from . import config as config_module
from .cli_logger import logger
from .dependency_tree import flatten
from .downloader import Downloader
from .manifest import load_manifest
from .resolver import Resolver


def make_downloader(conf):
    settings = config_module.get_fetch_settings(conf)
    return Downloader(
        auths=config_module.get_auths(conf),
        timeout=settings["timeout"],
        git_timeout=settings["git_timeout"],
        retries=settings["retries"],
        cleanup_on_failure=settings["cleanup_on_failure"],
    )


def fetch_dependencies(pkg_home, jobs=None, conf=None):
    """
    Load `<pkg_home>/pkg.json` and fetch its dependencies transitively.

    Returns the root of the dependency tree.
    """
    if conf is None:
        conf = config_module.load_config(pkg_home)
    manifest = load_manifest(pkg_home)
    workers = jobs or config_module.get_fetch_settings(conf)["workers"]

    logger.info(f"Resolving {len(manifest)} package(s) from {manifest.path} with {workers} worker(s)...")
    tree = Resolver(pkg_home, downloader=make_downloader(conf), max_workers=workers).resolve(manifest)
    logger.success("All dependencies fetched.")
    return tree


def install(pkg_home, verbose=False, script=None, jobs=None):
    """
    Fetch every dependency, then build them in dependency order, or write
    the build script to `script` instead of building.

    Returns the list of packages in build order.
    """
    pkg_home = os.path.abspath(pkg_home)
    tree = fetch_dependencies(pkg_home, jobs=jobs)
    nodes = flatten(tree)

    if script:
        builder.write_script(script, builder.generate_script(nodes, pkg_home))
        logger.success(f"Build script for {len(nodes)} package(s) written to {script}")
        return nodes

    builder.build_all(nodes, pkg_home, verbose=verbose)
    logger.success(f"Built {len(nodes)} package(s).")
    return nodes
