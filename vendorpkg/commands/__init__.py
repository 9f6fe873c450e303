from .clean import clean
from .config import config
from .fetch import fetch
from .init import init
from .install import install
from .log import log
from .version import version

__all__ = ["clean", "config", "fetch", "init", "install", "log", "version"]
