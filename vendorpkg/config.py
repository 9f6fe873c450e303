import toml
import os
from .cli_logger import logger
from .utils.credentials import Auth

CONFIG_FILE = "vendorpkg.toml"

DEFAULT_WORKERS = 4
DEFAULT_TIMEOUT = 60
DEFAULT_GIT_TIMEOUT = 600
DEFAULT_RETRIES = 0


def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    if os.path.exists(config_path):
        logger.info(f"Loading configuration from {config_path}")
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False


def get_auths(conf):
    """Return the ordered credential list from the `[[auth]]` tables."""
    auths = []
    for entry in conf.get("auth", []):
        if not isinstance(entry, dict) or not entry.get("host"):
            logger.warning(f"Ignoring malformed auth entry in {CONFIG_FILE}: {entry!r}")
            continue
        auths.append(Auth(host=entry["host"], username=entry.get("username", ""), token=entry.get("token", "")))
    return auths


def _positive_int(section, key, default, minimum=1):
    value = section.get(key, default)
    try:
        value = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid value for fetch.{key} in {CONFIG_FILE}: {value!r}. Using {default}.")
        return default
    if value < minimum:
        logger.warning(f"fetch.{key} must be at least {minimum}. Using {default}.")
        return default
    return value


def get_fetch_settings(conf):
    """Return the `[fetch]` table with defaults applied."""
    fetch = conf.get("fetch", {})
    return {
        "workers": _positive_int(fetch, "workers", DEFAULT_WORKERS),
        "timeout": _positive_int(fetch, "timeout", DEFAULT_TIMEOUT),
        "git_timeout": _positive_int(fetch, "git_timeout", DEFAULT_GIT_TIMEOUT),
        "retries": _positive_int(fetch, "retries", DEFAULT_RETRIES, minimum=0),
        "cleanup_on_failure": bool(fetch.get("cleanup_on_failure", False)),
    }
