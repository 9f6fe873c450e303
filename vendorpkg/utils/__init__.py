from ..cli_logger import logger
from .command_executor import run_shell_command
from .credentials import Auth, apply_auth, find_auth, redact, url_host
from .file_manager import (
    _safe_join,
    _safe_extract_zip,
    _safe_extract_tar,
    download_file,
    extract,
    remove_path,
    url_join,
)
