import datetime
import sys
import threading
import traceback
import os
from colorama import Fore, Style, init

# Initialize Colorama
init(autoreset=True)

LOG_DIR = os.path.join(os.path.expanduser("~"), ".vendorpkg", "logs")
os.makedirs(LOG_DIR, exist_ok=True)


def format_fields(fields):
    """Render structured context as `key=value` pairs in insertion order."""
    return " ".join(f"{key}={value}" for key, value in fields.items() if value not in (None, ""))


class Logger:
    def __init__(self):
        self.log_file = os.path.join(
            LOG_DIR,
            f"vendorpkg_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )
        # fetch workers log concurrently
        self._lock = threading.Lock()

    def _get_timestamp(self):
        return datetime.datetime.now().strftime("%H:%M:%S")

    def _log(self, level, message, color, to_stderr=False, prefix="", show_timestamp=True, fields=None):
        stream = sys.stderr if to_stderr else sys.stdout
        if fields:
            message = f"{message} {format_fields(fields)}".rstrip()
        with self._lock:
            if show_timestamp:
                timestamp = self._get_timestamp()
                log_message = f"[{timestamp}] [{level}] {prefix}{message}\n"
                print(f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} {prefix}{message}{Style.RESET_ALL}", file=stream)
            else:
                log_message = f"[{level}] {prefix}{message}\n"
                print(f"{color}{prefix}{message}{Style.RESET_ALL}", file=stream)

            with open(self.log_file, "a") as f:
                f.write(log_message)

    def info(self, message, **fields):
        self._log("INFO", message, Fore.CYAN, fields=fields)

    def step_info(self, message, indent=0):
        prefix = " " * indent
        self._log("", message, Fore.CYAN, prefix=prefix, show_timestamp=False)

    def success(self, message, **fields):
        self._log("SUCCESS", message, Fore.GREEN, prefix=f"{Style.BRIGHT}✓ {Style.RESET_ALL}{Fore.GREEN}", fields=fields)

    def warning(self, message, **fields):
        self._log("WARNING", message, Fore.YELLOW, to_stderr=True,
                  prefix=f"{Style.BRIGHT}⚠ {Style.RESET_ALL}{Fore.YELLOW}", fields=fields)

    def error(self, message, **fields):
        self._log("ERROR", message, Fore.RED, to_stderr=True,
                  prefix=f"{Style.BRIGHT}✖ {Style.RESET_ALL}{Fore.RED}", fields=fields)

    def debug(self, message, **fields):
        self._log("DEBUG", message, Fore.WHITE + Style.DIM, fields=fields)

    # -------- Exception logging --------
    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        formatted_lines = traceback.format_exception(exc_type, exc_value, exc_traceback)
        for line in formatted_lines:
            for sub_line in line.splitlines():
                if sub_line.strip():
                    self._log("TRACEBACK", f">> {sub_line}", Fore.RED, to_stderr=True)


# ---------------- Helper ----------------
logger = Logger()

def get_latest_log_file():
    """Return the path to the latest log file."""
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
