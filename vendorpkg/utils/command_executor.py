import contextlib
import os
import signal
import subprocess
import time
from ..cli_logger import logger

# how often a cancellable command checks its cancel event
POLL_INTERVAL = 0.1

def run_shell_command(command, stream_output=False, env=None, cwd=None, timeout=None, cancel_event=None):
    """
    Executes a command, with options for streaming output and cancellation.

    Args:
        command (list): The command to execute as a list of strings.
        stream_output (bool): If True, streams the output in real-time.
        env (dict, optional): A dictionary of environment variables.
        cwd (str, optional): The working directory for the command.
        timeout (float, optional): Seconds before a non-streaming command is killed.
        cancel_event (threading.Event, optional): When set while a non-streaming
            command runs, the command and its children are killed.

    Returns:
        If stream_output is True, returns a tuple (generator of output lines, process).
        If stream_output is False, returns a tuple (stdout, stderr, return_code).
    """
    try:
        if stream_output:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                bufsize=1,
                universal_newlines=True,
                env=env,
                cwd=cwd
            )

            def _generator():
                for line in process.stdout:
                    yield line
                process.communicate()
            return _generator(), process

        elif cancel_event is not None:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=env,
                cwd=cwd,
                # own process group, so a kill reaches the command's children too
                start_new_session=True
            )
            return _wait_cancellable(process, command, timeout, cancel_event)

        else:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                env=env,
                check=False,
                cwd=cwd,
                timeout=timeout
            )
            return result.stdout, result.stderr, result.returncode

    except subprocess.TimeoutExpired as e:
        logger.error(f"Command timed out after {timeout}s: {command[0]}")
        return "", f"timed out after {e.timeout}s", -1
    except (FileNotFoundError, NotADirectoryError) as e:
        logger.error(f"Command not found: {e.filename}")
        if stream_output:
            return iter([]), _FailedProcess()
        else:
            return "", str(e), -1


def _kill_group(process):
    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGKILL)
    return process.communicate()


def _wait_cancellable(process, command, timeout, cancel_event):
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        try:
            stdout, stderr = process.communicate(timeout=POLL_INTERVAL)
            return stdout, stderr, process.returncode
        except subprocess.TimeoutExpired:
            pass
        if cancel_event.is_set():
            logger.warning(f"Cancelled: {command[0]} (pid {process.pid})")
            stdout, stderr = _kill_group(process)
            return stdout, (stderr or "") + "cancelled", process.returncode
        if deadline is not None and time.monotonic() >= deadline:
            _kill_group(process)
            raise subprocess.TimeoutExpired(command, timeout)


class _FailedProcess:
    returncode = -1
