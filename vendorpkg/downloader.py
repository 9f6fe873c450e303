import enum
import os
import shutil
import threading

import requests

from .cli_logger import logger
from .errors import FetchError
from .manifest import KIND_ARCHIVE, KIND_FILES, KIND_GIT
from .utils.command_executor import run_shell_command
from .utils.credentials import apply_auth, redact
from .utils.file_manager import _safe_join, download_file, extract, remove_path, url_join

DEFAULT_TIMEOUT = 60
DEFAULT_GIT_TIMEOUT = 600
VCS_METADATA_DIR = ".git"


class DownloadStatus(enum.Enum):
    EMPTY = "empty"
    SKIP = "skip"
    OK = "ok"


class Fetcher:
    """Materializes one kind of package source into a destination directory."""

    kind = None

    def __init__(self, timeout=DEFAULT_TIMEOUT, cancel_event=None):
        self.timeout = timeout
        self.cancel_event = cancel_event or threading.Event()

    def fetch(self, dest, spec):
        raise NotImplementedError

    def _check_cancelled(self, spec):
        if self.cancel_event.is_set():
            raise FetchError(f"fetching {spec.name} was cancelled", package=spec.name, transient=False)

    def _makedirs(self, dest, spec):
        try:
            os.makedirs(dest, exist_ok=True)
        except OSError as e:
            raise FetchError(f"could not create {dest}: {e}", package=spec.name, transient=False) from e


class ArchiveFetcher(Fetcher):
    """Downloads `<dest>/<name>.zip` and extracts it in place."""

    kind = KIND_ARCHIVE

    def __init__(self, session=None, extractor=extract, **kwargs):
        super().__init__(**kwargs)
        self.session = session or requests.Session()
        self.extractor = extractor

    def fetch(self, dest, spec):
        self._makedirs(dest, spec)
        logger.info("downloading dependency package.", pkg=spec.name, storage=dest)

        zip_name = os.path.join(dest, f"{spec.name}.zip")
        try:
            download_file(spec.source_url, zip_name, session=self.session,
                          timeout=self.timeout, cancel_event=self.cancel_event)
        except OSError as e:
            raise FetchError(f"could not save {zip_name}: {e}", package=spec.name, transient=False) from e
        logger.info("downloaded dependency package.", pkg=spec.name)

        self._check_cancelled(spec)
        logger.info("extracting package.", pkg=zip_name, storage=dest)
        self.extractor(zip_name, dest)
        logger.info("finished extracting package.", pkg=zip_name, storage=dest)
        return DownloadStatus.OK


class FilesFetcher(Fetcher):
    """Downloads a fixed set of files relative to a base URL."""

    kind = KIND_FILES

    def __init__(self, session=None, **kwargs):
        super().__init__(**kwargs)
        self.session = session or requests.Session()

    def fetch(self, dest, spec):
        self._makedirs(dest, spec)
        for remote, local in spec.files.items():
            self._check_cancelled(spec)
            try:
                target = _safe_join(dest, local)
            except IOError as e:
                raise FetchError(f"file '{local}' of {spec.name} escapes {dest}", package=spec.name,
                                 transient=False) from e
            logger.info("downloading dependencies.", pkg=spec.name, storage=target)
            try:
                download_file(url_join(spec.base_url, remote), target, session=self.session,
                              timeout=self.timeout, cancel_event=self.cancel_event)
            except OSError as e:
                raise FetchError(f"could not save {target}: {e}", package=spec.name, transient=False) from e
            logger.info("downloaded dependencies.", pkg=spec.name)
        return DownloadStatus.OK


class GitFetcher(Fetcher):
    """Clones a repository and leaves a plain, non-versioned snapshot."""

    kind = KIND_GIT

    def __init__(self, auths=(), runner=run_shell_command, timeout=DEFAULT_GIT_TIMEOUT, **kwargs):
        super().__init__(timeout=timeout, **kwargs)
        self.auths = list(auths)
        self.runner = runner

    def clone_command(self, repo_url, dest, spec):
        command = ["git", "clone", "--quiet"]
        if not spec.hash:
            # a pinned hash may be anywhere in the history
            command += ["--depth", "1"]
        if spec.branch or spec.tag:
            command += ["--branch", spec.branch or spec.tag, "--single-branch"]
        return command + [repo_url, dest]

    def _run(self, command, spec, repo_url, cwd=None):
        env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
        stdout, stderr, returncode = self.runner(command, env=env, cwd=cwd, timeout=self.timeout,
                                                 cancel_event=self.cancel_event)
        if returncode != 0:
            self._check_cancelled(spec)
            detail = (stderr or stdout or "").strip().replace(repo_url, redact(repo_url))
            raise FetchError(
                f"'{' '.join(command[:2])}' failed for {spec.name} (exit code {returncode}): {detail}",
                package=spec.name,
            )

    def fetch(self, dest, spec):
        self._makedirs(dest, spec)
        repo_url = apply_auth(spec.repo_url, self.auths)

        logger.info("cloning repository from remote to local storage.", pkg=spec.name,
                    repository=redact(spec.repo_url), storage=dest, branch=spec.branch,
                    tag=None if spec.branch else spec.tag)
        self._run(self.clone_command(repo_url, dest, spec), spec, repo_url)

        if spec.hash:
            self._check_cancelled(spec)
            logger.info("checkout repository to commit.", pkg=spec.name, hash=spec.hash)
            self._run(["git", "checkout", "--quiet", spec.hash], spec, repo_url, cwd=dest)

        try:
            shutil.rmtree(os.path.join(dest, VCS_METADATA_DIR))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FetchError(f"could not remove git metadata of {spec.name}: {e}", package=spec.name,
                             transient=False) from e
        return DownloadStatus.OK


class Downloader:
    """
    Dispatches a package spec to the fetcher for its kind.

    Retries transient failures, removing what the failed attempt left in the
    destination before trying again. With cleanup_on_failure the destination
    is also removed when the last attempt fails.
    """

    def __init__(self, auths=(), session=None, timeout=DEFAULT_TIMEOUT, git_timeout=DEFAULT_GIT_TIMEOUT,
                 retries=0, cleanup_on_failure=False, cancel_event=None, fetchers=None):
        self.retries = retries
        self.cleanup_on_failure = cleanup_on_failure
        self.cancel_event = cancel_event or threading.Event()
        if fetchers is None:
            session = session or requests.Session()
            fetchers = {
                KIND_ARCHIVE: ArchiveFetcher(session=session, timeout=timeout, cancel_event=self.cancel_event),
                KIND_FILES: FilesFetcher(session=session, timeout=timeout, cancel_event=self.cancel_event),
                KIND_GIT: GitFetcher(auths=auths, timeout=git_timeout, cancel_event=self.cancel_event),
            }
        self.fetchers = fetchers

    def fetcher_for(self, spec):
        try:
            return self.fetchers[spec.kind]
        except KeyError:
            raise FetchError(f"no fetcher for {spec.kind} package {spec.name}", package=spec.name,
                             transient=False) from None

    def download(self, spec, dest):
        """Fetch spec into dest unconditionally. Returns DownloadStatus.OK."""
        fetcher = self.fetcher_for(spec)
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return fetcher.fetch(dest, spec)
            except FetchError as e:
                if e.package is None:
                    e.package = spec.name
                if attempt < attempts and e.transient and not self.cancel_event.is_set():
                    logger.warning(f"Fetching {spec.name} failed ({e}). Retrying ({attempt}/{self.retries})...")
                    remove_path(dest)
                    continue
                if self.cleanup_on_failure:
                    logger.info(f"Removing partially fetched {dest}")
                    remove_path(dest)
                raise

