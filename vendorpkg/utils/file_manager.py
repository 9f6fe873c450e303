import os
import requests
import zipfile
import tarfile
import shutil
import contextlib
from ..cli_logger import logger
from ..errors import FetchError

CHUNK_SIZE = 1024 * 256

# -------------------- Helpers: safe paths & extraction --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise IOError(f"Unsafe path detected: {final}")
    return final

def _safe_extract_zip(zip_ref: zipfile.ZipFile, dest_dir: str, log_each=True):
    """Safely extract a zip file, preventing zip slip attacks."""
    for member in zip_ref.infolist():
        # protect against zip slip
        target_path = _safe_join(dest_dir, member.filename)
        # logging like unzip
        if member.is_dir():
            if log_each:
                logger.step_info(f"creating: {member.filename}", indent=3)
            os.makedirs(target_path, exist_ok=True)
        else:
            os.makedirs(os.path.dirname(target_path), exist_ok=True)
            if log_each:
                logger.step_info(f"extracting: {member.filename}", indent=2)
            with zip_ref.open(member, 'r') as src, open(target_path, 'wb') as out:
                shutil.copyfileobj(src, out)
            # Preserve file permissions
            mode = member.external_attr >> 16
            if mode:
                os.chmod(target_path, mode)

def _safe_extract_tar(tar_ref: tarfile.TarFile, dest_dir: str, log_each=True):
    """Safely extract a tar file, preventing path traversal attacks."""
    for member in tar_ref.getmembers():
        # deny absolute or parent traversal
        member_path = _safe_join(dest_dir, member.name)
        if member.isdir():
            if log_each:
                logger.step_info(f"creating: {member.name}", indent=3)
            os.makedirs(member_path, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(member_path), exist_ok=True)
        if log_each:
            logger.step_info(f"extracting: {member.name}", indent=2)
        src = tar_ref.extractfile(member)
        if src is None:
            # links and special files
            continue
        with src as src_file:
            with open(member_path, "wb") as out:
                shutil.copyfileobj(src_file, out)
            if member.mode:
                os.chmod(member_path, member.mode)


def extract(filepath, dest_dir, log_each=False):
    """
    Extracts a zip or tar archive into dest_dir and removes the archive.

    Raises:
        FetchError: if the file is not a supported archive or is corrupt.
    """
    os.makedirs(dest_dir, exist_ok=True)
    filename = os.path.basename(filepath)

    try:
        if zipfile.is_zipfile(filepath):
            with zipfile.ZipFile(filepath, 'r') as zip_ref:
                _safe_extract_zip(zip_ref, dest_dir, log_each=log_each)
        elif tarfile.is_tarfile(filepath):
            with tarfile.open(filepath, 'r:*') as tar:
                _safe_extract_tar(tar, dest_dir, log_each=log_each)
        else:
            raise FetchError(f"Unsupported archive type for {filename}", transient=False)
    except (zipfile.BadZipFile, tarfile.TarError, IOError) as e:
        raise FetchError(f"Error extracting {filename}: {e}", transient=False) from e

    # Remove archive after successful extraction
    with contextlib.suppress(OSError):
        os.remove(filepath)
    return dest_dir


# -------------------- Download --------------------

def url_join(base_url, suffix):
    """Join a base URL and a relative suffix with exactly one slash."""
    if not suffix:
        return base_url
    return base_url.rstrip("/") + "/" + suffix.lstrip("/")


def download_file(url, filepath, session=None, timeout=60, cancel_event=None):
    """
    Stream the body of a GET request into filepath.

    A status code of 400 or above, a transport failure or a cancellation is
    raised as FetchError. A partially written file is left in place.
    """
    http = session or requests
    try:
        with http.get(url, stream=True, timeout=timeout) as r:
            if r.status_code >= 400:
                raise FetchError(
                    f"GET {url} returned HTTP {r.status_code}",
                    transient=r.status_code >= 500 or r.status_code == 429,
                )
            os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
            with open(filepath, 'wb') as f:
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if cancel_event is not None and cancel_event.is_set():
                        raise FetchError(f"Download of {url} cancelled", transient=False)
                    if chunk:  # keep-alive chunks may be empty
                        f.write(chunk)
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Error downloading {url}: {e}") from e
    return filepath


def remove_path(path):
    """Best-effort removal of a file or directory tree."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path, ignore_errors=True)
    else:
        with contextlib.suppress(OSError):
            os.remove(path)
