"""Turns a manifest into a tree of fetched packages.

Fetches run on a bounded thread pool while a single coordinating thread owns
the tree. A child node is appended to its parent when its entry is scheduled,
not when its fetch finishes, so the shape of the tree follows the manifests'
declared order whatever order the downloads complete in. As soon as a git
package is available its own `pkg.json` (if any) is scheduled the same way,
under that package's node.
"""
import os
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional, Tuple

from .cli_logger import logger
from .config import DEFAULT_WORKERS
from .dependency_tree import ROOT_NAME, DependencyTree
from .downloader import Downloader, DownloadStatus
from .errors import CycleError
from .manifest import KIND_ARCHIVE, KIND_GIT, find_nested_manifest, get_package_src_path


@dataclass
class _Job:
    spec: object
    dest: str
    node: Optional[DependencyTree]
    # package names from the top-level manifest down to this package
    chain: Tuple[str, ...]


class Resolver:
    def __init__(self, pkg_home, downloader=None, max_workers=DEFAULT_WORKERS):
        self.pkg_home = os.path.abspath(pkg_home)
        self.downloader = downloader or Downloader()
        self.max_workers = max(1, int(max_workers))
        self.cancel_event = getattr(self.downloader, "cancel_event", None) or threading.Event()
        self._executor = None
        self._pending = {}
        # dest -> jobs waiting on the fetch in flight, or None once it is on disk
        self._claims = {}

    def resolve(self, manifest):
        """
        Fetch every package of manifest, and transitively of the manifests
        found in fetched git packages.

        Returns:
            The root DependencyTree; its children are the files and git
            packages of manifest in declared order.

        Raises:
            FetchError, ManifestError, CycleError: on the first failure. Fetches
            still queued are cancelled, running ones are told to stop through
            the cancel event, and nothing already on disk is removed.
        """
        root = DependencyTree(package_name=ROOT_NAME, src_path=self.pkg_home)
        self._pending = {}
        self._claims = {}
        self.cancel_event.clear()

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="vendorpkg-fetch")
        self._executor = executor
        try:
            self._schedule_manifest(manifest, root, ())
            while self._pending:
                done, _ = wait(list(self._pending), return_when=FIRST_COMPLETED)
                for future in done:
                    job = self._pending.pop(future)
                    future.result()
                    self._fetched(job)
        except BaseException:
            self._abort()
            # running fetches observe the cancel event; they are not waited for
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        else:
            executor.shutdown(wait=True)
        finally:
            self._executor = None
        return root

    def _abort(self):
        logger.warning(f"Resolution aborted. Cancelling {len(self._pending)} pending fetch(es)...")
        self.cancel_event.set()
        for future in self._pending:
            future.cancel()
        self._pending = {}

    def _schedule_manifest(self, manifest, parent, chain):
        for spec in manifest.packages():
            if spec.kind != KIND_ARCHIVE and spec.name in chain:
                raise CycleError(chain + (spec.name,))

            dest = get_package_src_path(self.pkg_home, spec.name)
            node = None
            # archives are flat bundles and get no node of their own
            if spec.kind != KIND_ARCHIVE:
                node = DependencyTree(
                    package_name=spec.name,
                    src_path=dest,
                    self_build=list(spec.build.self_build),
                    builder=list(spec.build.outer_build),
                )
                parent.children.append(node)
            self._schedule(_Job(spec=spec, dest=dest, node=node, chain=chain + (spec.name,)))

    def _schedule(self, job):
        if job.dest in self._claims:
            waiting = self._claims[job.dest]
            if waiting is None:
                self._complete(job, DownloadStatus.SKIP)
            else:
                waiting.append(job)
            return

        if os.path.exists(job.dest):
            logger.info(f"skipped downloading {job.spec.name} in {job.dest}, because it already exists.")
            self._claims[job.dest] = None
            self._complete(job, DownloadStatus.SKIP)
            return

        self._claims[job.dest] = []
        future = self._executor.submit(self.downloader.download, job.spec, job.dest)
        self._pending[future] = job

    def _fetched(self, job):
        waiting = self._claims[job.dest] or []
        self._claims[job.dest] = None
        self._complete(job, DownloadStatus.OK)
        for other in waiting:
            self._complete(other, DownloadStatus.SKIP)

    def _complete(self, job, status):
        if job.node is not None:
            job.node.set_status(status)
        if job.spec.kind != KIND_GIT:
            return
        nested = find_nested_manifest(job.dest)
        if nested is None:
            return
        logger.info(f"Resolving dependencies of {job.spec.name}", manifest=nested.path, packages=len(nested))
        self._schedule_manifest(nested, job.node, job.chain)


def resolve(pkg_home, manifest, downloader=None, max_workers=DEFAULT_WORKERS):
    """Resolve manifest against pkg_home. See Resolver.resolve."""
    return Resolver(pkg_home, downloader=downloader, max_workers=max_workers).resolve(manifest)
