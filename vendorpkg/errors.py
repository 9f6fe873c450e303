"""Error types raised while resolving and building vendored packages.

Every error is fatal to the command that raised it; the CLI layer prints the
message and exits non-zero.
"""


class VendorError(Exception):
    """Base class for all vendorpkg errors."""

    def __init__(self, message, package=None):
        super().__init__(message)
        self.package = package


class ManifestError(VendorError):
    """The manifest file is missing, unreadable or structurally invalid."""

    def __init__(self, message, path=None, package=None):
        super().__init__(message, package=package)
        self.path = path


class FetchError(VendorError):
    """A package source could not be downloaded, extracted or cloned."""

    def __init__(self, message, package=None, transient=True):
        super().__init__(message, package=package)
        self.transient = transient


class BuildError(VendorError):
    """A build instruction failed or could not be resolved."""

    def __init__(self, message, package=None, index=None, instruction=None, returncode=None):
        super().__init__(message, package=package)
        self.index = index
        self.instruction = instruction
        self.returncode = returncode


class CycleError(VendorError):
    """A package depends on itself, directly or transitively."""

    def __init__(self, chain):
        self.chain = list(chain)
        super().__init__(
            f"dependency cycle detected: {' -> '.join(self.chain)}",
            package=self.chain[-1] if self.chain else None,
        )
