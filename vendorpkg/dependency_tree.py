from dataclasses import dataclass, field
from typing import List

from .downloader import DownloadStatus

ROOT_NAME = ""


@dataclass(eq=False)
class DependencyTree:
    """
    One package in the resolved dependency tree.

    `builder` holds the build instructions a consumer supplied for this
    package; when it is empty the package's own `self_build` is used.
    """

    package_name: str
    src_path: str
    self_build: List[str] = field(default_factory=list)
    builder: List[str] = field(default_factory=list)
    download_status: DownloadStatus = DownloadStatus.EMPTY
    children: List["DependencyTree"] = field(default_factory=list)

    @property
    def is_root(self):
        return self.package_name == ROOT_NAME

    def set_status(self, status):
        if status is DownloadStatus.EMPTY:
            raise ValueError("a download status can only move away from EMPTY")
        if self.download_status is not DownloadStatus.EMPTY:
            raise ValueError(
                f"download status of {self.package_name} already set to {self.download_status.value}"
            )
        self.download_status = status

    @property
    def instructions(self):
        """The instruction list the build uses: the outer build if any, else the self build."""
        return list(self.builder) if self.builder else list(self.self_build)

    def walk(self):
        """Pre-order iteration over this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()


def flatten(tree):
    """
    Post-order list of the packages in tree, root excluded.

    Every package comes after all of its dependencies. A package reached
    through several consumers appears once, at its first post-order position.
    """
    ordered = []
    seen = set()

    def visit(node):
        for child in node.children:
            visit(child)
        if node.is_root or node.package_name in seen:
            return
        seen.add(node.package_name)
        ordered.append(node)

    visit(tree)
    return ordered


def render_tree(tree):
    """Text rendering of the tree, one package per line."""
    lines = []

    def visit(node, prefix, last):
        connector = "└── " if last else "├── "
        lines.append(f"{prefix}{connector}{node.package_name} [{node.download_status.value}]")
        child_prefix = prefix + ("    " if last else "│   ")
        for i, child in enumerate(node.children):
            visit(child, child_prefix, i == len(node.children) - 1)

    lines.append(tree.src_path)
    for i, child in enumerate(tree.children):
        visit(child, "", i == len(tree.children) - 1)
    return "\n".join(lines)
