import unittest

from vendorpkg.dependency_tree import ROOT_NAME, DependencyTree, flatten, render_tree
from vendorpkg.downloader import DownloadStatus


def node(name, *children, status=DownloadStatus.OK):
    tree = DependencyTree(package_name=name, src_path=f"/work/vendor/src/{name}", download_status=status)
    tree.children.extend(children)
    return tree


class TestDependencyTree(unittest.TestCase):

    def test_instructions_prefer_outer_build(self):
        tree = DependencyTree("a", "/src/a", self_build=["make"], builder=["make lib"])
        self.assertEqual(tree.instructions, ["make lib"])
        tree = DependencyTree("a", "/src/a", self_build=["make"])
        self.assertEqual(tree.instructions, ["make"])
        self.assertEqual(DependencyTree("a", "/src/a").instructions, [])

    def test_status_is_set_once(self):
        tree = DependencyTree("a", "/src/a")
        self.assertEqual(tree.download_status, DownloadStatus.EMPTY)
        tree.set_status(DownloadStatus.OK)
        self.assertEqual(tree.download_status, DownloadStatus.OK)
        with self.assertRaises(ValueError):
            tree.set_status(DownloadStatus.SKIP)
        with self.assertRaises(ValueError):
            DependencyTree("b", "/src/b").set_status(DownloadStatus.EMPTY)

    def test_walk_is_pre_order(self):
        root = node(ROOT_NAME, node("a", node("c")), node("b"), status=DownloadStatus.EMPTY)
        self.assertEqual([n.package_name for n in root.walk()], [ROOT_NAME, "a", "c", "b"])
        self.assertTrue(root.is_root)

    def test_flatten_is_post_order(self):
        root = node(ROOT_NAME, node("a", node("c"), node("d")), node("b", node("e")))
        self.assertEqual([n.package_name for n in flatten(root)], ["c", "d", "a", "e", "b"])

    def test_flatten_keeps_first_occurrence(self):
        root = node(ROOT_NAME, node("a", node("d")), node("b", node("d", status=DownloadStatus.SKIP)))
        flat = flatten(root)
        self.assertEqual([n.package_name for n in flat], ["d", "a", "b"])
        self.assertIs(flat[0], root.children[0].children[0])

    def test_flatten_empty(self):
        self.assertEqual(flatten(node(ROOT_NAME)), [])

    def test_render_tree(self):
        root = node(ROOT_NAME, node("a", node("c", status=DownloadStatus.SKIP)), node("b"))
        root.src_path = "/work"
        self.assertEqual(render_tree(root), "\n".join([
            "/work",
            "├── a [ok]",
            "│   └── c [skip]",
            "└── b [ok]",
        ]))


if __name__ == '__main__':
    unittest.main()
