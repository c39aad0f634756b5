import unittest

import numpy as np

from notegraph.errors import InvalidArgument
from notegraph.index.embedder import embed, embed_nodes, fnv1a_32
from notegraph.index.vector_store import cosine_similarity
from notegraph.model import Node


class TestEmbed(unittest.TestCase):
    def test_deterministic(self):
        v1 = embed("Topic clustering in knowledge graphs", ["kg", "clustering"], 256)
        v2 = embed("Topic clustering in knowledge graphs", ["kg", "clustering"], 256)
        self.assertTrue(np.array_equal(v1, v2))

    def test_dimension_changes_vector(self):
        v256 = embed("git commit integration", (), 256)
        v64 = embed("git commit integration", (), 64)
        self.assertEqual(v256.shape, (256,))
        self.assertEqual(v64.shape, (64,))
        self.assertFalse(np.array_equal(v256, v64))

    def test_unit_norm_and_non_negative(self):
        v = embed("Fixed bug in DetailListingExtractor price parsing", ["bugfix"])
        self.assertAlmostEqual(float(np.linalg.norm(v)), 1.0, places=5)
        self.assertTrue((v >= 0).all())
        self.assertEqual(v.dtype, np.float32)

    def test_empty_input_is_zero_vector(self):
        v = embed("", [], 32)
        self.assertEqual(v.shape, (32,))
        self.assertFalse(v.any())

    def test_camel_case_embeds_like_words(self):
        a = embed("DetailListingExtractor")
        b = embed("detail listing extractor")
        self.assertTrue(np.array_equal(a, b))

    def test_tags_weigh_more_than_content(self):
        # One content token plus the same token as a tag: the tag bucket dominates.
        v = embed("alpha", ["beta"], 1024)
        ia = fnv1a_32("alpha") % 1024
        ib = fnv1a_32("beta") % 1024
        if ia != ib:
            self.assertAlmostEqual(float(v[ib]) / float(v[ia]), 2.0, places=5)

    def test_invalid_dimension(self):
        with self.assertRaises(InvalidArgument):
            embed("x", (), 0)
        with self.assertRaises(InvalidArgument):
            embed("x", (), -8)
        with self.assertRaises(InvalidArgument):
            embed("x", (), 2.5)

    def test_fnv1a_is_pinned(self):
        # Reference values of 32-bit FNV-1a.
        self.assertEqual(fnv1a_32(""), 0x811C9DC5)
        self.assertEqual(fnv1a_32("a"), 0xE40C292C)

    def test_related_texts_are_closer(self):
        a = embed("git commit integration")
        b = embed("capture git commit and branch")
        c = embed("sailing boat hull types")
        self.assertGreater(cosine_similarity(a, b), cosine_similarity(a, c))

    def test_embed_nodes_shapes(self):
        nodes = [
            Node(id="n1", content="first note", created_at="2025-01-01T00:00:00Z"),
            Node(id="n2", content="second note", created_at="2025-01-02T00:00:00Z"),
        ]
        ids, m = embed_nodes(nodes, 64)
        self.assertEqual(ids, ["n1", "n2"])
        self.assertEqual(m.shape, (2, 64))

        ids, m = embed_nodes([], 64)
        self.assertEqual(ids, [])
        self.assertEqual(m.shape, (0, 64))


if __name__ == "__main__":
    unittest.main()
