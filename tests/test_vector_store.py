import unittest

import numpy as np

from notegraph.errors import InvalidArgument
from notegraph.index.ann import HyperplaneIndex
from notegraph.index.embedder import embed
from notegraph.index.vector_store import (
    BruteForceSearch,
    NeighborResult,
    VectorEntry,
    cosine_similarity,
    find_nearest,
    make_search,
)


def _corpus(dim: int = 128) -> list[VectorEntry]:
    texts = {
        "a": "git commit integration",
        "b": "capture git commit and branch",
        "c": "sailing boat hull types",
        "d": "topic clustering in knowledge graphs",
        "e": "knowledge graph clustering of notes",
    }
    return [VectorEntry(id=k, vector=embed(v, (), dim)) for k, v in texts.items()]


class TestCosine(unittest.TestCase):
    def test_self_similarity_is_one(self):
        v = embed("some non empty note", ["tag"])
        self.assertAlmostEqual(cosine_similarity(v, v), 1.0, places=5)

    def test_zero_vector_is_zero(self):
        z = np.zeros(16, dtype=np.float32)
        v = embed("hello world", (), 16)
        self.assertEqual(cosine_similarity(z, v), 0.0)
        self.assertEqual(cosine_similarity(v, z), 0.0)
        self.assertEqual(cosine_similarity(z, z), 0.0)

    def test_length_mismatch_raises(self):
        with self.assertRaises(InvalidArgument):
            cosine_similarity(np.ones(4), np.ones(5))
        with self.assertRaises(InvalidArgument):
            cosine_similarity(np.ones((2, 2)), np.ones(4))

    def test_unnormalized_input(self):
        self.assertAlmostEqual(cosine_similarity([3.0, 0.0], [1.0, 0.0]), 1.0, places=6)
        self.assertAlmostEqual(cosine_similarity([1.0, 0.0], [0.0, 2.0]), 0.0, places=6)


class TestFindNearest(unittest.TestCase):
    def test_orders_by_score(self):
        corpus = _corpus()
        hits = find_nearest(embed("git commit", (), 128), corpus, k=2)
        self.assertEqual(len(hits), 2)
        self.assertEqual({h.node_id for h in hits}, {"a", "b"})
        self.assertGreaterEqual(hits[0].score, hits[1].score)

    def test_ties_broken_by_lower_id(self):
        v = np.array([1.0, 0.0, 0.0], dtype=np.float32)
        corpus = {"z": v, "m": v, "a": v}
        hits = find_nearest(v, corpus, k=3)
        self.assertEqual([h.node_id for h in hits], ["a", "m", "z"])

    def test_empty_corpus_and_k(self):
        self.assertEqual(find_nearest(np.ones(4), [], k=5), [])
        self.assertEqual(find_nearest(np.ones(4), {"a": np.ones(4)}, k=0), [])

    def test_k_larger_than_corpus(self):
        corpus = _corpus()
        hits = find_nearest(embed("anything", (), 128), corpus, k=50)
        self.assertEqual(len(hits), len(corpus))

    def test_empty_index_falls_back_to_brute_force(self):
        corpus = _corpus()
        empty = HyperplaneIndex(128)
        q = embed("git commit", (), 128)
        self.assertEqual(find_nearest(q, corpus, k=3, index=empty), find_nearest(q, corpus, k=3))

    def test_uses_index_when_built(self):
        corpus = _corpus()
        idx = BruteForceSearch()
        idx.build(corpus[:2])
        hits = find_nearest(embed("sailing", (), 128), corpus, k=5, index=idx)
        self.assertEqual({h.node_id for h in hits}, {"a", "b"})

    def test_mismatched_query_raises(self):
        with self.assertRaises(InvalidArgument):
            find_nearest(np.ones(3), {"a": np.ones(4)}, k=1)


class TestBruteForceSearch(unittest.TestCase):
    def test_insert_rejects_other_dimension(self):
        s = BruteForceSearch(8)
        s.insert(VectorEntry(id="a", vector=np.ones(8)))
        with self.assertRaises(InvalidArgument):
            s.insert(VectorEntry(id="b", vector=np.ones(9)))
        self.assertEqual(len(s), 1)

    def test_query_results(self):
        s = BruteForceSearch()
        s.build(_corpus())
        hits = s.query(embed("boat hull", (), 128), k=1)
        self.assertEqual(hits[0].node_id, "c")
        self.assertIsInstance(hits[0], NeighborResult)


class TestMakeSearch(unittest.TestCase):
    def test_selects_by_name(self):
        self.assertIsInstance(make_search("brute"), BruteForceSearch)
        self.assertIsInstance(make_search("hyperplane", 64), HyperplaneIndex)

    def test_unknown_method(self):
        with self.assertRaises(InvalidArgument):
            make_search("faiss", 64)

    def test_hyperplane_needs_dimension(self):
        with self.assertRaises(InvalidArgument):
            make_search("hyperplane")


if __name__ == "__main__":
    unittest.main()
