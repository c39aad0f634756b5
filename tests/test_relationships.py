import unittest
from datetime import datetime, timedelta, timezone

from notegraph.graph.relationships import (
    CLASSIFICATION_RULES,
    EXPLICIT_REFERENCE_BONUS,
    classify,
    compute_factors,
    explicit_references,
    infer_relationships,
    reference_tokens,
    score,
    tag_overlap,
    temporal_proximity,
)
from notegraph.model import Node, Relation


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_node(node_id: str, content: str, tags=(), created_at: datetime = NOW) -> Node:
    return Node(id=node_id, content=content, tags=tuple(tags), created_at=created_at)


class TestFactors(unittest.TestCase):
    def test_factors_in_unit_range(self):
        a = make_node("a", "Topic clustering", ["kg"])
        b = make_node("b", "KG clustering topic", ["kg"])
        f = compute_factors(a, b, now=NOW)
        for v in (f.content_similarity, f.tag_overlap, f.explicit_references, f.temporal_proximity):
            self.assertGreaterEqual(v, 0.0)
            self.assertLessEqual(v, 1.0)
        s = score(a, b, now=NOW)
        self.assertGreaterEqual(s.strength, 0.0)
        self.assertLessEqual(s.strength, 1.0)
        self.assertEqual(s.factors, f)

    def test_tag_overlap_is_jaccard(self):
        a = make_node("a", "", ["git", "KG", "notes"])
        b = make_node("b", "", ["kg", "notes", "ideas"])
        self.assertAlmostEqual(tag_overlap(a, b), 2 / 4)
        self.assertEqual(tag_overlap(make_node("x", ""), make_node("y", "")), 0.0)

    def test_explicit_reference_via_commit_token(self):
        a = make_node("a", "Work on git integration", ["git", "commit:abcdef0"])
        b = make_node("b", "Capture commit:abcdef0 in nodes", ["notes"])
        c = make_node("c", "Capture commits generically", ["notes"])

        self.assertEqual(compute_factors(a, b, now=NOW).explicit_references, EXPLICIT_REFERENCE_BONUS)
        self.assertEqual(compute_factors(a, c, now=NOW).explicit_references, 0.0)
        self.assertGreater(score(a, b, now=NOW).strength, score(a, c, now=NOW).strength)

    def test_explicit_reference_via_id_mention(self):
        a = make_node("node-42", "Original design")
        b = make_node("b", "Follow-up to node-42 with benchmarks")
        self.assertEqual(explicit_references(a, b), EXPLICIT_REFERENCE_BONUS)
        # Partial id matches don't count.
        c = make_node("c", "See node-420 instead")
        self.assertEqual(explicit_references(a, c), 0.0)

    def test_explicit_reference_via_rare_tag(self):
        a = make_node("a", "first", ["obscure-topic", "common"])
        b = make_node("b", "second", ["obscure-topic", "common"])
        self.assertEqual(explicit_references(a, b), 0.0)
        counts = {"obscure-topic": 2, "common": 40}
        self.assertEqual(explicit_references(a, b, tag_counts=counts), EXPLICIT_REFERENCE_BONUS)
        self.assertEqual(explicit_references(a, b, tag_counts={"common": 40, "obscure-topic": 30}), 0.0)

    def test_reference_tokens(self):
        n = make_node("n", "Fixed in 3f9a2c1d, see issue:17. Nothing defaced here.")
        toks = reference_tokens(n)
        self.assertIn("3f9a2c1d", toks)
        self.assertIn("issue:17", toks)
        self.assertNotIn("defaced", toks)

    def test_reference_tokens_skip_grouping_tags_and_numbers(self):
        n = make_node("n", "Call 5550123456 about the 20250601 release", ["proj:kg", "ws:home", "PR:12"])
        self.assertEqual(reference_tokens(n), {"pr:12"})

    def test_shared_project_tag_is_not_a_reference(self):
        a = make_node("a", "Sailing boat hull design", ["proj:kg"])
        b = make_node("b", "Grocery list apples bread", ["proj:kg"])
        self.assertEqual(explicit_references(a, b), 0.0)
        self.assertEqual(explicit_references(a, b, tag_counts={"proj:kg": 40}), 0.0)
        # A project tag only two nodes carry is still rare enough to count.
        self.assertEqual(explicit_references(a, b, tag_counts={"proj:kg": 2}), EXPLICIT_REFERENCE_BONUS)

    def test_shared_date_is_not_a_reference(self):
        a = make_node("a", "Planning meeting on 20250601")
        b = make_node("b", "Invoice paid 20250601")
        self.assertEqual(explicit_references(a, b), 0.0)


class TestTemporal(unittest.TestCase):
    def test_recent_pair_beats_old_pair(self):
        old = NOW - timedelta(days=90)
        recent_a = make_node("ra", "Topic clustering", ["kg"])
        recent_b = make_node("rb", "KG clustering topic", ["kg"])
        old_a = make_node("oa", "Topic clustering", ["kg"], created_at=old)
        old_b = make_node("ob", "KG clustering topic", ["kg"], created_at=old)

        self.assertGreater(score(recent_a, recent_b, now=NOW).strength, score(old_a, old_b, now=NOW).strength)

    def test_decays_with_gap(self):
        a = make_node("a", "x")
        near = make_node("b", "x", created_at=NOW - timedelta(days=1))
        far = make_node("c", "x", created_at=NOW - timedelta(days=20))
        very_far = make_node("d", "x", created_at=NOW - timedelta(days=45))

        t_near = temporal_proximity(a, near, now=NOW)
        t_far = temporal_proximity(a, far, now=NOW)
        self.assertGreater(t_near, t_far)
        self.assertEqual(temporal_proximity(a, very_far, now=NOW), 0.0)
        self.assertAlmostEqual(temporal_proximity(a, a, now=NOW), 1.0)

    def test_symmetric(self):
        a = make_node("a", "x")
        b = make_node("b", "y", created_at=NOW - timedelta(days=3))
        self.assertEqual(temporal_proximity(a, b, now=NOW), temporal_proximity(b, a, now=NOW))


class TestClassify(unittest.TestCase):
    def test_blocks_cue(self):
        c = make_node("c", "This implementation is blocked by missing config.", ["blocked"])
        d = make_node("d", "Missing config ADR.", ["adr"])
        self.assertEqual(classify(c, d, now=NOW), Relation.BLOCKS)

    def test_builds_on_cue(self):
        a = make_node("a", "This builds on the previous design for embeddings.", ["design"])
        b = make_node("b", "Embedding design draft.", ["design"])
        self.assertEqual(classify(a, b, now=NOW), Relation.DERIVED_FROM)

    def test_first_matching_rule_wins(self):
        a = make_node("a", "Based on the parser work; this task blocks the release.")
        b = make_node("b", "Release checklist")
        self.assertEqual(classify(a, b, now=NOW), Relation.BLOCKS)

    def test_similarity_fallbacks(self):
        a = make_node("a", "Topic clustering in knowledge graphs")
        b = make_node("b", "Topic clustering in knowledge graphs for notes")
        c = make_node("c", "Sailing boat hull design")
        self.assertEqual(classify(a, b, now=NOW), Relation.RELATES_TO)
        self.assertEqual(classify(a, c, now=NOW), Relation.REFERENCES)

    def test_custom_rules(self):
        a = make_node("a", "anything")
        b = make_node("b", "else")
        rules = [(lambda ctx: "anything" in ctx.text, Relation.DUPLICATES)] + CLASSIFICATION_RULES
        self.assertEqual(classify(a, b, rules=rules, now=NOW), Relation.DUPLICATES)
        self.assertEqual(classify(a, b, rules=[], now=NOW), Relation.REFERENCES)


class TestInfer(unittest.TestCase):
    def test_suggests_strongest_edges(self):
        node = make_node("new", "Topic clustering in knowledge graphs", ["kg"])
        others = [
            node,
            make_node("kg", "Knowledge graphs topic clustering notes", ["kg"]),
            make_node("sail", "Sailing boat hull design", ["boats"], created_at=NOW - timedelta(days=200)),
        ]
        out = infer_relationships(node, others, min_strength=0.3, now=NOW)
        self.assertEqual([s.node_id for s in out], ["kg"])
        self.assertEqual(out[0].relation, Relation.RELATES_TO)

    def test_limit_and_order(self):
        node = make_node("n", "alpha beta gamma", ["x"])
        others = [make_node(f"o{i}", "alpha beta gamma", ["x"]) for i in range(4)]
        out = infer_relationships(node, others, min_strength=0.0, limit=2, now=NOW)
        self.assertEqual([s.node_id for s in out], ["o0", "o1"])


if __name__ == "__main__":
    unittest.main()
