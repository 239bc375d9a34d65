from __future__ import annotations

import os
import tempfile
import unittest

import numpy as np

from nano_vectordb import (
    DimensionMismatchError,
    DistanceMetric,
    NanoVectorDB,
    VectorMetric,
    VectorRecord,
    hash_vector,
)


class ManhattanDistance(DistanceMetric):
    name = "manhattan"

    def distance(self, a, b) -> float:
        return float(sum(abs(float(x) - float(y)) for x, y in zip(a, b)))


class NanoVectorDBTestCase(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmpdir = tmp.name
        self.path = os.path.join(self.tmpdir, "store.json")

    def make_db(self, dim: int = 4, metric=VectorMetric.COSINE) -> NanoVectorDB:
        return NanoVectorDB(dim, metric, self.path)


class ConstructionTests(NanoVectorDBTestCase):
    def test_starts_empty_without_persisted_state(self) -> None:
        db = self.make_db()
        self.assertEqual(db.size(), 0)
        self.assertEqual(len(db), 0)
        self.assertEqual(db.embedding_dim, 4)
        self.assertEqual(db.metric.name, "cosine")
        self.assertEqual(db.get_additional_data(), {})
        self.assertFalse(os.path.exists(self.path))

    def test_configuration_validation(self) -> None:
        with self.assertRaises(ValueError):
            NanoVectorDB(0, "cosine", self.path)
        with self.assertRaises(ValueError):
            NanoVectorDB(-3, "cosine", self.path)
        with self.assertRaises(ValueError):
            NanoVectorDB(True, "cosine", self.path)  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            NanoVectorDB(4, "cosine", "")
        with self.assertRaises(ValueError):
            NanoVectorDB(4, "manhattan", self.path)


class UpsertTests(NanoVectorDBTestCase):
    def test_single_record_scenario(self) -> None:
        db = self.make_db()
        db.upsert([VectorRecord("a", [1, 0, 0, 0])])

        hits = db.query([1, 0, 0, 0], top_k=1)
        self.assertEqual([hit.id for hit in hits], ["a"])
        self.assertAlmostEqual(hits[0].score, 1.0, places=5)

        db.remove(["a"])
        self.assertEqual(db.size(), 0)
        self.assertEqual(db.get(["a"]), [])

    def test_dimension_mismatch_rejects_whole_batch(self) -> None:
        db = self.make_db()
        db.upsert([VectorRecord("keep", [0, 1, 0, 0])])

        with self.assertRaises(DimensionMismatchError):
            db.upsert(
                [
                    VectorRecord("ok", [1, 0, 0, 0]),
                    VectorRecord("bad", [1, 0, 0]),
                ]
            )
        with self.assertRaises(ValueError):
            db.upsert([VectorRecord("bad", [1, 0, 0, 0, 0])])

        self.assertEqual(db.size(), 1)
        self.assertEqual(db.get(["ok", "bad"]), [])

    def test_same_id_keeps_latest_vector(self) -> None:
        db = self.make_db(metric="l2")
        db.upsert([VectorRecord("a", [1, 1, 1, 1])])
        summary = db.upsert([VectorRecord("a", [2, 2, 2, 2])])

        self.assertEqual(summary, {"update": ["a"], "insert": []})
        records = db.get(["a"])
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].vector, (2.0, 2.0, 2.0, 2.0))

    def test_later_batch_entry_overrides_earlier(self) -> None:
        db = self.make_db(metric="l2")
        summary = db.upsert(
            [
                VectorRecord("a", [1, 1, 1, 1]),
                VectorRecord("b", [0, 0, 0, 0]),
                VectorRecord("a", [3, 3, 3, 3]),
            ]
        )

        self.assertEqual(summary["insert"], ["a", "b"])
        self.assertEqual(db.size(), 2)
        self.assertEqual(db.get(["a"])[0].vector, (3.0, 3.0, 3.0, 3.0))

    def test_unlabeled_vectors_get_content_ids(self) -> None:
        db = self.make_db(metric="l2")
        vector = [0.5, 0.25, 0.125, 1.0]

        db.upsert([VectorRecord("", vector), VectorRecord("", list(vector))])
        self.assertEqual(db.size(), 1)
        db.upsert([VectorRecord("", vector)])
        self.assertEqual(db.size(), 1)

        record = db.get([hash_vector(vector)])[0]
        self.assertEqual(record.vector, tuple(vector))

        db.upsert([VectorRecord("", [9, 9, 9, 9])])
        self.assertEqual(db.size(), 2)

    def test_update_keeps_row_positions(self) -> None:
        db = self.make_db(metric="l2")
        db.upsert(
            [
                VectorRecord("a", [1, 0, 0, 0]),
                VectorRecord("b", [0, 1, 0, 0]),
                VectorRecord("c", [0, 0, 1, 0]),
            ]
        )
        summary = db.upsert(
            [
                VectorRecord("d", [0, 0, 0, 1]),
                VectorRecord("b", [5, 5, 5, 5]),
            ]
        )

        self.assertEqual(summary, {"update": ["b"], "insert": ["d"]})
        records = db.get(["a", "b", "c", "d"])
        self.assertEqual([item.id for item in records], ["a", "b", "c", "d"])
        self.assertEqual(records[1].vector, (5.0, 5.0, 5.0, 5.0))

    def test_cosine_mode_stores_normalized_vectors(self) -> None:
        db = self.make_db()
        db.upsert([VectorRecord("a", [3, 4, 0, 0])])

        vector = db.get(["a"])[0].vector
        np.testing.assert_allclose(vector, [0.6, 0.8, 0.0, 0.0], atol=1e-6)

    def test_cosine_mode_keeps_zero_vector(self) -> None:
        db = self.make_db()
        db.upsert([VectorRecord("z", [0, 0, 0, 0]), VectorRecord("x", [1, 0, 0, 0])])

        self.assertEqual(db.get(["z"])[0].vector, (0.0, 0.0, 0.0, 0.0))
        hits = db.query([1, 0, 0, 0], top_k=2)
        self.assertEqual([hit.id for hit in hits], ["x", "z"])
        self.assertFalse(np.isnan(hits[1].score))
        self.assertAlmostEqual(hits[1].score, 0.0, places=6)

    def test_rows_stay_aligned_with_records(self) -> None:
        db = self.make_db(metric="l2")
        rng = np.random.default_rng(3)
        for step in range(5):
            db.upsert(
                [
                    VectorRecord(str(i % 7), rng.random(4).tolist())
                    for i in range(step, step + 4)
                ]
            )
            db.remove([str(step)])
            self.assertEqual(db._matrix.shape, (db.size(), 4))
            self.assertEqual(len(db.get([str(i) for i in range(7)])), db.size())


class GetAndRemoveTests(NanoVectorDBTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.db = self.make_db(metric="l2")
        self.db.upsert(
            [
                VectorRecord("a", [1, 0, 0, 0]),
                VectorRecord("b", [0, 1, 0, 0]),
                VectorRecord("c", [0, 0, 1, 0]),
            ]
        )

    def test_get_returns_store_order_and_skips_missing(self) -> None:
        records = self.db.get(["c", "missing", "a"])
        self.assertEqual([item.id for item in records], ["a", "c"])
        self.assertEqual(self.db.get([]), [])
        self.assertEqual([item.id for item in self.db.get("b")], ["b"])

    def test_remove_compacts_and_ignores_missing(self) -> None:
        removed = self.db.remove(["b", "missing"])

        self.assertEqual(removed, 1)
        self.assertEqual(self.db.size(), 2)
        self.assertEqual([item.id for item in self.db.get(["a", "b", "c"])], ["a", "c"])
        self.assertEqual(self.db.get(["c"])[0].vector, (0.0, 0.0, 1.0, 0.0))
        self.assertEqual(self.db.remove(["missing"]), 0)

        hits = self.db.query([0, 0, 1, 0], top_k=1)
        self.assertEqual(hits[0].id, "c")

    def test_clear_keeps_dimension(self) -> None:
        self.db.clear()
        self.assertEqual(self.db.size(), 0)
        self.assertEqual(self.db.query([1, 0, 0, 0]), [])
        with self.assertRaises(DimensionMismatchError):
            self.db.upsert([VectorRecord("x", [1, 0])])

        self.db.upsert([VectorRecord("x", [1, 0, 0, 0])])
        self.assertEqual(self.db.size(), 1)


class QueryTests(NanoVectorDBTestCase):
    def test_query_validates_dimension(self) -> None:
        db = self.make_db()
        with self.assertRaises(DimensionMismatchError):
            db.query([1, 0], top_k=3)
        with self.assertRaises(DimensionMismatchError):
            db.query([[1, 0, 0, 0]], top_k=3)

    def test_exact_match_ranks_first_under_cosine(self) -> None:
        rng = np.random.default_rng(7)
        vectors = rng.random((100, 16)).astype(np.float32)
        db = NanoVectorDB(16, "cosine", self.path)
        db.upsert([VectorRecord(str(i), vector) for i, vector in enumerate(vectors)])

        hits = db.query(vectors[50], top_k=10, threshold=0.01)
        self.assertEqual(hits[0].id, "50")
        self.assertAlmostEqual(hits[0].score, 1.0, places=5)
        self.assertLessEqual(len(hits), 10)
        self.assertTrue(all(hit.score >= 0.01 for hit in hits))
        scores = [hit.score for hit in hits]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_l2_scores_are_negative_distances(self) -> None:
        db = self.make_db(dim=2, metric="l2")
        db.upsert([VectorRecord("near", [0, 0]), VectorRecord("far", [3, 0])])

        hits = db.query([1, 0], top_k=2)
        self.assertEqual([hit.id for hit in hits], ["near", "far"])
        self.assertAlmostEqual(hits[0].score, -1.0)
        self.assertAlmostEqual(hits[1].score, -4.0)

        bounded = db.query([1, 0], top_k=2, threshold=-2.0)
        self.assertEqual([hit.id for hit in bounded], ["near"])

    def test_threshold_results_are_prefix_of_ranking(self) -> None:
        rng = np.random.default_rng(11)
        db = NanoVectorDB(8, "cosine", self.path)
        db.upsert(
            [VectorRecord(f"r{i}", vector) for i, vector in enumerate(rng.normal(size=(50, 8)))]
        )
        query = rng.normal(size=8)

        ranked = db.query(query, top_k=50)
        cutoff = ranked[10].score
        thresholded = db.query(query, top_k=50, threshold=cutoff)

        self.assertGreaterEqual(len(thresholded), 11)
        self.assertTrue(all(hit.score >= cutoff for hit in thresholded))
        self.assertEqual(
            [hit.id for hit in thresholded],
            [hit.id for hit in ranked[: len(thresholded)]],
        )

    def test_top_k_bounds(self) -> None:
        db = self.make_db()
        db.upsert(
            [
                VectorRecord("a", [1, 0, 0, 0]),
                VectorRecord("b", [0, 1, 0, 0]),
            ]
        )
        self.assertEqual(db.query([1, 0, 0, 0], top_k=0), [])
        self.assertEqual(len(db.query([1, 0, 0, 0], top_k=10)), 2)
        self.assertEqual(len(db.query([1, 0, 0, 0], top_k=1)), 1)

    def test_filter_restricts_candidates(self) -> None:
        rng = np.random.default_rng(5)
        vectors = rng.random((10, 4))
        db = self.make_db()
        db.upsert([VectorRecord(str(i), vector) for i, vector in enumerate(vectors)])

        self.assertEqual(db.query(vectors[5], top_k=10)[0].id, "5")

        seen: list[VectorRecord] = []

        def only_one(record: VectorRecord) -> bool:
            seen.append(record)
            return record.id == "1"

        filtered = db.query(vectors[5], top_k=10, filter=only_one)
        self.assertEqual([hit.id for hit in filtered], ["1"])
        self.assertEqual(len(seen), 10)
        self.assertEqual(len(seen[0].vector), 4)

        self.assertEqual(db.query(vectors[5], filter=lambda record: False), [])

    def test_query_results_carry_records(self) -> None:
        db = self.make_db(metric="l2")
        db.upsert([VectorRecord("a", [1, 2, 3, 4])])

        hit = db.query([1, 2, 3, 4], top_k=1)[0]
        self.assertEqual(hit.record, VectorRecord("a", (1.0, 2.0, 3.0, 4.0)))
        self.assertEqual(hit.score, 0.0)

    def test_custom_distance_strategy(self) -> None:
        db = NanoVectorDB(2, ManhattanDistance(), self.path)
        db.upsert(
            [
                VectorRecord("a", [0, 0]),
                VectorRecord("b", [2, 2]),
                VectorRecord("c", [1, 1]),
            ]
        )

        hits = db.query([2, 1], top_k=3)
        self.assertEqual([hit.id for hit in hits], ["b", "c", "a"])
        self.assertEqual([hit.score for hit in hits], [-1.0, -1.0, -3.0])
        self.assertEqual(db.get(["b"])[0].vector, (2.0, 2.0))


class AdditionalDataTests(NanoVectorDBTestCase):
    def test_store_and_get_replace_whole_blob(self) -> None:
        db = self.make_db()
        db.store_additional_data({"a": 1, "nested": {"b": [1, 2]}})
        db.store_additional_data({"c": 3})
        self.assertEqual(db.get_additional_data(), {"c": 3})

    def test_returned_blob_is_a_copy(self) -> None:
        db = self.make_db()
        blob = {"nested": {"b": [1, 2]}}
        db.store_additional_data(blob)
        blob["nested"]["b"].append(3)

        loaded = db.get_additional_data()
        loaded["nested"]["b"].append(4)
        self.assertEqual(db.get_additional_data(), {"nested": {"b": [1, 2]}})


if __name__ == "__main__":
    unittest.main()
