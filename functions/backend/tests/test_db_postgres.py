import unittest

from backend.db import InMemoryDbClient, PostgresDbClient, apply_query


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    @classmethod
    def setUpClass(cls):
        cls.db = PostgresDbClient("sqlite+pysqlite:///:memory:")

    def test_set_and_get_document(self):
        self.db.set_document("boards", "b1", {"id": "b1", "title": "Art"})
        self.assertEqual(
            self.db.get_document("boards", "b1"), {"id": "b1", "title": "Art"}
        )
        self.assertIsNone(self.db.get_document("boards", "missing"))
        self.assertIsNone(self.db.get_document("students", "b1"))

    def test_set_document_replaces(self):
        self.db.set_document("boards", "b2", {"title": "Old", "isActive": True})
        self.db.set_document("boards", "b2", {"title": "New"})
        self.assertEqual(self.db.get_document("boards", "b2"), {"title": "New"})

    def test_update_document_merges(self):
        self.db.set_document("boards", "b3", {"title": "Art", "isActive": True})
        self.assertTrue(self.db.update_document("boards", "b3", {"isActive": False}))
        self.assertEqual(
            self.db.get_document("boards", "b3"), {"title": "Art", "isActive": False}
        )
        self.assertFalse(self.db.update_document("boards", "nope", {"x": 1}))

    def test_delete_document(self):
        self.db.set_document("photos", "p1", {"id": "p1"})
        self.assertTrue(self.db.delete_document("photos", "p1"))
        self.assertFalse(self.db.delete_document("photos", "p1"))
        self.assertIsNone(self.db.get_document("photos", "p1"))

    def test_query_documents(self):
        self.db.set_document(
            "students", "s1", {"boardId": "q", "joinedAt": "2025-01-02T00:00:00+00:00"}
        )
        self.db.set_document(
            "students", "s2", {"boardId": "q", "joinedAt": "2025-01-01T00:00:00+00:00"}
        )
        self.db.set_document(
            "students", "s3", {"boardId": "other", "joinedAt": "2025-01-03T00:00:00+00:00"}
        )

        docs = self.db.query_documents(
            "students", filters={"boardId": "q"}, order_by="joinedAt"
        )
        self.assertEqual(
            [doc["joinedAt"][:10] for doc in docs], ["2025-01-01", "2025-01-02"]
        )

        newest = self.db.query_documents(
            "students", order_by="joinedAt", descending=True, limit=1
        )
        self.assertEqual(newest[0]["boardId"], "other")


class InMemoryDbClientTests(unittest.TestCase):
    def test_documents_are_copied(self):
        db = InMemoryDbClient()
        data = {"tags": ["a"]}
        db.set_document("boards", "b1", data)
        data["tags"].append("b")
        fetched = db.get_document("boards", "b1")
        self.assertEqual(fetched, {"tags": ["a"]})
        fetched["tags"].append("c")
        self.assertEqual(db.get_document("boards", "b1"), {"tags": ["a"]})

    def test_reset(self):
        db = InMemoryDbClient()
        db.set_document("boards", "b1", {})
        db.reset()
        self.assertIsNone(db.get_document("boards", "b1"))


class ApplyQueryTests(unittest.TestCase):
    def test_list_filter_matches_any_member(self):
        docs = [{"photoId": "a"}, {"photoId": "b"}, {"photoId": "c"}]
        result = apply_query(docs, filters={"photoId": ["a", "c"]})
        self.assertEqual([doc["photoId"] for doc in result], ["a", "c"])

    def test_missing_order_field_sorts_first(self):
        docs = [{"n": "2"}, {}, {"n": "1"}]
        self.assertEqual(apply_query(docs, order_by="n"), [{}, {"n": "1"}, {"n": "2"}])


if __name__ == "__main__":
    unittest.main()
