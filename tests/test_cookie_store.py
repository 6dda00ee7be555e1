import unittest

from cookie_store import CookieStore


class TestCookieStore(unittest.TestCase):
    def setUp(self):
        self.store = CookieStore()

    def test_merge_drops_attributes_and_malformed(self):
        self.store.merge(["a=1; Path=/", "b=2", "malformed"])
        parts = self.store.render().split(";")
        self.assertCountEqual(parts, ["a=1", "b=2"])

    def test_empty_name_or_value_skipped(self):
        merged = self.store.merge(["=orphan", "empty=", "; Path=/", "ok=yes"])
        self.assertEqual(merged, 1)
        self.assertEqual(self.store.render(), "ok=yes")

    def test_later_value_overwrites(self):
        self.store.merge(["session=old; HttpOnly"])
        self.store.merge(["session=new; Secure"])
        self.assertEqual(self.store.get("session"), "new")
        self.assertEqual(len(self.store), 1)

    def test_value_split_on_first_equals(self):
        self.store.merge(["token=abc==; Path=/"])
        self.assertEqual(self.store.get("token"), "abc==")

    def test_merge_none_or_empty(self):
        self.assertEqual(self.store.merge(None), 0)
        self.assertEqual(self.store.merge([]), 0)
        self.assertEqual(self.store.render(), "")

    def test_render_is_stable(self):
        self.store.merge(["x=1", "y=2", "z=3"])
        self.assertEqual(self.store.render(), self.store.render())
        self.assertEqual(self.store.render(), "x=1;y=2;z=3")

    def test_contains_and_names(self):
        self.store.merge(["enwikiSession=s1; path=/"])
        self.assertIn("enwikiSession", self.store)
        self.assertEqual(self.store.names(), ["enwikiSession"])


if __name__ == "__main__":
    unittest.main()
