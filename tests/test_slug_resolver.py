import unittest

from fulfillment_engine.records import DealerProfile
from fulfillment_engine.slug_resolver import (
    Scope,
    dealer_display_name,
    normalize_slug,
    resolve_group_membership,
    resolve_scope,
    slugify,
)

ROSTERS = {
    "Green RV": ["Green RV - Forest Glen", "Green RV - Slacks Creek"],
}


def _profiles():
    return {
        "green-rv-forest-glen": DealerProfile(slug="green-rv-forest-glen", name="Green RV - Forest Glen"),
        "frankston": DealerProfile(slug="frankston", name="Frankston"),
        "green-rv": DealerProfile(slug="green-rv", name="Green RV", is_group=True),
    }


class TestSlugs(unittest.TestCase):
    def test_slugify(self):
        self.assertEqual(slugify("Green RV - Forest Glen"), "green-rv-forest-glen")
        self.assertEqual(slugify("  --St. James!! "), "st-james")
        self.assertEqual(slugify(None), "")

    def test_slugify_is_idempotent(self):
        for name in ("Green RV - Forest Glen", "ABC Motors", "--x--"):
            self.assertEqual(slugify(slugify(name)), slugify(name))

    def test_normalize_slug_strips_suffix(self):
        self.assertEqual(normalize_slug("forest-glen-ab12cd"), "forest-glen")
        self.assertEqual(normalize_slug("green-rv-forest-glen"), "green-rv-forest-glen")
        self.assertEqual(normalize_slug("frankston"), "frankston")


class TestGroupMembership(unittest.TestCase):
    def test_unknown_roster_names_are_dropped(self):
        members = resolve_group_membership("Green RV", _profiles(), ROSTERS)
        self.assertEqual(members, {"green-rv-forest-glen"})

    def test_unconfigured_group_is_empty(self):
        self.assertEqual(resolve_group_membership("Nowhere", _profiles(), ROSTERS), set())


class TestScope(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(Scope.parse(""), Scope.all())
        self.assertEqual(Scope.parse("ALL"), Scope.all())
        self.assertEqual(Scope.parse("green rv", ROSTERS), Scope.group("Green RV"))
        self.assertEqual(Scope.parse("Forest-Glen-AB12CD", ROSTERS), Scope.dealer("forest-glen"))

    def test_resolve_all_skips_group_profiles(self):
        resolved = resolve_scope(Scope.all(), _profiles(), ROSTERS)
        self.assertEqual(resolved.slugs, frozenset({"green-rv-forest-glen", "frankston"}))
        self.assertTrue(resolved.matches("some-unlisted-dealer"))

    def test_resolve_dealer(self):
        resolved = resolve_scope(Scope.dealer("frankston"), _profiles(), ROSTERS)
        self.assertTrue(resolved.matches("frankston"))
        self.assertFalse(resolved.matches("green-rv-forest-glen"))

    def test_display_name(self):
        profiles = _profiles()
        self.assertEqual(dealer_display_name(Scope.all(), profiles), "Overall")
        self.assertEqual(dealer_display_name(Scope.dealer("frankston"), profiles), "Frankston")
        self.assertEqual(dealer_display_name(Scope.dealer("st-james"), profiles), "St James")


if __name__ == "__main__":
    unittest.main()
