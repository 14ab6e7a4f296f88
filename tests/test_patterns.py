from deepmock.core.loader.patterns import WILDCARD, NamePatternSet, normalize_pattern


class TestNormalizePattern:

    def test_forms_of_a_package_prefix(self):
        assert normalize_pattern("example") == "example"
        assert normalize_pattern("example.") == "example"
        assert normalize_pattern("example.*") == "example"
        assert normalize_pattern("  example.widget ") == "example.widget"

    def test_wildcard(self):
        assert normalize_pattern(WILDCARD) == WILDCARD


class TestNamePatternSet:
    """Test matching of module names against prefixes."""

    def test_matches_module_and_children(self):
        patterns = NamePatternSet(["example.*"])

        assert patterns.matches("example")
        assert patterns.matches("example.widget")
        assert patterns.matches("example.widget.parts")
        assert not patterns.matches("examples")
        assert not patterns.matches("other.example")

    def test_does_not_match_parent(self):
        patterns = NamePatternSet(["example.widget"])

        assert "example.widget" in patterns
        assert "example" not in patterns

    def test_wildcard_matches_everything(self):
        patterns = NamePatternSet([WILDCARD])

        assert patterns.is_wildcard
        assert "anything.at.all" in patterns

    def test_empty_set_matches_nothing(self):
        patterns = NamePatternSet()

        assert len(patterns) == 0
        assert not patterns.matches("example")

    def test_order_is_kept_and_duplicates_dropped(self):
        patterns = NamePatternSet(["b", "a.*", "b.", "", "  "])

        assert patterns.patterns == ("b", "a")
        assert list(patterns) == ["b", "a"]

    def test_union_returns_a_new_set(self):
        patterns = NamePatternSet(["a"])

        merged = patterns.union(["b"])

        assert merged == NamePatternSet(["a", "b"])
        assert patterns == NamePatternSet(["a"])
        assert hash(merged) == hash(NamePatternSet(["a", "b"]))
