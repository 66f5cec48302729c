"""
Environment resolution tests

Tests target parsing, single-block activation and implicit switch groups.
"""

import pytest

from htmlprocessor.lib.directives import BlockRegistry
from htmlprocessor.lib.environment import EnvironmentResolver, targets_parse
from htmlprocessor.lib.errors import UnknownBlockTypeError
from htmlprocessor.lib.scanner import Scanner
from htmlprocessor.models.scanner import Directive


def make_directive(block_type="remove", targets=None):
    return Directive(
        block_type=block_type,
        targets=targets or [],
        params=",".join(targets or []),
        body_lines=["body"],
        start_line=1,
        end_line=1,
    )


def activation_for(source, environment):
    registry = BlockRegistry()
    spans = Scanner(source, registry=registry).scan()
    return EnvironmentResolver(environment, registry).spans_resolve(spans)


class TestTargetsParse:
    """Test target list splitting"""

    def test_empty(self):
        assert targets_parse("") == []
        assert targets_parse(None) == []

    def test_commas_and_pipes(self):
        assert targets_parse("dev,prod|test") == ["dev", "prod", "test"]

    def test_blank_entries_dropped(self):
        assert targets_parse(" dev ,, |prod ") == ["dev", "prod"]


class TestBlockActivation:
    """Test activation of single directives"""

    @pytest.mark.parametrize("environment,targets,expected", [
        ("dev", ["dev"], True),
        ("dev", ["dev", "prod"], True),
        ("prod", ["dev"], False),
        (None, ["dev"], False),
        (None, [], True),
        ("dev", [], False),
    ])
    def test_remove_activation(self, environment, targets, expected):
        """remove is active iff environment in targets, or both unset"""
        resolver = EnvironmentResolver(environment, BlockRegistry())
        assert resolver.block_isActive(make_directive("remove", targets)) is expected

    def test_ungated_type_without_targets_always_active(self):
        """Gating is opt-in for non-remove types"""
        resolver = EnvironmentResolver("dev", BlockRegistry())
        assert resolver.block_isActive(make_directive("include")) is True

    def test_ungated_type_with_targets(self):
        """js:dist is active only in dist"""
        registry = BlockRegistry()
        assert EnvironmentResolver("dist", registry).block_isActive(make_directive("js", ["dist"]))
        assert not EnvironmentResolver("dev", registry).block_isActive(make_directive("js", ["dist"]))

    def test_unknown_type(self):
        """Unregistered block types are an error"""
        resolver = EnvironmentResolver("dev", BlockRegistry())
        with pytest.raises(UnknownBlockTypeError):
            resolver.block_isActive(make_directive("nonsense"))


class TestSwitchGroups:
    """Test first-match-wins among consecutive remove blocks"""

    def test_first_match_wins(self):
        """Second block matching the same environment loses"""
        source = (
            "<!-- build:remove(dev,prod) -->A<!-- /build -->\n"
            "<!-- build:remove(dev) -->B<!-- /build -->"
        )
        assert activation_for(source, "dev") == {0: True, 2: False}

    def test_same_targets_are_independent(self):
        """One block per line with a repeated target list keeps every body"""
        source = (
            '<!-- build:remove(dev) --><script src="a.js"></script><!-- /build -->\n'
            '<!-- build:remove(dev) --><script src="b.js"></script><!-- /build -->\n'
            '<!-- build:remove(dev) --><script src="c.js"></script><!-- /build -->\n'
        )
        assert activation_for(source, "dev") == {0: True, 2: True, 4: True}
        assert activation_for(source, "prod") == {0: False, 2: False, 4: False}

    def test_target_order_does_not_matter(self):
        """dev,prod and prod|dev name the same target list"""
        source = (
            "<!-- build:remove(dev,prod) -->A<!-- /build -->\n"
            "<!-- build:remove(prod|dev) -->B<!-- /build -->"
        )
        assert activation_for(source, "prod") == {0: True, 2: True}

    def test_repeat_starts_new_switch(self):
        """A repeated target list opens a fresh switch with its own winner"""
        source = (
            "<!-- build:remove(dev) -->A<!-- /build -->\n"
            "<!-- build:remove(dev,prod) -->B<!-- /build -->\n"
            "<!-- build:remove(dev) -->C<!-- /build -->\n"
            "<!-- build:remove(prod) -->D<!-- /build -->"
        )
        assert activation_for(source, "dev") == {0: True, 2: False, 4: True, 6: False}
        assert activation_for(source, "prod") == {0: False, 2: True, 4: False, 6: True}

    def test_later_match_when_earlier_misses(self):
        """Each block is evaluated in order"""
        source = (
            "<!-- build:remove(dev) -->A<!-- /build -->\n"
            "<!-- build:remove(prod) -->B<!-- /build -->"
        )
        assert activation_for(source, "prod") == {0: False, 2: True}

    def test_text_breaks_group(self):
        """Non-whitespace text between blocks starts a new group"""
        source = (
            "<!-- build:remove(dev) -->A<!-- /build -->"
            "<p>between</p>"
            "<!-- build:remove(dev) -->B<!-- /build -->"
        )
        assert activation_for(source, "dev") == {0: True, 2: True}

    def test_other_block_type_breaks_group(self):
        """A non-gated directive between remove blocks ends the group"""
        source = (
            "<!-- build:remove(dev) -->A<!-- /build -->"
            "<!-- build:ie -->x<!-- /build -->"
            "<!-- build:remove(dev) -->B<!-- /build -->"
        )
        assert activation_for(source, "dev") == {0: True, 1: True, 2: True}

    def test_exactly_one_emitted(self):
        """At most one block of a group is active for any environment"""
        source = (
            "<!-- build:remove(a,b) -->1<!-- /build -->\n"
            "<!-- build:remove(b,c) -->2<!-- /build -->\n"
            "<!-- build:remove(a,c) -->3<!-- /build -->"
        )
        for environment in ["a", "b", "c", "d", None]:
            active = [index for index, on in activation_for(source, environment).items() if on]
            assert len(active) <= 1
