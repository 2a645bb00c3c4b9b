"""Tests for placeholder resolvers."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from condexpr.engine import ConditionEvaluator
from condexpr.resolvers import (
    MAX_PARSE_ITERATIONS,
    MappingResolver,
    PassthroughResolver,
    PlaceholderResolver,
    convert_outer_to_percent,
    split_args,
)


class TestPassthroughResolver:
    """Tests for PassthroughResolver."""

    def test_returns_text_unchanged(self) -> None:
        assert PassthroughResolver().resolve(None, "%level%") == "%level%"

    def test_satisfies_protocol(self) -> None:
        assert isinstance(PassthroughResolver(), PlaceholderResolver)


class TestSplitArgs:
    """Tests for split_args."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("", []),
            ("a", ["a"]),
            ("a_b_c", ["a", "b", "c"]),
            ("a__b", ["a", "", "b"]),
        ],
    )
    def test_split(self, raw: str, expected: list[str]) -> None:
        assert split_args(raw) == expected


class TestMappingResolver:
    """Tests for MappingResolver expansion."""

    def test_fixed_value(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        assert resolver.resolve(None, "%world%") == "nether"

    def test_substitutes_inside_text(self) -> None:
        resolver = MappingResolver({"world": "nether", "level": "12"})
        assert resolver.resolve(None, "lvl %level% in %world%!") == "lvl 12 in nether!"

    def test_unknown_reference_left_unchanged(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        assert resolver.resolve(None, "%unknown% %world%") == "%unknown% nether"

    def test_text_without_references(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        assert resolver.resolve(None, "100% sure") == "100% sure"

    def test_keys_are_case_insensitive(self) -> None:
        resolver = MappingResolver({"World": "nether"})
        assert resolver.resolve(None, "%WORLD%") == "nether"
        assert resolver.keys() == ["world"]

    def test_callable_receives_context_and_args(self) -> None:
        seen = []

        def handler(context, raw_args):
            seen.append((context, raw_args))
            return str(context.level)

        resolver = MappingResolver()
        resolver.register("level", handler)
        player = SimpleNamespace(level=7)

        assert resolver.resolve(player, "%level_max_2%") == "7"
        assert seen == [(player, "max_2")]

    def test_args_split_on_first_underscore(self) -> None:
        resolver = MappingResolver()
        resolver.register("stat", lambda ctx, raw: "|".join(split_args(raw)))
        assert resolver.resolve(None, "%stat_kills_week%") == "kills|week"

    def test_full_name_wins_over_split(self) -> None:
        resolver = MappingResolver({"max_hp": "20", "max": "wrong"})
        assert resolver.resolve(None, "%max_hp%") == "20"
        assert resolver.resolve(None, "%max_mana%") == "wrong"

    def test_nested_references_expand(self) -> None:
        resolver = MappingResolver({"greeting": "hi %name%", "name": "Steve"})
        assert resolver.resolve(None, "%greeting%") == "hi Steve"

    def test_runaway_expansion_stops(self, caplog: pytest.LogCaptureFixture) -> None:
        counter = iter(range(1000))
        resolver = MappingResolver()
        resolver.register("loop", lambda ctx, raw: f"{next(counter)}%loop%")

        with caplog.at_level(logging.WARNING, logger="condexpr.resolvers"):
            result = resolver.resolve(None, "%loop%")

        assert result.endswith("%loop%")
        assert result.startswith("".join(str(i) for i in range(MAX_PARSE_ITERATIONS)))
        assert any("did not converge" in r.getMessage() for r in caplog.records)

    def test_unregister(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        resolver.unregister("WORLD")
        assert resolver.resolve(None, "%world%") == "%world%"
        resolver.unregister("missing")

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MappingResolver(), PlaceholderResolver)


class TestBraceReferences:
    """Tests for `{key}` references and caller-supplied replacements."""

    def test_brace_reference_expands(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        assert resolver.resolve(None, "in {world}") == "in nether"

    def test_nested_in_arguments(self) -> None:
        resolver = MappingResolver()
        resolver.register("player", lambda ctx, raw: ctx)
        resolver.register("kills", lambda ctx, raw: f"kills-of-{raw}")
        assert resolver.resolve("Steve", "%kills_{player}%") == "kills-of-Steve"

    def test_unknown_brace_reference_left_unchanged(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        assert resolver.resolve(None, "{json} %world%") == "{json} nether"

    def test_custom_values_replaced_first(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        result = resolver.resolve(None, "{who} in %world%", {"who": "Alex"})
        assert result == "Alex in nether"

    def test_custom_values_override_handlers(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        assert resolver.resolve(None, "{world}", {"world": "end"}) == "end"

    def test_custom_value_may_hold_reference(self) -> None:
        resolver = MappingResolver({"world": "nether"})
        assert resolver.resolve(None, "{where}", {"where": "%world%"}) == "nether"


class TestConvertOuterToPercent:
    """Tests for convert_outer_to_percent."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("{player_name}", "%player_name%"),
            ("{stat_{player}}", "%stat_{player}%"),
            ("{a}{b}", "{a}{b}"),
            ("{unbalanced", "{unbalanced"),
            ("{a}}", "{a}}"),
            ("plain", "plain"),
            ("", ""),
        ],
    )
    def test_braces(self, text: str, expected: str) -> None:
        assert convert_outer_to_percent(text) == expected

    def test_custom_pair(self) -> None:
        assert convert_outer_to_percent("[a_[b]]", "[", "]") == "%a_[b]%"

    def test_converted_text_resolves(self) -> None:
        resolver = MappingResolver({"player": "Steve"})
        resolver.register("stat", lambda ctx, raw: f"stat:{raw}")
        text = convert_outer_to_percent("{stat_{player}}")
        assert resolver.resolve(None, text) == "stat:Steve"


class TestMappingResolverWithEvaluator:
    """MappingResolver driving a ConditionEvaluator."""

    def test_per_caller_values(self) -> None:
        resolver = MappingResolver()
        resolver.register("hp", lambda ctx, raw: str(ctx.hp))
        alice = SimpleNamespace(name="alice", hp=20)
        bob = SimpleNamespace(name="bob", hp=3)

        with ConditionEvaluator(resolver) as evaluator:
            assert evaluator.evaluate(alice, "%hp% >= 10") is True
            assert evaluator.evaluate(bob, "%hp% >= 10") is False

    def test_quoted_operand_with_spaces(self) -> None:
        resolver = MappingResolver({"rank": "admin"})
        with ConditionEvaluator(resolver) as evaluator:
            assert evaluator.evaluate(None, "'%rank%' << 'admin moderator'") is True
            assert evaluator.evaluate(None, "'%rank%' !<< 'guest visitor'") is True
