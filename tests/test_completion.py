import unittest

from command_prompt.core.completion import (
    CompleterCache,
    CompletionOptions,
    CompletionResult,
    build_completer,
    common_prefix_from,
    complete,
)

COMMANDS = ["foo", "bar", "bum"]


class CompleteTests(unittest.TestCase):
    def test_single_match_is_completed(self) -> None:
        self.assertEqual(complete("f", COMMANDS), CompletionResult(match="foo"))

    def test_ambiguous_matches_are_listed(self) -> None:
        self.assertEqual(complete("b", COMMANDS), CompletionResult(matches=["bar", "bum"]))

    def test_no_match_returns_line_unchanged(self) -> None:
        self.assertEqual(complete("zu", COMMANDS), CompletionResult(match="zu"))

    def test_common_prefix_is_expanded(self) -> None:
        result = complete("f", ["foo bar", "foo baz"])
        self.assertEqual(result, CompletionResult(match="foo ba"))

    def test_common_prefix_stops_at_shortest_candidate(self) -> None:
        self.assertEqual(complete("f", ["foo", "foobar"]), CompletionResult(match="foo"))

    def test_exact_prefix_without_continuation_lists_matches(self) -> None:
        self.assertEqual(
            complete("foo", ["foo", "foobar"]),
            CompletionResult(matches=["foo", "foobar"]),
        )

    def test_metacharacters_are_matched_literally(self) -> None:
        candidates = ["a.b", "axb", "(x)", "a*"]
        self.assertEqual(complete("a.", candidates), CompletionResult(match="a.b"))
        self.assertEqual(complete("(", candidates), CompletionResult(match="(x)"))
        self.assertEqual(complete("a*", candidates), CompletionResult(match="a*"))

    def test_filter_marker_transforms_output(self) -> None:
        candidates = [
            CompletionOptions(filter=lambda text: text.split(" [")[0]),
            "show john [first option]",
            "show mike [second option]",
        ]
        self.assertEqual(complete("show j", candidates), CompletionResult(match="show john"))
        self.assertEqual(complete("show", candidates), CompletionResult(match="show "))

    def test_mapping_marker_is_supported(self) -> None:
        candidates = [{"filter": str.upper}, "foo", "bar"]
        self.assertEqual(complete("f", candidates), CompletionResult(match="FOO"))
        self.assertEqual(complete("zz", candidates), CompletionResult(match="ZZ"))

    def test_marker_without_filter_is_dropped(self) -> None:
        self.assertEqual(complete("", [{}, "only"]), CompletionResult(match="only"))

    def test_plain_leading_value_is_a_candidate(self) -> None:
        self.assertEqual(complete("", [5, "foo"]), CompletionResult(matches=["5", "foo"]))
        self.assertEqual(complete("5", [5, "foo"]), CompletionResult(match="5"))

    def test_object_with_filter_attribute_is_a_marker(self) -> None:
        class Marker:
            filter = staticmethod(str.upper)

        self.assertEqual(complete("f", [Marker(), "foo"]), CompletionResult(match="FOO"))

    def test_ambiguous_result_is_not_filtered(self) -> None:
        candidates = [CompletionOptions(filter=str.upper), "bar", "bum"]
        self.assertEqual(complete("b", candidates), CompletionResult(matches=["bar", "bum"]))

    def test_common_prefix_helper(self) -> None:
        self.assertEqual(common_prefix_from(["abcd", "abce"], 1), "bc")
        self.assertEqual(common_prefix_from(["ab", "cd"], 0), "")
        self.assertEqual(common_prefix_from(["ab", "ab"], 2), "")


class BuildCompleterTests(unittest.IsolatedAsyncioTestCase):
    async def test_static_sequence(self) -> None:
        completer = build_completer(COMMANDS)
        self.assertEqual(completer("f"), CompletionResult(match="foo"))

    async def test_no_source_returns_empty_result(self) -> None:
        result = build_completer(None)("anything")
        self.assertIsNone(result.match)
        self.assertIsNone(result.matches)

    async def test_sync_function_receives_line(self) -> None:
        seen = []

        def source(line: str) -> list[str]:
            seen.append(line)
            return ["git status", "git stash"]

        completer = build_completer(source)
        self.assertEqual(completer("git st"), CompletionResult(match="git stat"))
        self.assertEqual(seen, ["git st"])

    async def test_async_function_suspends(self) -> None:
        async def source(line: str) -> list[str]:
            return ["deploy", "destroy"]

        outcome = build_completer(source)("dep")
        self.assertNotIsInstance(outcome, CompletionResult)
        self.assertEqual(await outcome, CompletionResult(match="deploy"))

    async def test_sync_function_returning_awaitable(self) -> None:
        async def fetch() -> list[str]:
            return ["alpha"]

        outcome = build_completer(lambda line: fetch())("a")
        self.assertEqual(await outcome, CompletionResult(match="alpha"))

    async def test_cache_resolves_once_per_context(self) -> None:
        cache = CompleterCache()
        first = cache.get("ctx", COMMANDS)
        second = cache.get("ctx", ["other"])
        self.assertIs(first, second)
        self.assertIn("ctx", cache)
        self.assertIsNot(cache.get("ctx2", COMMANDS), first)


if __name__ == "__main__":
    unittest.main()
