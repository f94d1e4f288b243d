import unittest

from gershell.cli.editor import find_last_word_boundary, split_tokens


class WordBoundaryTests(unittest.TestCase):
    def test_last_word_goes_with_preceding_separator(self) -> None:
        text = "change show"
        self.assertEqual(text[: find_last_word_boundary(text)], "change")

    def test_trailing_separator_is_removed_alone(self) -> None:
        text = "change show "
        self.assertEqual(text[: find_last_word_boundary(text)], "change show")

    def test_separator_run_collapses_to_one_boundary(self) -> None:
        text = "query is:open"
        self.assertEqual(text[: find_last_word_boundary(text)], "query is")
        text = "query --  "
        self.assertEqual(text[: find_last_word_boundary(text)], "query")

    def test_single_word_is_removed_entirely(self) -> None:
        self.assertEqual(find_last_word_boundary("change"), 0)

    def test_only_separators_are_removed_entirely(self) -> None:
        self.assertEqual(find_last_word_boundary("  -- "), 0)

    def test_empty_string(self) -> None:
        self.assertEqual(find_last_word_boundary(""), 0)


class SplitTokensTests(unittest.TestCase):
    def test_offsets_and_termination(self) -> None:
        tokens = split_tokens("ch  sh x")
        self.assertEqual([t.text for t in tokens], ["ch", "sh", "x"])
        self.assertEqual([t.start for t in tokens], [0, 4, 7])
        self.assertEqual([t.terminated for t in tokens], [True, True, False])

    def test_trailing_whitespace_terminates_last_token(self) -> None:
        tokens = split_tokens("show ")
        self.assertEqual(len(tokens), 1)
        self.assertTrue(tokens[0].terminated)
        self.assertEqual(tokens[0].end, 4)


if __name__ == "__main__":
    unittest.main()
