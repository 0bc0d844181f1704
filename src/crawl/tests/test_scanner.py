import unittest

from crawl.errors import CrawlSyntaxError
from crawl.parser.scanner import tokenize


def kinds(source: str) -> list[str]:
    return [tok.kind for tok in tokenize(source)]


class TestScanner(unittest.TestCase):
    def test_if_then_tokens(self) -> None:
        tokens = tokenize('if roll 1-3 on 1d6 + 1 => set-fact "party is lost"')
        self.assertEqual(
            [tok.kind for tok in tokens],
            ["IF", "ROLL", "RANGE", "ON", "SPEC", "PLUS", "NUMBER", "ARROW", "SET_FACT", "STRING", "NEWLINE", "EOF"],
        )
        self.assertEqual(tokens[2].value, (1, 3))
        self.assertEqual(tokens[4].value, (1, 6))
        self.assertEqual(tokens[9].value, "party is lost")

    def test_keywords_with_punctuation(self) -> None:
        self.assertEqual(
            kinds('fact? "a" persistent-fact? "b" clear-persistent-fact swap-fact'),
            ["FACT_TEST", "STRING", "PERSISTENT_FACT_TEST", "STRING", "CLEAR_PERSISTENT_FACT", "SWAP_FACT", "NEWLINE", "EOF"],
        )

    def test_identifiers_allow_hyphens(self) -> None:
        tokens = tokenize("random-encounter")
        self.assertEqual(tokens[0].kind, "IDENT")
        self.assertEqual(tokens[0].value, "random-encounter")

    def test_specifier_with_attached_modifier(self) -> None:
        self.assertEqual(kinds("roll 1d6-1"), ["ROLL", "SPEC", "MINUS", "NUMBER", "NEWLINE", "EOF"])

    def test_format_string_symbols(self) -> None:
        self.assertEqual(
            kinds('set-fact "weather is {}" % roll on table "weather.csv"'),
            ["SET_FACT", "STRING", "PERCENT", "ROLL", "ON", "TABLE", "STRING", "NEWLINE", "EOF"],
        )

    def test_indent_and_dedent(self) -> None:
        source = 'procedure p\n    reminder "x"\nend\n'
        self.assertEqual(
            kinds(source),
            ["PROCEDURE", "IDENT", "NEWLINE", "INDENT", "REMINDER", "STRING", "NEWLINE", "DEDENT", "END", "NEWLINE", "EOF"],
        )

    def test_blank_lines_and_comments_are_skipped(self) -> None:
        source = '# heading\n\nreminder "a"  # trailing\n\n'
        self.assertEqual(kinds(source), ["REMINDER", "STRING", "NEWLINE", "EOF"])

    def test_hash_inside_string_is_text(self) -> None:
        tokens = tokenize('reminder "room #4"')
        self.assertEqual(tokens[1].value, "room #4")

    def test_string_escapes(self) -> None:
        tokens = tokenize(r'reminder "say \"hi\"\tnow"')
        self.assertEqual(tokens[1].value, 'say "hi"\tnow')

    def test_dangling_indent_closed_at_eof(self) -> None:
        self.assertEqual(
            kinds('procedure p\n    reminder "x"'),
            ["PROCEDURE", "IDENT", "NEWLINE", "INDENT", "REMINDER", "STRING", "NEWLINE", "DEDENT", "EOF"],
        )

    def test_inconsistent_dedent(self) -> None:
        source = 'procedure p\n    reminder "a"\n  reminder "b"\nend\n'
        with self.assertRaises(CrawlSyntaxError) as ctx:
            tokenize(source)
        self.assertEqual(ctx.exception.line, 3)

    def test_mixed_tabs_and_spaces(self) -> None:
        with self.assertRaises(CrawlSyntaxError):
            tokenize('procedure p\n \treminder "a"\nend\n')

    def test_unterminated_string(self) -> None:
        with self.assertRaisesRegex(CrawlSyntaxError, "Unterminated string"):
            tokenize('reminder "oops')

    def test_incomplete_arrow(self) -> None:
        with self.assertRaisesRegex(CrawlSyntaxError, "Unexpected character '='"):
            tokenize("= 5")

    def test_unknown_test_keyword(self) -> None:
        with self.assertRaises(CrawlSyntaxError):
            tokenize('weather? "rain"')

    def test_non_ascii_letter_is_rejected(self) -> None:
        with self.assertRaisesRegex(CrawlSyntaxError, "Unexpected character 'é'") as ctx:
            tokenize("procedure café")
        self.assertEqual(ctx.exception.column, 14)

    def test_superscript_digit_is_rejected(self) -> None:
        with self.assertRaises(CrawlSyntaxError) as ctx:
            tokenize("if roll ² on 1d6")
        self.assertEqual(ctx.exception.column, 9)

    def test_malformed_number(self) -> None:
        with self.assertRaises(CrawlSyntaxError) as ctx:
            tokenize("roll 2d6x")
        self.assertEqual(ctx.exception.column, 6)


if __name__ == "__main__":
    unittest.main()
