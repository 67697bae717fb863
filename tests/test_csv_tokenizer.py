from __future__ import annotations

import unittest

from app.parsers.csv_tokenizer import CSVHeaderError, split_line, tokenize_csv


class TestCSVTokenizer(unittest.TestCase):
    def test_splits_rows_on_every_line_ending(self) -> None:
        result = tokenize_csv("a,b\n1,2\r\n3,4\r5,6")

        self.assertEqual(result.headers, ("a", "b"))
        self.assertEqual(
            result.rows,
            [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}, {"a": "5", "b": "6"}],
        )
        self.assertEqual(result.row_numbers, [2, 3, 4])
        self.assertEqual(result.issues, [])

    def test_quoted_commas_and_escaped_quotes(self) -> None:
        result = tokenize_csv('name,note\n"Tianfu, North","say ""hi"""')

        self.assertEqual(result.rows, [{"name": "Tianfu, North", "note": 'say "hi"'}])

    def test_fields_and_headers_are_trimmed(self) -> None:
        result = tokenize_csv(" a , b \n 1 ,  2 ")

        self.assertEqual(result.headers, ("a", "b"))
        self.assertEqual(result.rows, [{"a": "1", "b": "2"}])

    def test_blank_lines_are_skipped_silently(self) -> None:
        result = tokenize_csv("a,b\n\n1,2\n   \n3,4\n")

        self.assertEqual(len(result.rows), 2)
        self.assertEqual(result.row_numbers, [3, 5])
        self.assertEqual(result.issues, [])

    def test_field_count_mismatch_is_reported_and_skipped(self) -> None:
        result = tokenize_csv("a,b\n1,2\n1,2,3\n4,5")

        self.assertEqual(result.rows, [{"a": "1", "b": "2"}, {"a": "4", "b": "5"}])
        self.assertEqual(len(result.issues), 1)
        issue = result.issues[0]
        self.assertEqual(issue.row_number, 3)
        self.assertEqual(issue.level, "error")
        self.assertIn("expected 2", issue.message)
        self.assertIn("got 3", issue.message)

    def test_leading_bom_is_dropped(self) -> None:
        result = tokenize_csv("\ufeff周序号,跟单保费\n10,100")

        self.assertEqual(result.headers, ("周序号", "跟单保费"))
        self.assertEqual(result.rows, [{"周序号": "10", "跟单保费": "100"}])

    def test_first_non_blank_line_is_the_header(self) -> None:
        result = tokenize_csv("\n\na,b\n1,2")

        self.assertEqual(result.headers, ("a", "b"))
        self.assertEqual(result.header_row, 3)
        self.assertEqual(result.row_numbers, [4])

    def test_empty_text_raises_header_error(self) -> None:
        with self.assertRaises(CSVHeaderError):
            tokenize_csv("")
        with self.assertRaises(CSVHeaderError):
            tokenize_csv(" \n\r\n ")

    def test_header_without_names_raises_header_error(self) -> None:
        with self.assertRaises(CSVHeaderError):
            tokenize_csv(",\n1,2")

    def test_header_only_yields_no_rows(self) -> None:
        result = tokenize_csv("a,b\n")

        self.assertEqual(result.rows, [])
        self.assertEqual(result.issues, [])

    def test_split_line_unquotes_after_leading_space(self) -> None:
        self.assertEqual(split_line('x, "y, z"'), ["x", "y, z"])


if __name__ == "__main__":
    unittest.main()
