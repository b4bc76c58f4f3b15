import tempfile
import unittest
from pathlib import Path

from drivemirror.scan import IgnoreRules, glob_to_regex, load_gitignore, translate_gitignore


class TestScanIgnore(unittest.TestCase):
    def test_trailing_double_star_matches_directory_and_contents(self) -> None:
        rx = glob_to_regex("drafts/**")
        self.assertTrue(rx.match("drafts"))
        self.assertTrue(rx.match("drafts/a.pdf"))
        self.assertTrue(rx.match("drafts/x/y.pdf"))
        self.assertFalse(rx.match("draftsx"))
        self.assertFalse(rx.match("docs/drafts"))

    def test_leading_double_star(self) -> None:
        rx = glob_to_regex("**/*.tmp")
        self.assertTrue(rx.match("a.tmp"))
        self.assertTrue(rx.match("x/y/a.tmp"))
        self.assertFalse(rx.match("a.tmp.bak"))

    def test_single_star_stays_in_segment(self) -> None:
        rx = glob_to_regex("*.md")
        self.assertTrue(rx.match("README.md"))
        self.assertFalse(rx.match("docs/README.md"))

    def test_question_mark_and_class(self) -> None:
        self.assertTrue(glob_to_regex("file?.txt").match("file1.txt"))
        self.assertFalse(glob_to_regex("file?.txt").match("file/.txt"))
        self.assertTrue(glob_to_regex("[ab].txt").match("a.txt"))
        self.assertFalse(glob_to_regex("[ab].txt").match("c.txt"))
        self.assertTrue(glob_to_regex("[!ab].txt").match("c.txt"))

    def test_special_characters_are_literal(self) -> None:
        rx = glob_to_regex("notes (old).pdf")
        self.assertTrue(rx.match("notes (old).pdf"))
        self.assertFalse(rx.match("notes old.pdf"))

    def test_translate_gitignore(self) -> None:
        lines = ["# comment", "", "!keep.txt", "build/", "node_modules", "*.log", "  "]
        self.assertEqual(translate_gitignore(lines), ["build/**", "node_modules/**", "*.log"])

    def test_load_gitignore(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            self.assertEqual(load_gitignore(root), [])
            (root / ".gitignore").write_text("out/\n*.pyc\n", encoding="utf-8")
            self.assertEqual(load_gitignore(root), ["out/**", "*.pyc"])

    def test_rules(self) -> None:
        rules = IgnoreRules([".git/**", ""]).extended(["drafts/**"])
        self.assertEqual(rules.patterns, (".git/**", "drafts/**"))
        self.assertTrue(rules.matches(".git/HEAD"))
        self.assertTrue(rules("/drafts/a.pdf"))
        self.assertFalse(rules.matches("docs/a.pdf"))


if __name__ == "__main__":
    unittest.main()
