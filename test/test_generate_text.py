import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from generate_text import EXIT_GRAMMAR_ERROR, EXIT_UNREADABLE, EXIT_USAGE, load_config, main


class TestGenerateText(unittest.TestCase):
    def setUp(self):
        test_dir = os.path.dirname(os.path.abspath(__file__))
        root_dir = os.path.dirname(test_dir)
        self.poem = os.path.join(root_dir, "grammars/poem.g")
        self.tmp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp_dir.cleanup()

    def write_grammar(self, text: str) -> str:
        path = os.path.join(self.tmp_dir.name, "grammar.g")
        with open(path, "w") as f:
            f.write(text)
        return path

    def run_main(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    @staticmethod
    def versions(stdout: str) -> list[str]:
        lines = stdout.splitlines()
        return [lines[i + 1] for i, line in enumerate(lines) if line.startswith("Version #")]

    def test_missing_argument(self):
        code, stdout, stderr = self.run_main()
        self.assertEqual(code, EXIT_USAGE)
        self.assertEqual(stdout, "")
        self.assertIn("Usage: rsg <path to grammar text file>", stderr)

    def test_unreadable_file(self):
        path = os.path.join(self.tmp_dir.name, "missing.g")
        code, stdout, stderr = self.run_main(path)
        self.assertEqual(code, EXIT_UNREADABLE)
        self.assertIn(f'Failed to open the file named "{path}"', stderr)

    def test_poem(self):
        code, stdout, stderr = self.run_main(self.poem, "--seed", "1")
        self.assertEqual(code, 0)
        self.assertEqual(stderr, "")
        self.assertIn(f'The grammar file called "{self.poem}" contains 4 definitions.', stdout)

        versions = self.versions(stdout)
        self.assertEqual(len(versions), 3)
        self.assertIn("Version #3: ---------------------------", stdout)

        for text in versions:
            self.assertTrue(text.startswith("The "))
            self.assertTrue(text.endswith(" tonight."))

    def test_n_versions(self):
        code, stdout, _ = self.run_main(self.poem, "--n_versions", "5", "--log_stats")
        self.assertEqual(code, 0)
        self.assertEqual(len(self.versions(stdout)), 5)
        self.assertIn("Stats for 5 versions:", stdout)
        self.assertIn("Vocabulary size:", stdout)

    def test_verify(self):
        code, stdout, _ = self.run_main(self.poem, "--verify")
        self.assertEqual(code, 0)
        self.assertEqual(stdout.count("Derivable from <start>: True"), 3)

    def test_start_symbol(self):
        code, stdout, _ = self.run_main(self.poem, "--start", "<adverb>")
        self.assertEqual(code, 0)

        for text in self.versions(stdout):
            self.assertIn(text, ["warily", "grumpily"])

    def test_malformed_grammar(self):
        path = self.write_grammar("{\n<start>\n2\nonly one\n}\n")
        code, stdout, stderr = self.run_main(path)
        self.assertEqual(code, EXIT_GRAMMAR_ERROR)
        self.assertNotIn("Version #", stdout)
        self.assertIn("malformed", stderr)

    def test_undefined_nonterminal(self):
        path = self.write_grammar("{\n<start>\n1\nhello <missing>\n}\n")
        code, stdout, stderr = self.run_main(path)
        self.assertEqual(code, EXIT_GRAMMAR_ERROR)
        self.assertIn("contains 1 definitions.", stdout)
        self.assertEqual(stdout.count("Version #"), 3)
        self.assertEqual(stderr.count("No definition for nonterminal <missing>"), 3)

    def test_without_default_config(self):
        missing = os.path.join(self.tmp_dir.name, "default.yaml")
        with patch("generate_text.DEFAULT_CONFIG", missing):
            code, stdout, stderr = self.run_main(self.poem)

        self.assertEqual(code, 0)
        self.assertEqual(stderr, "")
        self.assertEqual(len(self.versions(stdout)), 3)

    def test_unreadable_config(self):
        path = os.path.join(self.tmp_dir.name, "nope.yaml")
        code, stdout, stderr = self.run_main(self.poem, "--config", path)
        self.assertEqual(code, EXIT_USAGE)
        self.assertEqual(stdout, "")
        self.assertIn(f'Failed to read the config file "{path}"', stderr)

        with open(path, "w") as f:
            f.write("n_versions: [3\n")
        code, stdout, stderr = self.run_main(self.poem, "--config", path)
        self.assertEqual(code, EXIT_USAGE)
        self.assertEqual(stdout, "")

    def test_invalid_options(self):
        for argv in [("--max_depth", "0"), ("--n_versions", "-1")]:
            with self.subTest(argv=argv):
                code, stdout, stderr = self.run_main(self.poem, *argv)
                self.assertEqual(code, EXIT_USAGE)
                self.assertEqual(stdout, "")
                self.assertIn("must be a positive integer", stderr)

    def test_load_config(self):
        path = os.path.join(self.tmp_dir.name, "config.yaml")
        with open(path, "w") as f:
            f.write("start_symbol: <s>\nn_versions: 2\nseed: 5\n")

        config = load_config(path, n_versions=7, seed=None)
        self.assertEqual(config, {"start_symbol": "<s>", "n_versions": 7, "seed": 5})


if __name__ == "__main__":
    unittest.main()
