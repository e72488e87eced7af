"""
Tests for the suite runner script.
"""

import glob
import io
import os
import unittest
from contextlib import redirect_stdout

import run_tests


class TestRunner(unittest.TestCase):

    def test_discovers_every_module(self):
        expected = {
            os.path.splitext(os.path.basename(path))[0]
            for path in glob.glob(os.path.join(run_tests.TESTS_DIR, "test_*.py"))
        }
        self.assertEqual(set(run_tests.discover()), expected)

    def test_subset(self):
        suites = run_tests.discover(["test_config"])
        self.assertEqual(list(suites), ["test_config"])
        self.assertGreater(suites["test_config"].countTestCases(), 0)

    def test_unknown_module(self):
        with redirect_stdout(io.StringIO()) as out:
            self.assertEqual(run_tests.main(["test_nothing"]), 2)
        self.assertIn("test_nothing", out.getvalue())


if __name__ == '__main__':
    unittest.main()
