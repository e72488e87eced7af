#!/usr/bin/env python3
"""
Run the vesting claims test suites.

Every ``test_*.py`` module next to this file is discovered and run; pass
module names (``test_merkle test_cli``) to run a subset. A per-module tally
is printed after the run and the exit status is non-zero on any failure.
"""

import os
import sys
import unittest
from collections import OrderedDict

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, TESTS_DIR)


def _flatten(suite):
    for item in suite:
        if isinstance(item, unittest.TestSuite):
            yield from _flatten(item)
        else:
            yield item


def discover(names=None):
    """
    Discovered tests grouped by module.

    Modules that fail to import are kept under ``unittest.loader`` so the
    run reports them as errors.
    """
    suites = OrderedDict()
    found = unittest.defaultTestLoader.discover(TESTS_DIR, pattern="test_*.py", top_level_dir=TESTS_DIR)
    for test in _flatten(found):
        module = type(test).__module__
        if names and module not in names and module != "unittest.loader":
            continue
        suites.setdefault(module, unittest.TestSuite()).addTest(test)
    return suites


def main(argv=None):
    names = (argv if argv is not None else sys.argv[1:]) or None
    suites = discover(names)
    if names:
        missing = sorted(set(names) - set(suites))
        if missing:
            print(f"No tests found for: {', '.join(missing)}")
            return 2

    runner = unittest.TextTestRunner(verbosity=2)
    tally = []
    for module, suite in suites.items():
        print(f"\n== {module} ==")
        result = runner.run(suite)
        tally.append((module, result.testsRun, len(result.failures), len(result.errors), len(result.skipped)))

    print(f"\n{'module':<20} {'run':>5} {'fail':>5} {'error':>5} {'skip':>5}")
    for row in tally:
        print(f"{row[0]:<20} {row[1]:>5} {row[2]:>5} {row[3]:>5} {row[4]:>5}")

    broken = sum(row[2] + row[3] for row in tally)
    print("\nall tests passed" if not broken else f"\n{broken} failing tests")
    return 1 if broken else 0


if __name__ == '__main__':
    sys.exit(main())
