"""
Tests for the claim ledger.
"""

import threading
import unittest

from helpers import CLAIMANT, OTHER

from vesting_claims.errors import AlreadyClaimed
from vesting_claims.ledger import ClaimLedger


class TestClaimLedger(unittest.TestCase):

    def setUp(self):
        self.ledger = ClaimLedger()

    def test_settles_once(self):
        self.assertTrue(self.ledger.check_and_settle(CLAIMANT, 5))
        self.assertFalse(self.ledger.check_and_settle(CLAIMANT, 5))
        self.assertFalse(self.ledger.check_and_settle(CLAIMANT.lower(), 1, "signature"))
        self.assertEqual(len(self.ledger), 1)

    def test_absent_means_unclaimed(self):
        self.assertFalse(self.ledger.is_settled(CLAIMANT))
        self.assertIsNone(self.ledger.get_record(CLAIMANT))
        self.assertNotIn(CLAIMANT, self.ledger)

    def test_record_contents(self):
        self.ledger.check_and_settle(CLAIMANT.lower(), 2, "signature")
        record = self.ledger.get_record(CLAIMANT)
        self.assertEqual(record.claimant, CLAIMANT)
        self.assertEqual(record.amount, 2)
        self.assertEqual(record.method, "signature")
        self.assertIn(CLAIMANT, self.ledger)

    def test_settlement_commits_on_success(self):
        with self.ledger.settlement(CLAIMANT, 5) as record:
            self.assertEqual(record.amount, 5)
        self.assertTrue(self.ledger.is_settled(CLAIMANT))

    def test_settlement_reverts_on_failure(self):
        with self.assertRaises(RuntimeError):
            with self.ledger.settlement(CLAIMANT, 5):
                raise RuntimeError("transfer failed")
        self.assertFalse(self.ledger.is_settled(CLAIMANT))
        self.assertTrue(self.ledger.check_and_settle(CLAIMANT, 5))

    def test_settlement_of_settled_claimant(self):
        self.ledger.check_and_settle(CLAIMANT, 5)
        with self.assertRaises(AlreadyClaimed):
            with self.ledger.settlement(CLAIMANT, 5):
                self.fail("body must not run")
        # The earlier settlement survives the failed attempt
        self.assertTrue(self.ledger.is_settled(CLAIMANT))

    def test_records_listing(self):
        self.ledger.check_and_settle(CLAIMANT, 5)
        self.ledger.check_and_settle(OTHER, 3)
        self.assertEqual({r.claimant for r in self.ledger.records()}, {CLAIMANT, OTHER})

    def test_concurrent_settle_single_winner(self):
        results = []
        barrier = threading.Barrier(16)

        def worker():
            barrier.wait()
            results.append(self.ledger.check_and_settle(CLAIMANT, 5))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(results.count(True), 1)
        self.assertEqual(results.count(False), 15)


if __name__ == '__main__':
    unittest.main()
