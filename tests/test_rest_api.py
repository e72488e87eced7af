"""
Tests for the claims REST API.
"""

import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from helpers import CLAIMANT, OTHER, OTHER_KEY, OWNER, OWNER_KEY, T0, build_table, deploy, past_cliff

from vesting_claims.api.claim_service import ClaimService, StatusUnavailableError
from vesting_claims.api.claim_status import ClaimStatusError, OnChainClaimStatus
from vesting_claims.api.rest_api import app, build_claim_service, get_claim_service
from vesting_claims.authority import DEFAULT_VESTING_PERIOD, TrustState
from vesting_claims.config import VestingSettings
from vesting_claims.models.api_models import ClaimProofResponse
from vesting_claims.signature import sign_claim

CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class TestRestApi(unittest.TestCase):

    def setUp(self):
        self.authority, self.token, self.table, self.clock = deploy()
        self.service = ClaimService.for_authority(self.table, self.authority)
        app.dependency_overrides[get_claim_service] = lambda: self.service
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Vesting Claims API")

    def test_health(self):
        data = self.client.get("/health").json()
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["merkle_root"], self.table.hex_root)
        self.assertEqual(data["allocations"], len(self.table))

    def test_health_degraded_after_rotation(self):
        self.authority.set_new_merkle_root(OWNER, b"\x11" * 32)
        self.assertEqual(self.client.get("/health").json()["status"], "degraded")

    def test_get_proof(self):
        response = self.client.get(f"/proofs/{CLAIMANT.lower()}")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["claimant"], CLAIMANT)
        self.assertEqual(data["amount"], "5")
        self.assertEqual(data["unlock_time"], T0)
        self.assertEqual(data["root"], self.table.hex_root)
        self.assertIs(data["claimed"], False)
        self.assertEqual(data["claimable_at"], T0 + DEFAULT_VESTING_PERIOD)

    def test_served_proof_claims(self):
        data = self.client.get(f"/proofs/{CLAIMANT}").json()
        past_cliff(self.clock)
        self.authority.claim(CLAIMANT, int(data["amount"]), data["unlock_time"], int(data["amount"]), data["proof"])

        self.assertTrue(self.client.get(f"/proofs/{CLAIMANT}").json()["claimed"])
        status = self.client.get(f"/claims/{CLAIMANT}").json()
        self.assertTrue(status["claimed"])
        self.assertEqual(status["amount"], "5")
        self.assertEqual(status["method"], "merkle")

    def test_unknown_address(self):
        response = self.client.get(f"/proofs/{OTHER}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "NOT_FOUND")

    def test_malformed_address(self):
        response = self.client.get("/proofs/0x1234")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get("/claims/0x1234").status_code, 400)

    def test_unclaimed_status(self):
        data = self.client.get(f"/claims/{OTHER}").json()
        self.assertEqual(data, {
            "claimant": OTHER,
            "claimed": False,
            "amount": None,
            "method": None,
            "settled_at": None,
            "source": "ledger",
        })

    def test_verify_proof(self):
        proof = self.table.get_claim_proof(CLAIMANT).hex_proof()
        body = {"claimant": CLAIMANT, "amount": 5, "unlock_time": T0, "proof": proof}
        data = self.client.post("/proofs/verify", json=body).json()
        self.assertTrue(data["valid"])
        self.assertEqual(data["root"], self.table.hex_root)

        body["amount"] = 6
        self.assertFalse(self.client.post("/proofs/verify", json=body).json()["valid"])

    def test_verify_proof_against_given_root(self):
        proof = self.table.get_claim_proof(CLAIMANT).hex_proof()
        body = {"claimant": CLAIMANT, "amount": 5, "unlock_time": T0, "proof": proof, "root": "0x" + "11" * 32}
        self.assertFalse(self.client.post("/proofs/verify", json=body).json()["valid"])

    def test_verify_proof_validation(self):
        body = {"claimant": "0x1234", "amount": 5, "proof": []}
        self.assertEqual(self.client.post("/proofs/verify", json=body).status_code, 422)
        body = {"claimant": CLAIMANT, "amount": -5, "proof": []}
        self.assertEqual(self.client.post("/proofs/verify", json=body).status_code, 422)

    def test_verify_signature(self):
        body = {
            "claimant": CLAIMANT,
            "total_amount": 5,
            "amount": 2,
            "unlock_time": T0,
            "signature": sign_claim(OWNER_KEY, CLAIMANT, 5, 2, T0),
        }
        data = self.client.post("/signatures/verify", json=body).json()
        self.assertTrue(data["valid"])
        self.assertEqual(data["signer"], OWNER)
        self.assertEqual(data["expected_signer"], OWNER)

        body["signature"] = sign_claim(OTHER_KEY, CLAIMANT, 5, 2, T0)
        data = self.client.post("/signatures/verify", json=body).json()
        self.assertFalse(data["valid"])
        self.assertEqual(data["signer"], OTHER)

    def test_verify_signature_bad_length(self):
        body = {"claimant": CLAIMANT, "total_amount": 5, "amount": 2, "unlock_time": T0, "signature": "0x1234"}
        self.assertEqual(self.client.post("/signatures/verify", json=body).status_code, 422)

    def test_verify_signature_without_authority(self):
        app.dependency_overrides[get_claim_service] = lambda: ClaimService(self.table)
        body = {
            "claimant": CLAIMANT,
            "total_amount": 5,
            "amount": 2,
            "unlock_time": T0,
            "signature": sign_claim(OWNER_KEY, CLAIMANT, 5, 2, T0),
        }
        response = self.client.post("/signatures/verify", json=body)
        self.assertEqual(response.status_code, 400)


class TestConfiguredService(unittest.TestCase):
    """Service as built by the server from VESTING_* settings."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.table = build_table(filler=8)
        self.allocations = os.path.join(self.tmpdir, "allocations.json")
        with open(self.allocations, "w") as f:
            json.dump(
                [
                    {"address": a.claimant, "amount": a.amount, "unlock_time": a.unlock_time}
                    for a in self.table.allocations
                ],
                f,
            )
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        shutil.rmtree(self.tmpdir)

    def serve(self, **kwargs):
        service = build_claim_service(VestingSettings(owner=OWNER, allocations_file=self.allocations, **kwargs))
        app.dependency_overrides[get_claim_service] = lambda: service
        return service

    def test_trust_from_settings(self):
        service = self.serve()
        self.assertIsInstance(service.trust, TrustState)
        self.assertEqual(service.trusted_root, self.table.root)
        self.assertEqual(service.admin_signer, OWNER)
        self.assertIsNone(service.status_source)

    def test_status_unavailable_without_contract(self):
        self.serve(rpc_url="http://localhost:8545")
        response = self.client.get(f"/claims/{CLAIMANT}")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["code"], "STATUS_UNAVAILABLE")

        data = self.client.get(f"/proofs/{CLAIMANT}").json()
        self.assertIsNone(data["claimed"])
        self.assertEqual(data["claimable_at"], T0 + DEFAULT_VESTING_PERIOD)

    def test_fixed_cliff_reported(self):
        self.serve(cliff_policy="fixed", cliff_timestamp=T0 + 5)
        self.assertEqual(self.client.get(f"/proofs/{CLAIMANT}").json()["claimable_at"], T0 + 5)

    def test_configured_root_mismatch_degrades_health(self):
        self.serve(merkle_root="0x" + "11" * 32)
        self.assertEqual(self.client.get("/health").json()["status"], "degraded")

    @patch("vesting_claims.api.claim_status.Web3")
    def test_status_read_from_contract(self, web3_cls):
        claimed_fn = web3_cls.return_value.eth.contract.return_value.functions.claimed
        claimed_fn.return_value.call.return_value = True
        service = self.serve(rpc_url="http://localhost:8545", contract_address=CONTRACT)
        self.assertIsInstance(service.status_source, OnChainClaimStatus)
        web3_cls.HTTPProvider.assert_called_once_with("http://localhost:8545")

        data = self.client.get(f"/claims/{CLAIMANT.lower()}").json()
        self.assertEqual(data["claimant"], CLAIMANT)
        self.assertTrue(data["claimed"])
        self.assertEqual(data["source"], "chain")
        claimed_fn.assert_called_with(CLAIMANT)
        self.assertTrue(self.client.get(f"/proofs/{CLAIMANT}").json()["claimed"])

    @patch("vesting_claims.api.claim_status.Web3")
    def test_unreachable_contract(self, web3_cls):
        claimed_fn = web3_cls.return_value.eth.contract.return_value.functions.claimed
        claimed_fn.return_value.call.side_effect = ConnectionError("node down")
        self.serve(rpc_url="http://localhost:8545", contract_address=CONTRACT)

        self.assertEqual(self.client.get(f"/claims/{CLAIMANT}").status_code, 503)
        response = self.client.get(f"/proofs/{CLAIMANT}")
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["claimed"])


class TestOnChainClaimStatus(unittest.TestCase):

    def setUp(self):
        self.w3 = MagicMock()
        self.contract = self.w3.eth.contract.return_value
        self.claimed_call = self.contract.functions.claimed.return_value
        self.source = OnChainClaimStatus(self.w3, CONTRACT.lower())

    def test_contract_address_checksummed(self):
        self.assertEqual(self.source.contract_address, CONTRACT)
        self.assertEqual(self.w3.eth.contract.call_args.kwargs["address"], CONTRACT)

    def test_lookup(self):
        self.claimed_call.call.return_value = False
        self.assertEqual(
            self.source.lookup(OTHER.lower()),
            {"claimant": OTHER, "claimed": False, "source": "chain"},
        )
        self.claimed_call.call.return_value = True
        self.assertTrue(self.source.lookup(OTHER)["claimed"])

    def test_call_failure(self):
        self.claimed_call.call.side_effect = TimeoutError("timed out")
        with self.assertRaises(ClaimStatusError) as ctx:
            self.source.lookup(OTHER)
        self.assertIsInstance(ctx.exception.__cause__, TimeoutError)

    def test_service_maps_failure(self):
        self.claimed_call.call.side_effect = TimeoutError("timed out")
        service = ClaimService(build_table(filler=2), status_source=self.source)
        with self.assertRaises(StatusUnavailableError):
            service.get_claim_status(OTHER)


class TestApiModels(unittest.TestCase):

    def test_documented_proof_example_validates(self):
        example = ClaimProofResponse.model_config["json_schema_extra"]["example"]
        response = ClaimProofResponse(**example)
        self.assertEqual(len(response.proof[0]), 66)
        self.assertEqual(response.claimable_at, example["claimable_at"])

    def test_short_proof_step_rejected(self):
        example = dict(ClaimProofResponse.model_config["json_schema_extra"]["example"])
        example["proof"] = ["0x" + "ab" * 31 + "a"]
        with self.assertRaises(ValueError):
            ClaimProofResponse(**example)


if __name__ == '__main__':
    unittest.main()
