import json
import os
import tempfile

from unittest import IsolatedAsyncioTestCase

import pytest

from ...config.settings import Settings
from ...messaging.message_types import (
    MEDIA_TYPE_PLAIN_MESSAGE,
    MEDIA_TYPE_ZKP_MESSAGE,
)
from ...messaging.packers import ProofVerifier
from ..conductor import Conductor, load_verification_key
from ..error import StartupError

PROVIDERS_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "providers",
    "tests",
    "testvectors",
    "balance.yaml",
)
STATE_CONTRACT = "0x134B1BE34911E39A8397ec6289782989729807a4"


class StubProofVerifier(ProofVerifier):
    async def verify(self, circuit_id, signing_input, proof, pub_signals, key):
        return True


class TestConductor(IsolatedAsyncioTestCase):
    def setUp(self):
        self.keys = tempfile.TemporaryDirectory()
        self.addCleanup(self.keys.cleanup)
        self.values = {
            "server.host": "127.0.0.1",
            "server.port": 8002,
            "server.max_message_size": 1 << 20,
            "server.request_timeout": 30,
            "issuer.urls": {"*": "http://issuer-node:3001"},
            "issuer.basic_auth": {"*": "user:password"},
            "providers.config_path": PROVIDERS_PATH,
            "providers.timeout": 10,
            "verifier.keys_path": self.keys.name,
        }

    def write_key(self, content: str = '{"protocol": "groth16"}'):
        os.makedirs(os.path.join(self.keys.name, "authV2"))
        with open(
            os.path.join(self.keys.name, "authV2", "verification_key.json"), "w"
        ) as key_file:
            key_file.write(content)

    def enable_proofs(self):
        self.values["verifier.proof_verifier"] = (
            f"{__name__}.{StubProofVerifier.__name__}"
        )
        self.values["verifier.rpc"] = {80001: "http://localhost:8545"}
        self.values["verifier.state_contracts"] = {80001: STATE_CONTRACT}

    async def test_setup_plain(self):
        conductor = Conductor(Settings(self.values))
        await conductor.setup()

        assert conductor.package_manager.media_types == (MEDIA_TYPE_PLAIN_MESSAGE,)
        assert conductor.transport.host == "127.0.0.1"
        assert conductor.transport.max_message_size == 1 << 20
        assert conductor.rpc_session is None
        await conductor.stop()

    async def test_setup_with_proof_verifier(self):
        self.write_key()
        self.enable_proofs()
        conductor = Conductor(Settings(self.values))
        await conductor.setup()

        assert conductor.package_manager.media_types == (
            MEDIA_TYPE_PLAIN_MESSAGE,
            MEDIA_TYPE_ZKP_MESSAGE,
        )
        packer = conductor.package_manager.get_packer(MEDIA_TYPE_ZKP_MESSAGE)
        assert isinstance(packer.proof_verifier, StubProofVerifier)
        rpc_session = conductor.rpc_session
        await conductor.stop()
        assert rpc_session.closed

    async def test_missing_verification_key(self):
        self.enable_proofs()
        with self.assertRaises(StartupError):
            await Conductor(Settings(self.values)).setup()

    async def test_contract_without_rpc(self):
        self.write_key()
        self.enable_proofs()
        self.values["verifier.rpc"] = {}
        with self.assertRaises(StartupError):
            await Conductor(Settings(self.values)).setup()

    async def test_invalid_proof_verifier(self):
        self.write_key()
        self.enable_proofs()
        for class_path in (
            "refresh_service.missing.ProofVerifier",
            "refresh_service.core.conductor.Conductor",
        ):
            self.values["verifier.proof_verifier"] = class_path
            with self.assertRaises(StartupError):
                await Conductor(Settings(self.values)).setup()

    async def test_invalid_configuration(self):
        for key, value in (
            ("providers.config_path", os.path.join(self.keys.name, "missing.yaml")),
            ("issuer.basic_auth", {"*": "no-separator"}),
            ("did.networks", ["polygonid:polygon:mumbai=1:0x02:0x13"]),
        ):
            settings = Settings(dict(self.values, **{key: value}))
            with self.assertRaises(StartupError):
                await Conductor(settings).setup()


def test_load_verification_key_invalid_json():
    with tempfile.TemporaryDirectory() as keys:
        os.makedirs(os.path.join(keys, "authV2"))
        with open(os.path.join(keys, "authV2", "verification_key.json"), "w") as f:
            f.write("[1, 2")
        with pytest.raises(StartupError):
            load_verification_key(keys, "authV2")

        with open(os.path.join(keys, "authV2", "verification_key.json"), "w") as f:
            json.dump({"nPublic": 3}, f)
        assert load_verification_key(keys, "authV2") == {"nPublic": 3}
