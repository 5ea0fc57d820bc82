from datetime import datetime, timedelta, timezone
from unittest import IsolatedAsyncioTestCase

import pytest

from ...did.iden3 import checksum, id_to_int
from ...did.method_registry import MethodRegistry
from ...tests import mock
from ..contract import GistRootInfo
from ..error import StateContractError, StateVerificationError
from ..state import SNARK_SCALAR_FIELD, AuthV2PubSignals, StateVerifier

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
ROOT = 12345678901234567890
MUMBAI_TYPE = b"\x02\x12"
GENESIS = bytes(range(27))
USER_ID = id_to_int(MUMBAI_TYPE + GENESIS + checksum(MUMBAI_TYPE, GENESIS))


def signals(user_id: int = USER_ID, root: int = ROOT):
    return [str(user_id), "987654321", str(root)]


class TestStateVerifier(IsolatedAsyncioTestCase):
    def setUp(self):
        self.contract = mock.MagicMock(
            get_gist_root_info=mock.CoroutineMock(
                return_value=GistRootInfo(
                    ROOT, 0, int(NOW.timestamp()) - 3600, 0, 100, 0
                )
            )
        )
        self.verifier = StateVerifier(
            {80001: self.contract},
            MethodRegistry(),
            valid_duration=timedelta(minutes=15),
            clock=lambda: NOW,
        )

    async def test_verify_current_root(self):
        await self.verifier.verify("authV2", signals())
        self.contract.get_gist_root_info.assert_awaited_once_with(ROOT)

    async def test_root_out_of_range(self):
        for root in (-1, 2**256):
            with self.assertRaises(StateVerificationError):
                await self.verifier.verify("authV2", signals(root=root))
        self.contract.get_gist_root_info.assert_not_awaited()

    async def test_root_does_not_exist(self):
        self.contract.get_gist_root_info.return_value = GistRootInfo(0, 0, 0, 0, 0, 0)
        with self.assertRaises(StateVerificationError):
            await self.verifier.verify("authV2", signals())

    async def test_root_mismatch(self):
        self.contract.get_gist_root_info.return_value = GistRootInfo(
            ROOT + 1, 0, 1, 0, 1, 0
        )
        with self.assertRaises(StateVerificationError):
            await self.verifier.verify("authV2", signals())

    async def test_recently_replaced_root(self):
        replaced_at = int((NOW - timedelta(minutes=10)).timestamp())
        self.contract.get_gist_root_info.return_value = GistRootInfo(
            ROOT, ROOT + 1, 1, replaced_at, 1, 2
        )
        await self.verifier.verify("authV2", signals())

    async def test_stale_replaced_root(self):
        replaced_at = int((NOW - timedelta(minutes=16)).timestamp())
        self.contract.get_gist_root_info.return_value = GistRootInfo(
            ROOT, ROOT + 1, 1, replaced_at, 1, 2
        )
        with self.assertRaises(StateVerificationError) as context:
            await self.verifier.verify("authV2", signals())
        assert "too old" in context.exception.message

    async def test_unsupported_chain(self):
        verifier = StateVerifier({137: self.contract}, MethodRegistry())
        with self.assertRaises(StateVerificationError):
            await verifier.verify("authV2", signals())
        self.contract.get_gist_root_info.assert_not_awaited()

    async def test_invalid_user_id(self):
        with self.assertRaises(StateVerificationError):
            await self.verifier.verify("authV2", signals(user_id=USER_ID + 1))

    async def test_contract_error(self):
        self.contract.get_gist_root_info.side_effect = StateContractError("down")
        with self.assertRaises(StateVerificationError):
            await self.verifier.verify("authV2", signals())

    async def test_unsupported_circuit(self):
        with self.assertRaises(StateVerificationError):
            await self.verifier.verify("credentialAtomicQueryMTPV2", signals())


def test_parse_pub_signals():
    assert AuthV2PubSignals.parse(["1", "2", "3"]) == AuthV2PubSignals(1, 2, 3)


@pytest.mark.parametrize(
    "pub_signals",
    [
        ["1", "2"],
        ["1", "2", "x"],
        ["1", "2", "-5"],
        ["1", "2", str(2**256)],
        [str(SNARK_SCALAR_FIELD), "2", "3"],
    ],
)
def test_parse_pub_signals_invalid(pub_signals):
    with pytest.raises(StateVerificationError):
        AuthV2PubSignals.parse(pub_signals)
