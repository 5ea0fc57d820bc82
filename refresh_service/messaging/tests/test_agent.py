import json

from unittest import IsolatedAsyncioTestCase

from ...refresh.error import CredentialNotUpdatableError, NotUpdatableReason
from ...refresh.service import RefreshService
from ...tests import mock
from ...tests.documents import ISSUER_DID, OWNER_DID, non_merklized_credential
from ..agent import AgentService
from ..error import (
    InvalidProtocolMessageError,
    InvalidProtocolResponseError,
    PackerError,
    UnsupportedMessageTypeError,
)
from ..message_types import (
    CREDENTIAL_ISSUANCE_RESPONSE,
    CREDENTIAL_REFRESH,
    MEDIA_TYPE_PLAIN_MESSAGE,
)
from ..packers import PackageManager, PlainMessagePacker

THREAD_ID = "4f7f9b8e-0e53-4b59-9b1c-6a55b0c3b2f4"


def envelope(**overrides) -> bytes:
    message = {
        "id": "d3ac1e2b-3f6b-4c13-a0c4-5b4c7fa8cd1f",
        "typ": MEDIA_TYPE_PLAIN_MESSAGE,
        "type": CREDENTIAL_REFRESH,
        "thid": THREAD_ID,
        "body": {
            "credentials": [
                {"id": "urn:uuid:e6d0e822-686c-11ee-8afb-3ec1cb517438"}
            ],
            "reason": "credential expired",
        },
        "from": OWNER_DID,
        "to": ISSUER_DID,
    }
    message.update(overrides)
    return json.dumps(message).encode("utf-8")


class TestAgentService(IsolatedAsyncioTestCase):
    def setUp(self):
        self.credential = non_merklized_credential()
        self.refresh_service = mock.MagicMock(
            process=mock.CoroutineMock(return_value=self.credential)
        )
        self.package_manager = PackageManager(PlainMessagePacker())
        self.agent = AgentService.for_refresh(
            self.package_manager, self.refresh_service
        )

    async def test_process(self):
        response = json.loads(await self.agent.process(envelope()))

        self.refresh_service.process.assert_awaited_once_with(
            ISSUER_DID, OWNER_DID, "e6d0e822-686c-11ee-8afb-3ec1cb517438"
        )
        assert response["type"] == CREDENTIAL_ISSUANCE_RESPONSE
        assert response["typ"] == MEDIA_TYPE_PLAIN_MESSAGE
        assert response["thid"] == THREAD_ID
        assert response["from"] == ISSUER_DID
        assert response["to"] == OWNER_DID
        assert response["body"]["credential"]["id"] == self.credential.id

    async def test_missing_attributes(self):
        for field in ("from", "to"):
            with self.assertRaises(InvalidProtocolMessageError):
                await self.agent.process(envelope(**{field: ""}))
        self.refresh_service.process.assert_not_called()

    async def test_unpack_error(self):
        with self.assertRaises(InvalidProtocolMessageError):
            await self.agent.process(b"not a message")

    async def test_unsupported_type(self):
        with self.assertRaises(UnsupportedMessageTypeError):
            await self.agent.process(
                envelope(type="https://iden3-communication.io/messages/1.0/ping")
            )

    async def test_kind_without_handler(self):
        agent = AgentService(self.package_manager, {})
        with self.assertRaises(UnsupportedMessageTypeError):
            await agent.process(envelope())

    async def test_refresh_error_propagates(self):
        self.refresh_service.process.side_effect = CredentialNotUpdatableError(
            "not expired", reason=NotUpdatableReason.NOT_EXPIRED
        )
        with self.assertRaises(CredentialNotUpdatableError):
            await self.agent.process(envelope())

    async def test_pack_error(self):
        with mock.patch.object(
            self.package_manager,
            "pack",
            mock.CoroutineMock(side_effect=PackerError("boom")),
        ):
            with self.assertRaises(InvalidProtocolResponseError):
                await self.agent.process(envelope())

    async def test_several_credentials_rejected_before_reissue(self):
        issuer_service = mock.MagicMock(
            get_claim_by_id=mock.CoroutineMock(return_value=self.credential),
            create_credential=mock.CoroutineMock(return_value="new-id"),
        )
        agent = AgentService.for_refresh(
            self.package_manager,
            RefreshService(issuer_service, mock.MagicMock(), mock.MagicMock()),
        )
        body = {
            "credentials": [
                {"id": "urn:uuid:e6d0e822-686c-11ee-8afb-3ec1cb517438"},
                {"id": "urn:uuid:0d4b2ab6-6b71-4c8a-9a1f-3f3d7d1b1c55"},
            ]
        }
        with self.assertRaises(InvalidProtocolMessageError):
            await agent.process(envelope(body=body))
        issuer_service.get_claim_by_id.assert_not_awaited()
        issuer_service.create_credential.assert_not_awaited()
