"""W3C verifiable credential models."""

from datetime import datetime
from typing import List, Optional, Union

from dateutil import parser as date_parser
from marshmallow import INCLUDE, fields, post_dump

from ..models.base import BaseModel, BaseModelSchema
from .error import CredentialError

CREDENTIALS_CONTEXT_V1_URL = "https://www.w3.org/2018/credentials/v1"
VERIFIABLE_CREDENTIAL_TYPE = "VerifiableCredential"


class W3CCredential(BaseModel):
    """Verifiable credential as returned by an issuer node."""

    class Meta:
        """W3CCredential metadata."""

        schema_class = "W3CCredentialSchema"

    def __init__(
        self,
        *,
        context: Optional[List[Union[str, dict]]] = None,
        id: Optional[str] = None,
        type: Optional[List[str]] = None,
        issuer: Optional[Union[str, dict]] = None,
        issuance_date: Optional[str] = None,
        expiration_date: Optional[str] = None,
        credential_subject: Optional[dict] = None,
        credential_status: Optional[dict] = None,
        credential_schema: Optional[dict] = None,
        refresh_service: Optional[dict] = None,
        proof: Optional[Union[dict, List[dict]]] = None,
        **kwargs,
    ):
        """Initialize the W3CCredential instance."""
        super().__init__()
        self.context = context or [CREDENTIALS_CONTEXT_V1_URL]
        self.id = id
        self.type = type or [VERIFIABLE_CREDENTIAL_TYPE]
        self.issuer = issuer
        self.issuance_date = issuance_date
        self.expiration_date = expiration_date
        self.credential_subject = credential_subject or {}
        self.credential_status = credential_status
        self.credential_schema = credential_schema
        self.refresh_service = refresh_service
        self.proof = proof
        self.extra = kwargs

    @property
    def context_urls(self) -> List[str]:
        """Getter for the context entries that are remote document references."""
        return [context for context in self.context if isinstance(context, str)]

    @property
    def expiration(self) -> Optional[datetime]:
        """Expiration date as an aware datetime, or None if the credential has none."""
        if not self.expiration_date:
            return None
        try:
            return date_parser.isoparse(self.expiration_date)
        except ValueError as err:
            raise CredentialError(
                f"Invalid expiration date '{self.expiration_date}'"
            ) from err

    @property
    def subject_id(self) -> str:
        """Identifier of the credential owner."""
        return self.credential_subject.get("id") or ""

    @property
    def subject_type(self) -> str:
        """Declared JSON-LD type of the credential subject."""
        subject_type = self.credential_subject.get("type")
        if not isinstance(subject_type, str) or not subject_type:
            raise CredentialError("credential subject does not declare a type")
        return subject_type

    @property
    def schema_id(self) -> Optional[str]:
        """Identifier of the credential schema."""
        return (self.credential_schema or {}).get("id")

    @property
    def proofs(self) -> List[dict]:
        """Getter for the credential proofs as a list."""
        if not self.proof:
            return []
        if isinstance(self.proof, dict):
            return [self.proof]
        return list(self.proof)


class W3CCredentialSchema(BaseModelSchema):
    """W3C verifiable credential schema."""

    class Meta:
        """Accept and keep unknown properties."""

        unknown = INCLUDE
        model_class = W3CCredential

    id = fields.Str(required=False, allow_none=True)
    context = fields.List(fields.Raw(), data_key="@context", required=True)
    type = fields.List(fields.Str(), required=True)
    issuer = fields.Raw(required=False, allow_none=True)
    issuance_date = fields.Str(data_key="issuanceDate", allow_none=True)
    expiration_date = fields.Str(data_key="expirationDate", allow_none=True)
    credential_subject = fields.Dict(data_key="credentialSubject", required=True)
    credential_status = fields.Raw(data_key="credentialStatus", allow_none=True)
    credential_schema = fields.Dict(data_key="credentialSchema", allow_none=True)
    refresh_service = fields.Dict(data_key="refreshService", allow_none=True)
    proof = fields.Raw(allow_none=True)

    @post_dump(pass_original=True)
    def add_unknown_properties(self, data: dict, original, **kwargs):
        """Add back unknown properties before outputting."""
        data.update(original.extra)
        return data


class CredentialRequest(BaseModel):
    """Request body for creating a credential on an issuer node."""

    class Meta:
        """CredentialRequest metadata."""

        schema_class = "CredentialRequestSchema"

    def __init__(
        self,
        *,
        credential_schema: str = None,
        type: str = None,
        credential_subject: dict = None,
        expiration: int = None,
        refresh_service: Optional[dict] = None,
        rev_nonce: Optional[int] = None,
    ):
        """Initialize the CredentialRequest instance."""
        super().__init__()
        self.credential_schema = credential_schema
        self.type = type
        self.credential_subject = credential_subject
        self.expiration = expiration
        self.refresh_service = refresh_service
        self.rev_nonce = rev_nonce


class CredentialRequestSchema(BaseModelSchema):
    """Credential creation request schema."""

    class Meta:
        """CredentialRequestSchema metadata."""

        model_class = CredentialRequest

    credential_schema = fields.Str(data_key="credentialSchema", required=True)
    type = fields.Str(required=True)
    credential_subject = fields.Dict(data_key="credentialSubject", required=True)
    expiration = fields.Int(required=True)
    refresh_service = fields.Dict(data_key="refreshService", allow_none=True)
    rev_nonce = fields.Int(data_key="revNonce", allow_none=True)
