"""Basic message envelope and refresh protocol bodies."""

from typing import List, Optional, Sequence

from marshmallow import EXCLUDE, ValidationError, fields, validates_schema

from ..models.base import BaseModel, BaseModelSchema


class BasicMessage(BaseModel):
    """Unpacked protocol message."""

    class Meta:
        """BasicMessage metadata."""

        schema_class = "BasicMessageSchema"

    def __init__(
        self,
        *,
        id: str = None,
        typ: str = None,
        type: str = None,
        thid: str = None,
        body: Optional[dict] = None,
        from_: str = None,
        to: str = None,
        created_time: int = None,
        expires_time: int = None,
    ):
        """Initialize the message."""
        super().__init__()
        self.id = id
        self.typ = typ
        self.type = type
        self.thid = thid
        self.body = body
        self.from_ = from_
        self.to = to
        self.created_time = created_time
        self.expires_time = expires_time


class BasicMessageSchema(BaseModelSchema):
    """Basic message schema."""

    class Meta:
        """BasicMessageSchema metadata."""

        model_class = BasicMessage

    id = fields.Str(required=True)
    typ = fields.Str(required=False, allow_none=True)
    type = fields.Str(required=True)
    thid = fields.Str(required=False, allow_none=True)
    body = fields.Raw(required=False, allow_none=True)
    from_ = fields.Str(data_key="from", required=False, allow_none=True)
    to = fields.Str(required=False, allow_none=True)
    created_time = fields.Int(required=False, allow_none=True)
    expires_time = fields.Int(required=False, allow_none=True)


class RefreshCredentialRef(BaseModel):
    """Reference to one credential a holder asks to refresh."""

    class Meta:
        """RefreshCredentialRef metadata."""

        schema_class = "RefreshCredentialRefSchema"

    def __init__(self, *, id: str = None, description: str = None):
        """Initialize the reference."""
        super().__init__()
        self.id = id
        self.description = description


class RefreshCredentialRefSchema(BaseModelSchema):
    """Refresh credential reference schema."""

    class Meta:
        """RefreshCredentialRefSchema metadata."""

        model_class = RefreshCredentialRef

    id = fields.Str(required=True)
    description = fields.Str(required=False, allow_none=True)


class CredentialRefreshBody(BaseModel):
    """Body of a credential refresh message."""

    class Meta:
        """CredentialRefreshBody metadata."""

        schema_class = "CredentialRefreshBodySchema"

    def __init__(
        self,
        *,
        credentials: Sequence[RefreshCredentialRef] = None,
        reason: str = None,
        id: str = None,
    ):
        """Initialize the refresh body."""
        super().__init__()
        self.credentials = list(credentials) if credentials else []
        self.reason = reason
        self.id = id

    @property
    def credential_ids(self) -> List[str]:
        """Requested credential ids, falling back to the single-id form."""
        if self.credentials:
            return [credential.id for credential in self.credentials]
        return [self.id]


class CredentialRefreshBodySchema(BaseModelSchema):
    """Credential refresh body schema."""

    class Meta:
        """CredentialRefreshBodySchema metadata."""

        model_class = CredentialRefreshBody

    credentials = fields.List(
        fields.Nested(RefreshCredentialRefSchema(unknown=EXCLUDE)), required=False
    )
    reason = fields.Str(required=False, allow_none=True)
    id = fields.Str(required=False, allow_none=True)

    @validates_schema
    def validate_fields(self, data, **kwargs):
        """Require at least one credential reference."""
        if not data.get("credentials") and not data.get("id"):
            raise ValidationError("No credentials to refresh")
