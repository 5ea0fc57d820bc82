"""Declarative data provider configuration."""

from datetime import timedelta
from typing import Mapping, Optional

from marshmallow import EXCLUDE, ValidationError, fields, validate

from ..models.base import BaseModel, BaseModelSchema
from ..utils.duration import parse_duration

RESPONSE_TYPE_JSON = "json"
RESPONSE_TYPE_YAML = "yaml"


class DurationField(fields.Field):
    """Duration given as `720h`, `15m` or a number of seconds."""

    default_error_messages = {"invalid": "Not a valid duration."}

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return f"{int(value.total_seconds())}s"

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return parse_duration(value)
        except ValueError as err:
            raise ValidationError(self.error_messages["invalid"]) from err


class ProviderSettings(BaseModel):
    """Settings applied to credentials refreshed from a provider."""

    class Meta:
        """ProviderSettings metadata."""

        schema_class = "ProviderSettingsSchema"

    def __init__(self, *, time_expiration: timedelta = None):
        """Initialize the provider settings."""
        super().__init__()
        self.time_expiration = time_expiration


class ProviderSettingsSchema(BaseModelSchema):
    """Provider settings schema."""

    class Meta:
        """ProviderSettingsSchema metadata."""

        model_class = ProviderSettings

    time_expiration = DurationField(data_key="timeExpiration", required=True)


class ProviderEndpoint(BaseModel):
    """Where and how to call the data provider."""

    class Meta:
        """ProviderEndpoint metadata."""

        schema_class = "ProviderEndpointSchema"

    def __init__(self, *, url: str = None, method: str = None):
        """Initialize the provider endpoint."""
        super().__init__()
        self.url = url
        self.method = method


class ProviderEndpointSchema(BaseModelSchema):
    """Provider endpoint schema."""

    class Meta:
        """ProviderEndpointSchema metadata."""

        model_class = ProviderEndpoint

    url = fields.Str(required=True, validate=validate.Length(min=1))
    method = fields.Str(load_default="GET")


class RequestTemplate(BaseModel):
    """Query parameters and headers added to a provider request."""

    class Meta:
        """RequestTemplate metadata."""

        schema_class = "RequestTemplateSchema"

    def __init__(
        self, *, params: Optional[dict] = None, headers: Optional[dict] = None
    ):
        """Initialize the request template."""
        super().__init__()
        self.params = params or {}
        self.headers = headers or {}


class RequestTemplateSchema(BaseModelSchema):
    """Request template schema."""

    class Meta:
        """RequestTemplateSchema metadata."""

        model_class = RequestTemplate

    params = fields.Dict(keys=fields.Str(), values=fields.Raw(), required=False)
    headers = fields.Dict(keys=fields.Str(), values=fields.Str(), required=False)


class MatchedField(BaseModel):
    """Target type and subject field for a value found in a response."""

    class Meta:
        """MatchedField metadata."""

        schema_class = "MatchedFieldSchema"

    def __init__(self, *, type: str = None, match: str = None):
        """Initialize the matched field."""
        super().__init__()
        self.type = type
        self.match = match


class MatchedFieldSchema(BaseModelSchema):
    """Matched field schema."""

    class Meta:
        """MatchedFieldSchema metadata."""

        model_class = MatchedField

    type = fields.Str(required=True)
    match = fields.Str(required=True)


class ResponseTemplate(BaseModel):
    """Shape of a provider response."""

    class Meta:
        """ResponseTemplate metadata."""

        schema_class = "ResponseTemplateSchema"

    def __init__(
        self,
        *,
        type: str = RESPONSE_TYPE_JSON,
        properties: Mapping[str, MatchedField] = None,
    ):
        """Initialize the response template."""
        super().__init__()
        self.type = type
        self.properties = properties or {}


class ResponseTemplateSchema(BaseModelSchema):
    """Response template schema."""

    class Meta:
        """ResponseTemplateSchema metadata."""

        model_class = ResponseTemplate

    type = fields.Str(
        required=False,
        load_default=RESPONSE_TYPE_JSON,
        validate=validate.OneOf([RESPONSE_TYPE_JSON, RESPONSE_TYPE_YAML]),
    )
    properties = fields.Dict(
        keys=fields.Str(),
        values=fields.Nested(MatchedFieldSchema(unknown=EXCLUDE)),
        required=True,
    )


class ProviderConfig(BaseModel):
    """Data provider configuration for one credential type."""

    class Meta:
        """ProviderConfig metadata."""

        schema_class = "ProviderConfigSchema"

    def __init__(
        self,
        *,
        settings: ProviderSettings = None,
        provider: ProviderEndpoint = None,
        request_schema: RequestTemplate = None,
        response_schema: ResponseTemplate = None,
    ):
        """Initialize the provider configuration."""
        super().__init__()
        self.settings = settings
        self.provider = provider
        self.request_schema = request_schema or RequestTemplate()
        self.response_schema = response_schema


class ProviderConfigSchema(BaseModelSchema):
    """Provider configuration schema."""

    class Meta:
        """ProviderConfigSchema metadata."""

        model_class = ProviderConfig

    settings = fields.Nested(ProviderSettingsSchema(unknown=EXCLUDE), required=True)
    provider = fields.Nested(ProviderEndpointSchema(unknown=EXCLUDE), required=True)
    request_schema = fields.Nested(
        RequestTemplateSchema(unknown=EXCLUDE),
        data_key="requestSchema",
        required=False,
    )
    response_schema = fields.Nested(
        ResponseTemplateSchema(unknown=EXCLUDE),
        data_key="responseSchema",
        required=True,
    )
