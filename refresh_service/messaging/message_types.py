"""Message type and media type identifiers."""

PROTOCOL_URI = "https://iden3-communication.io"

CREDENTIAL_REFRESH = f"{PROTOCOL_URI}/credentials/1.0/refresh"
CREDENTIAL_ISSUANCE_RESPONSE = f"{PROTOCOL_URI}/credentials/1.0/issuance-response"

MEDIA_TYPE_PLAIN_MESSAGE = "application/iden3comm-plain-json"
MEDIA_TYPE_ZKP_MESSAGE = "application/iden3-zkp-json"
