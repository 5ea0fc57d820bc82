import pytest

# environment variables read by the argument parser
SERVICE_ENV_VARS = (
    "SERVER_HOST",
    "MAX_MESSAGE_SIZE",
    "REQUEST_TIMEOUT",
    "SUPPORTED_ISSUERS",
    "ISSUERS_BASIC_AUTH",
    "HTTP_CONFIG_PATH",
    "PROVIDER_TIMEOUT",
    "IPFS_URL",
    "SUPPORTED_RPC",
    "SUPPORTED_STATE_CONTRACTS",
    "CIRCUITS_FOLDER_PATH",
    "GLOBAL_STATE_VALID_DURATION",
    "PROOF_VERIFIER",
    "DID_METHOD_NETWORKS",
    "LOG_CONFIG",
    "LOG_FILE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch):
    for name in SERVICE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
