"""
The Conductor.

The conductor builds the refresh pipeline from the service settings, runs the
inbound transport and releases every outbound client session on shutdown.

"""

import json
import logging
import os

from typing import Mapping

from aiohttp import ClientSession

from ..config.base import BaseSettings
from ..credentials.jsonld import SchemaProcessor, StaticCacheDocumentLoader
from ..did.error import DIDError
from ..did.method_registry import MethodRegistry
from ..issuer.error import IssuerConfigError
from ..issuer.registry import IssuerRegistry
from ..issuer.service import IssuerService
from ..messaging.agent import AgentService
from ..messaging.packers import (
    GROTH16,
    PackageManager,
    PlainMessagePacker,
    ProofVerifier,
    ProvingMethod,
    VerificationParams,
    ZKPPacker,
)
from ..providers.error import ProviderConfigError
from ..providers.factory import FlexibleHTTPFactory
from ..refresh.service import RefreshService
from ..transport.http import HttpTransport
from ..utils.classloader import ClassLoader, ClassNotFoundError, ModuleLoadError
from ..utils.http import create_client_session
from ..verifier.contract import StateContract
from ..verifier.state import (
    AUTH_V2_CIRCUIT,
    DEFAULT_STATE_VALID_DURATION,
    StateVerifier,
)
from .error import StartupError

LOGGER = logging.getLogger(__name__)

VERIFICATION_KEY_FILE = "verification_key.json"


def load_verification_key(keys_path: str, circuit_id: str) -> Mapping:
    """
    Read the verification key of a circuit from `<keys_path>/<circuit>/`.

    Raises:
        StartupError: If the key file is missing or is not a JSON object

    """
    path = os.path.join(keys_path, circuit_id, VERIFICATION_KEY_FILE)
    try:
        with open(path, "r", encoding="utf-8") as key_file:
            key = json.load(key_file)
    except OSError as err:
        raise StartupError(f"Cannot read verification key '{path}'") from err
    except ValueError as err:
        raise StartupError(f"Verification key '{path}' is not valid JSON") from err
    if not isinstance(key, dict):
        raise StartupError(f"Verification key '{path}' must be a JSON object")
    return key


class Conductor:
    """Conductor class.

    Wires the issuer adapter, the data providers, the JSON-LD processor, the
    refresh orchestrator, the packers and the inbound transport together.
    """

    def __init__(self, settings: BaseSettings) -> None:
        """
        Initialize an instance of Conductor.

        Args:
            settings: The service settings

        """
        self.settings = settings
        self.issuer_service: IssuerService = None
        self.providers: FlexibleHTTPFactory = None
        self.document_loader: StaticCacheDocumentLoader = None
        self.rpc_session: ClientSession = None
        self.package_manager: PackageManager = None
        self.agent: AgentService = None
        self.transport: HttpTransport = None

    async def setup(self):
        """
        Build the service components.

        Raises:
            StartupError: If the configuration cannot be applied

        """
        settings = self.settings
        try:
            registry = IssuerRegistry(
                settings["issuer.urls"], settings.get("issuer.basic_auth")
            )
            self.providers = FlexibleHTTPFactory.load_config(
                settings.get("providers.config_path", "config.yaml"),
                timeout=settings.get("providers.timeout"),
            )
            method_registry = MethodRegistry.from_settings(
                settings.get("did.networks")
            )
        except (IssuerConfigError, ProviderConfigError, DIDError) as err:
            raise StartupError("Invalid service configuration") from err

        self.issuer_service = IssuerService(registry)
        self.document_loader = StaticCacheDocumentLoader(
            ipfs_url=settings.get("jsonld.ipfs_url")
        )
        refresh_service = RefreshService(
            self.issuer_service,
            self.providers,
            SchemaProcessor(self.document_loader),
        )

        self.package_manager = PackageManager(PlainMessagePacker())
        if settings.get("verifier.proof_verifier"):
            self.package_manager.register_packers(
                self._build_zkp_packer(method_registry)
            )
        else:
            LOGGER.warning(
                "No proof verifier configured, only plain messages are accepted"
            )

        self.agent = AgentService.for_refresh(self.package_manager, refresh_service)
        self.transport = HttpTransport(
            settings.get("server.host", "localhost"),
            settings.get("server.port", 8002),
            self.agent,
            max_message_size=settings.get("server.max_message_size"),
            request_timeout=settings.get("server.request_timeout"),
        )

    def _build_zkp_packer(self, method_registry: MethodRegistry) -> ZKPPacker:
        settings = self.settings
        class_path = settings["verifier.proof_verifier"]
        try:
            verifier_cls = ClassLoader.load_subclass_of(ProofVerifier, class_path)
        except (ClassNotFoundError, ModuleLoadError) as err:
            raise StartupError(f"Cannot load proof verifier '{class_path}'") from err
        verification_key = load_verification_key(
            settings.get("verifier.keys_path", "/keys"), AUTH_V2_CIRCUIT
        )

        rpc = settings.get("verifier.rpc") or {}
        contracts = {}
        state_contracts = settings.get("verifier.state_contracts") or {}
        for chain_id, address in state_contracts.items():
            if chain_id not in rpc:
                raise StartupError(f"Not supported RPC for blockchain {chain_id}")
            if self.rpc_session is None:
                self.rpc_session = create_client_session()
            contracts[chain_id] = StateContract(
                rpc[chain_id], address, self.rpc_session
            )
        if not contracts:
            LOGGER.warning("No state contracts configured, proofs will be rejected")

        state_verifier = StateVerifier(
            contracts,
            method_registry,
            settings.get("verifier.state_valid_duration")
            or DEFAULT_STATE_VALID_DURATION,
        )
        return ZKPPacker(
            verifier_cls(),
            {
                ProvingMethod(GROTH16, AUTH_V2_CIRCUIT): VerificationParams(
                    verification_key, state_verifier.verify
                )
            },
            method_registry,
        )

    async def start(self) -> None:
        """Start the inbound transport."""
        await self.transport.start()
        LOGGER.info(
            "Refresh service accepting %s", ", ".join(self.package_manager.media_types)
        )

    async def stop(self):
        """Stop the transport and close outbound sessions."""
        if self.transport:
            await self.transport.stop()
        if self.issuer_service:
            await self.issuer_service.close()
        if self.providers:
            await self.providers.close()
        if self.rpc_session:
            await self.rpc_session.close()
            self.rpc_session = None
        if self.document_loader:
            self.document_loader.session.close()
