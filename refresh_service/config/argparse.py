"""Command line option parsing."""

import abc

from typing import Type

from configargparse import ArgumentParser, Namespace, YAMLConfigFileParser

from .error import ArgsParseError
from .util import ByteSize, BoundedInt, Duration, KeyValueMap

CAT_START = "start"


class ArgumentGroup(abc.ABC):
    """A class representing a group of related command line arguments."""

    GROUP_NAME = None

    @abc.abstractmethod
    def add_arguments(self, parser: ArgumentParser):
        """Add arguments to the provided argument parser."""

    @abc.abstractmethod
    def get_settings(self, args: Namespace) -> dict:
        """Extract settings from the parsed arguments."""


class group:
    """Decorator for registering argument groups."""

    _registered = []

    def __init__(self, *categories):
        """Initialize the decorator."""
        self.categories = tuple(categories)

    def __call__(self, group_cls: ArgumentGroup):
        """Register a class in the given categories."""
        setattr(group_cls, "CATEGORIES", self.categories)
        self._registered.append((self.categories, group_cls))
        return group_cls

    @classmethod
    def get_registered(cls, category: str = None):
        """Fetch the set of registered classes in a category."""
        return (
            grp
            for (cats, grp) in cls._registered
            if category is None or category in cats
        )


def create_argument_parser(*, prog: str = None):
    """Create am instance of an arg parser, force yaml format for external config."""
    return ArgumentParser(config_file_parser_class=YAMLConfigFileParser, prog=prog)


def load_argument_groups(parser: ArgumentParser, *groups: Type[ArgumentGroup]):
    """
    Log a set of argument groups into a parser.

    Returns:
        A callable to convert loaded arguments into a settings dictionary

    """
    group_inst = []
    for group in groups:
        g_parser = parser.add_argument_group(group.GROUP_NAME)
        inst = group()
        inst.add_arguments(g_parser)
        group_inst.append(inst)

    def get_settings(args: Namespace):
        settings = {}
        try:
            for group in group_inst:
                settings.update(group.get_settings(args))
        except ArgsParseError as e:
            parser.print_help()
            raise e
        return settings

    return get_settings


@group(CAT_START)
class GeneralGroup(ArgumentGroup):
    """General settings."""

    GROUP_NAME = "General"

    def add_arguments(self, parser: ArgumentParser):
        """Add general command line arguments to the parser."""
        parser.add_argument(
            "--arg-file",
            is_config_file=True,
            help=(
                "Load service arguments from the specified file.  Note that "
                "this file *must* be in YAML format."
            ),
        )

    def get_settings(self, args: Namespace) -> dict:
        """Extract general settings."""
        return {}


@group(CAT_START)
class ServerGroup(ArgumentGroup):
    """Inbound server settings."""

    GROUP_NAME = "Server"

    def add_arguments(self, parser: ArgumentParser):
        """Add server-specific command line arguments to the parser."""
        parser.add_argument(
            "--host",
            dest="server_host",
            type=str,
            metavar="<host:port>",
            default="localhost:8002",
            env_var="SERVER_HOST",
            help="Host and port the refresh endpoint listens on.",
        )
        parser.add_argument(
            "--max-message-size",
            dest="max_message_size",
            type=ByteSize(min=1024),
            metavar="<message-size>",
            default="1MB",
            env_var="MAX_MESSAGE_SIZE",
            help="Set the maximum size in bytes for inbound messages.",
        )
        parser.add_argument(
            "--request-timeout",
            dest="request_timeout",
            type=BoundedInt(min=1),
            metavar="<seconds>",
            default=30,
            env_var="REQUEST_TIMEOUT",
            help=(
                "Deadline in seconds for processing one inbound message, "
                "including every outbound call it makes."
            ),
        )

    def get_settings(self, args: Namespace) -> dict:
        """Extract server settings."""
        host, sep, port = (args.server_host or "").rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ArgsParseError(
                f"Invalid server host '{args.server_host}', expected <host:port>"
            )
        return {
            "server.host": host,
            "server.port": int(port),
            "server.max_message_size": args.max_message_size,
            "server.request_timeout": args.request_timeout,
        }


@group(CAT_START)
class IssuerGroup(ArgumentGroup):
    """Issuer node settings."""

    GROUP_NAME = "Issuer"

    def add_arguments(self, parser: ArgumentParser):
        """Add issuer-specific command line arguments to the parser."""
        parser.add_argument(
            "--supported-issuers",
            dest="supported_issuers",
            type=KeyValueMap(),
            metavar="<did=url,...>",
            env_var="SUPPORTED_ISSUERS",
            help=(
                "Issuer node base URLs keyed by issuer DID. Use '*' as the key "
                "for the default issuer node."
            ),
        )
        parser.add_argument(
            "--issuers-basic-auth",
            dest="issuers_basic_auth",
            type=KeyValueMap(),
            metavar="<did=user:password,...>",
            default={},
            env_var="ISSUERS_BASIC_AUTH",
            help=(
                "Basic auth credentials for issuer nodes keyed by issuer DID. "
                "Use '*' as the key for the default credentials."
            ),
        )

    def get_settings(self, args: Namespace) -> dict:
        """Extract issuer settings."""
        if not args.supported_issuers:
            raise ArgsParseError("Parameter --supported-issuers is required")
        return {
            "issuer.urls": args.supported_issuers,
            "issuer.basic_auth": args.issuers_basic_auth or {},
        }


@group(CAT_START)
class ProviderGroup(ArgumentGroup):
    """Data provider settings."""

    GROUP_NAME = "Data providers"

    def add_arguments(self, parser: ArgumentParser):
        """Add provider-specific command line arguments to the parser."""
        parser.add_argument(
            "--http-config-path",
            dest="http_config_path",
            type=str,
            metavar="<path>",
            default="config.yaml",
            env_var="HTTP_CONFIG_PATH",
            help="YAML file describing the data provider for each credential type.",
        )
        parser.add_argument(
            "--provider-timeout",
            dest="provider_timeout",
            type=BoundedInt(min=1),
            metavar="<seconds>",
            default=10,
            env_var="PROVIDER_TIMEOUT",
            help="Total timeout in seconds for one call to a data provider.",
        )
        parser.add_argument(
            "--ipfs-url",
            dest="ipfs_url",
            type=str,
            metavar="<url>",
            env_var="IPFS_URL",
            help="IPFS HTTP API used to load 'ipfs://' JSON-LD contexts.",
        )

    def get_settings(self, args: Namespace) -> dict:
        """Extract provider settings."""
        settings = {
            "providers.config_path": args.http_config_path,
            "providers.timeout": args.provider_timeout,
        }
        if args.ipfs_url:
            settings["jsonld.ipfs_url"] = args.ipfs_url
        return settings


@group(CAT_START)
class VerifierGroup(ArgumentGroup):
    """Proof verification settings."""

    GROUP_NAME = "Verifier"

    def add_arguments(self, parser: ArgumentParser):
        """Add verifier-specific command line arguments to the parser."""
        parser.add_argument(
            "--supported-rpc",
            dest="supported_rpc",
            type=KeyValueMap(),
            metavar="<chainId=url,...>",
            default={},
            env_var="SUPPORTED_RPC",
            help="JSON-RPC endpoints keyed by chain id.",
        )
        parser.add_argument(
            "--supported-state-contracts",
            dest="supported_state_contracts",
            type=KeyValueMap(),
            metavar="<chainId=address,...>",
            default={},
            env_var="SUPPORTED_STATE_CONTRACTS",
            help="Identity state contract addresses keyed by chain id.",
        )
        parser.add_argument(
            "--circuits-folder-path",
            dest="circuits_folder_path",
            type=str,
            metavar="<path>",
            default="/keys",
            env_var="CIRCUITS_FOLDER_PATH",
            help="Folder holding 'authV2/verification_key.json'.",
        )
        parser.add_argument(
            "--global-state-valid-duration",
            dest="global_state_valid_duration",
            type=Duration(),
            metavar="<duration>",
            default="15m",
            env_var="GLOBAL_STATE_VALID_DURATION",
            help=(
                "How long a replaced global state root is still accepted, "
                "for example '15m' or '1h'."
            ),
        )
        parser.add_argument(
            "--proof-verifier",
            dest="proof_verifier",
            type=str,
            metavar="<module.Class>",
            env_var="PROOF_VERIFIER",
            help=(
                "Class path of the zk-SNARK proof verifier. When omitted only "
                "plain messages are accepted."
            ),
        )
        parser.add_argument(
            "--did-method-network",
            dest="did_method_networks",
            type=str,
            action="append",
            metavar="<method:blockchain:network=chainId:methodByte:networkFlag>",
            env_var="DID_METHOD_NETWORKS",
            help=(
                "Register an additional DID method network, for example "
                "'polygonid:linea:testnet=59141:0x02:0x48'. May be repeated."
            ),
        )

    def get_settings(self, args: Namespace) -> dict:
        """Extract verifier settings."""
        rpc = {}
        for chain_id, url in (args.supported_rpc or {}).items():
            if not chain_id.isdigit():
                raise ArgsParseError(f"Invalid chain id '{chain_id}'")
            rpc[int(chain_id)] = url
        contracts = {}
        for chain_id, address in (args.supported_state_contracts or {}).items():
            if not chain_id.isdigit():
                raise ArgsParseError(f"Invalid chain id '{chain_id}'")
            if int(chain_id) not in rpc:
                raise ArgsParseError(f"Not supported RPC for blockchain {chain_id}")
            contracts[int(chain_id)] = address
        settings = {
            "verifier.rpc": rpc,
            "verifier.state_contracts": contracts,
            "verifier.keys_path": args.circuits_folder_path,
            "verifier.state_valid_duration": args.global_state_valid_duration,
        }
        if args.proof_verifier:
            settings["verifier.proof_verifier"] = args.proof_verifier
        if args.did_method_networks:
            networks = []
            for entry in args.did_method_networks:
                networks.extend(item for item in entry.split(",") if item.strip())
            settings["did.networks"] = networks
        return settings


@group(CAT_START)
class LoggingGroup(ArgumentGroup):
    """Logging settings."""

    GROUP_NAME = "Logging"

    def add_arguments(self, parser: ArgumentParser):
        """Add logging-specific command line arguments to the parser."""
        parser.add_argument(
            "--log-config",
            dest="log_config",
            type=str,
            metavar="<path-to-config>",
            default=None,
            env_var="LOG_CONFIG",
            help="Specifies a custom YAML logging configuration file",
        )
        parser.add_argument(
            "--log-file",
            dest="log_file",
            type=str,
            metavar="<log-file>",
            default=None,
            env_var="LOG_FILE",
            help="Also write JSON formatted log records to the named <log-file>.",
        )
        parser.add_argument(
            "--log-level",
            dest="log_level",
            type=str,
            metavar="<log-level>",
            default=None,
            env_var="LOG_LEVEL",
            help=(
                "Specifies a custom logging level as one of: "
                "('debug', 'info', 'warning', 'error', 'critical')"
            ),
        )

    def get_settings(self, args: Namespace) -> dict:
        """Extract logging settings."""
        settings = {}
        if args.log_config:
            settings["log.config"] = args.log_config
        if args.log_file:
            settings["log.file"] = args.log_file
        if args.log_level:
            settings["log.level"] = args.log_level
        return settings
