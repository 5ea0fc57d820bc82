from datetime import timedelta
from unittest import TestCase

from ...tests import mock
from .. import argparse
from ..error import ArgsParseError


class TestArgParse(TestCase):
    def parse(self, group_cls, args):
        parser = argparse.create_argument_parser()
        group = group_cls()
        group.add_arguments(parser)
        return group.get_settings(parser.parse_args(args))

    def test_groups(self):
        """Test optional argument parsing."""
        parser = argparse.create_argument_parser()
        get_settings = argparse.load_argument_groups(
            parser, *argparse.group.get_registered(argparse.CAT_START)
        )
        settings = get_settings(
            parser.parse_args(["--supported-issuers", "*=http://issuer:3001"])
        )

        assert settings["server.host"] == "localhost"
        assert settings["server.port"] == 8002
        assert settings["server.max_message_size"] == 1 << 20
        assert settings["server.request_timeout"] == 30
        assert settings["issuer.basic_auth"] == {}
        assert settings["providers.config_path"] == "config.yaml"
        assert settings["providers.timeout"] == 10
        assert settings["verifier.keys_path"] == "/keys"
        assert settings["verifier.state_valid_duration"] == timedelta(minutes=15)
        assert "verifier.proof_verifier" not in settings
        assert "jsonld.ipfs_url" not in settings

    def test_help(self):
        parser = argparse.create_argument_parser()
        argparse.ServerGroup().add_arguments(parser)
        with mock.patch.object(parser, "exit") as exit_parser:
            parser.parse_args(["-h"])
            exit_parser.assert_called_once()

    def test_server_settings(self):
        settings = self.parse(
            argparse.ServerGroup,
            ["--host", "0.0.0.0:9000", "--max-message-size", "2MB"],
        )
        assert settings["server.host"] == "0.0.0.0"
        assert settings["server.port"] == 9000
        assert settings["server.max_message_size"] == 2 << 20

        for host in ("localhost", ":8002", "localhost:port"):
            with self.assertRaises(ArgsParseError):
                self.parse(argparse.ServerGroup, ["--host", host])

    def test_issuer_settings(self):
        settings = self.parse(
            argparse.IssuerGroup,
            [
                "--supported-issuers",
                "did:iden3:polygon:amoy:x7Z=http://node-a,*=http://node-b",
                "--issuers-basic-auth",
                "*=user:password",
            ],
        )
        assert settings["issuer.urls"] == {
            "did:iden3:polygon:amoy:x7Z": "http://node-a",
            "*": "http://node-b",
        }
        assert settings["issuer.basic_auth"] == {"*": "user:password"}

        with self.assertRaises(ArgsParseError):
            self.parse(argparse.IssuerGroup, [])
        with self.assertRaises(SystemExit):
            self.parse(argparse.IssuerGroup, ["--supported-issuers", "a=b=c"])

    def test_provider_settings(self):
        settings = self.parse(
            argparse.ProviderGroup,
            [
                "--http-config-path",
                "/etc/refresh/providers.yaml",
                "--provider-timeout",
                "5",
                "--ipfs-url",
                "http://ipfs:5001",
            ],
        )
        assert settings == {
            "providers.config_path": "/etc/refresh/providers.yaml",
            "providers.timeout": 5,
            "jsonld.ipfs_url": "http://ipfs:5001",
        }

    def test_verifier_settings(self):
        settings = self.parse(
            argparse.VerifierGroup,
            [
                "--supported-rpc",
                "80001=https://rpc-mumbai,80002=https://rpc-amoy",
                "--supported-state-contracts",
                "80001=0x134B1BE34911E39A8397ec6289782989729807a4",
                "--global-state-valid-duration",
                "1h",
                "--proof-verifier",
                "verifiers.Groth16Verifier",
                "--did-method-network",
                "polygonid:linea:testnet=59141:0x02:0x48",
            ],
        )
        assert settings["verifier.rpc"] == {
            80001: "https://rpc-mumbai",
            80002: "https://rpc-amoy",
        }
        assert settings["verifier.state_contracts"] == {
            80001: "0x134B1BE34911E39A8397ec6289782989729807a4"
        }
        assert settings["verifier.state_valid_duration"] == timedelta(hours=1)
        assert settings["verifier.proof_verifier"] == "verifiers.Groth16Verifier"
        assert settings["did.networks"] == ["polygonid:linea:testnet=59141:0x02:0x48"]

    def test_verifier_contract_without_rpc(self):
        with self.assertRaises(ArgsParseError):
            self.parse(
                argparse.VerifierGroup,
                [
                    "--supported-state-contracts",
                    "137=0x624ce98D2d27b20b8f8d521723Df8fC4db71D79D",
                ],
            )
        with self.assertRaises(ArgsParseError):
            self.parse(argparse.VerifierGroup, ["--supported-rpc", "main=http://rpc"])

    def test_logging_settings(self):
        settings = self.parse(
            argparse.LoggingGroup,
            ["--log-level", "debug", "--log-file", "service.log"],
        )
        assert settings == {"log.level": "debug", "log.file": "service.log"}
