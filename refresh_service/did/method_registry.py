"""Registry of DID methods and the networks they are anchored on."""

from typing import Dict, Iterable, NamedTuple, Sequence, Tuple

from .error import DIDError

METHOD_IDEN3 = "iden3"
METHOD_POLYGONID = "polygonid"


class DIDNetwork(NamedTuple):
    """A DID method on one blockchain network."""

    method: str
    blockchain: str
    network: str
    chain_id: int
    method_byte: int
    network_flag: int

    @property
    def id_type(self) -> bytes:
        """The two type bytes that prefix identifiers on this network."""
        return bytes((self.method_byte, self.network_flag))


def _networks(method: str, method_byte: int) -> Tuple[DIDNetwork, ...]:
    return (
        DIDNetwork(method, "polygon", "main", 137, method_byte, 0x11),
        DIDNetwork(method, "polygon", "mumbai", 80001, method_byte, 0x12),
        DIDNetwork(method, "polygon", "amoy", 80002, method_byte, 0x13),
        DIDNetwork(method, "eth", "main", 1, method_byte, 0x21),
        DIDNetwork(method, "eth", "goerli", 5, method_byte, 0x22),
        DIDNetwork(method, "eth", "sepolia", 11155111, method_byte, 0x23),
        DIDNetwork(method, "zkevm", "main", 1101, method_byte, 0x31),
        DIDNetwork(method, "zkevm", "test", 1442, method_byte, 0x32),
    )


DEFAULT_NETWORKS = _networks(METHOD_IDEN3, 0x01) + _networks(METHOD_POLYGONID, 0x02)


def parse_network(entry: str) -> DIDNetwork:
    """
    Parse `method:blockchain:network=chainId:methodByte:networkFlag`.

    Bytes may be given in decimal or with a `0x` prefix.
    """
    name, sep, values = entry.strip().partition("=")
    names = name.split(":")
    numbers = values.split(":")
    if not sep or len(names) != 3 or len(numbers) != 3 or not all(names):
        raise DIDError(
            f"Invalid DID method network '{entry}', expected "
            "method:blockchain:network=chainId:methodByte:networkFlag"
        )
    try:
        chain_id, method_byte, network_flag = (int(num, 0) for num in numbers)
    except ValueError as err:
        raise DIDError(f"Invalid number in DID method network '{entry}'") from err
    if not 0 <= method_byte <= 0xFF or not 0 <= network_flag <= 0xFF:
        raise DIDError(f"Method byte and network flag must fit a byte: '{entry}'")
    return DIDNetwork(*names, chain_id, method_byte, network_flag)


class MethodRegistry:
    """Known DID methods and networks, used to parse and build DIDs."""

    def __init__(self, networks: Iterable[DIDNetwork] = DEFAULT_NETWORKS):
        """Initialize the registry with a set of networks."""
        self._by_name: Dict[Tuple[str, str, str], DIDNetwork] = {}
        self._by_type: Dict[bytes, DIDNetwork] = {}
        for network in networks:
            self.register(network)

    @classmethod
    def from_settings(cls, entries: Sequence[str] = None) -> "MethodRegistry":
        """Create a registry with the defaults plus configured networks."""
        registry = cls()
        for entry in entries or ():
            registry.register(parse_network(entry))
        return registry

    def register(self, network: DIDNetwork):
        """
        Register a network.

        Re-registering an identical network is allowed.

        Raises:
            DIDError: If the name or type bytes are taken by a different network

        """
        key = (network.method, network.blockchain, network.network)
        for existing in (self._by_name.get(key), self._by_type.get(network.id_type)):
            if existing is not None and existing != network:
                raise DIDError(
                    f"DID network {':'.join(key)} conflicts with registered "
                    f"{existing.method}:{existing.blockchain}:{existing.network}"
                )
        self._by_name[key] = network
        self._by_type[network.id_type] = network

    def by_name(self, method: str, blockchain: str, network: str) -> DIDNetwork:
        """Look up a network by its DID name parts."""
        found = self._by_name.get((method, blockchain, network))
        if found is None:
            raise DIDError(
                f"DID network {method}:{blockchain}:{network} is not supported"
            )
        return found

    def by_type(self, id_type: bytes) -> DIDNetwork:
        """Look up a network by the type bytes of an identifier."""
        found = self._by_type.get(bytes(id_type))
        if found is None:
            raise DIDError(f"Identifier type {bytes(id_type).hex()} is not supported")
        return found
