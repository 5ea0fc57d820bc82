"""Client for the on-chain identity state contract."""

import asyncio
import itertools
import logging

from typing import NamedTuple

from aiohttp import ClientError, ClientSession
from eth_hash.auto import keccak

from .error import StateContractError

LOGGER = logging.getLogger(__name__)

WORD_SIZE = 32
GET_GIST_ROOT_INFO = "getGISTRootInfo(uint256)"


def function_selector(signature: str) -> bytes:
    """Return the 4-byte ABI selector of a contract function."""
    return keccak(signature.encode("ascii"))[:4]


class GistRootInfo(NamedTuple):
    """Global identity state tree root info as stored by the state contract."""

    root: int
    replaced_by_root: int
    created_at_timestamp: int
    replaced_at_timestamp: int
    created_at_block: int
    replaced_at_block: int

    @classmethod
    def decode(cls, data: bytes) -> "GistRootInfo":
        """Decode the ABI encoded return value of `getGISTRootInfo`."""
        size = len(cls._fields) * WORD_SIZE
        if len(data) < size:
            raise StateContractError(
                f"GIST root info must be {size} bytes, got {len(data)}"
            )
        return cls(
            *(
                int.from_bytes(data[offset : offset + WORD_SIZE], "big")
                for offset in range(0, size, WORD_SIZE)
            )
        )


class StateContract:
    """Read-only JSON-RPC access to a state contract on one chain."""

    _request_ids = itertools.count(1)

    def __init__(self, rpc_url: str, address: str, session: ClientSession):
        """
        Initialize the contract client.

        Args:
            rpc_url: the JSON-RPC endpoint of the chain
            address: the state contract address
            session: client session used for RPC calls

        """
        self.rpc_url = rpc_url
        self.address = address
        self.session = session

    async def call(self, data: bytes) -> bytes:
        """Perform an `eth_call` against the latest block."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": "eth_call",
            "params": [{"to": self.address, "data": "0x" + data.hex()}, "latest"],
        }
        try:
            async with self.session.post(self.rpc_url, json=payload) as response:
                if response.status != 200:
                    raise StateContractError(
                        f"RPC node returned status code {response.status}"
                    )
                body = await response.json(content_type=None)
        except (ClientError, asyncio.TimeoutError) as err:
            raise StateContractError("RPC node is unavailable") from err
        except ValueError as err:
            raise StateContractError("RPC node returned invalid JSON") from err

        if not isinstance(body, dict):
            raise StateContractError("RPC node returned an invalid response")
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise StateContractError(f"eth_call failed: {message}")
        result = body.get("result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise StateContractError("RPC node returned no call result")
        try:
            return bytes.fromhex(result[2:])
        except ValueError as err:
            raise StateContractError("RPC node returned a malformed result") from err

    async def get_gist_root_info(self, root: int) -> GistRootInfo:
        """Fetch the GIST root info for a root."""
        LOGGER.debug("Fetching GIST root info for %s from %s", root, self.address)
        if not 0 <= root < 1 << (8 * WORD_SIZE):
            raise StateContractError(f"root {root} does not fit a uint256")
        data = function_selector(GET_GIST_ROOT_INFO) + root.to_bytes(WORD_SIZE, "big")
        return GistRootInfo.decode(await self.call(data))
