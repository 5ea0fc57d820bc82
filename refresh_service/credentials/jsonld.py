"""JSON-LD document loading and schema processing for credentials."""

import json
import logging
import threading

from importlib import resources
from typing import Dict, List, Optional, Sequence, Union
from urllib.parse import parse_qsl

import requests
from pyld import jsonld

from ..version import __version__
from .error import JsonLdError, SerializationFieldError
from .models import CREDENTIALS_CONTEXT_V1_URL

LOGGER = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"
SERIALIZATION_KEY = "iden3_serialization"
SERIALIZATION_PREFIX = "iden3:v1:"
SLOT_INDEXES = {
    "slotIndexA": 2,
    "slotIndexB": 3,
    "slotValueA": 6,
    "slotValueB": 7,
}


def _load_jsonld_file(
    original_url: str, filename: str, resource_path: str = f"{__package__}.resources"
) -> dict:
    """Load a bundled context in the format used by the pyld document loader."""
    return {
        "contentType": "application/ld+json",
        "contextUrl": None,
        "documentUrl": original_url,
        "document": json.loads(
            (resources.files(resource_path) / filename).read_text(encoding="utf-8")
        ),
    }


class StaticCacheDocumentLoader:
    """Document loader with bundled copies of well known contexts.

    Remote documents are cached per loader after the first successful fetch.
    """

    CONTEXT_FILE_MAPPING = {
        CREDENTIALS_CONTEXT_V1_URL: "credentials_context.jsonld",
    }

    def __init__(
        self,
        *,
        ipfs_url: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """Load static documents on initialization."""
        self.ipfs_url = ipfs_url.rstrip("/") if ipfs_url else None
        self.timeout = timeout
        self.session = session or requests.Session()
        self._lock = threading.Lock()
        self.cache = {
            url: _load_jsonld_file(url, filename)
            for url, filename in self.CONTEXT_FILE_MAPPING.items()
        }

    def __call__(self, url: str, options: Optional[dict] = None) -> dict:
        """Load a document, for use as a pyld `documentLoader`."""
        return self.load(url, options)

    def load(self, url: str, options: Optional[dict] = None) -> dict:
        """Load a JSON-LD document from URL, preferring the local cache."""
        with self._lock:
            cached = self.cache.get(url)
        if cached is not None:
            LOGGER.debug("Local cache hit for context: %s", url)
            return cached

        if url.startswith(IPFS_SCHEME):
            document = self._load_ipfs(url)
        elif url.startswith("http://") or url.startswith("https://"):
            document = self._load_http(url, options)
        else:
            raise JsonLdError(
                f"Unrecognized url format '{url}'. Must start with "
                "'ipfs://', 'http://' or 'https://'"
            )

        with self._lock:
            self.cache[url] = document
        return document

    def _load_http(self, url: str, options: Optional[dict]) -> dict:
        headers = dict(
            (options or {}).get("headers")
            or {"Accept": "application/ld+json, application/json"}
        )
        headers["User-Agent"] = f"RefreshService/{__version__}"
        LOGGER.debug("Context %s not in static cache, resolving from URL.", url)
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return {
                "contentType": response.headers.get(
                    "content-type", "application/octet-stream"
                ),
                "contextUrl": None,
                "documentUrl": response.url,
                "document": response.json(),
            }
        except (requests.RequestException, ValueError) as err:
            raise JsonLdError(f"Could not retrieve JSON-LD document '{url}'") from err

    def _load_ipfs(self, url: str) -> dict:
        if not self.ipfs_url:
            raise JsonLdError(f"IPFS URL is not configured, cannot load '{url}'")
        cid = url[len(IPFS_SCHEME) :]
        LOGGER.debug("Loading context %s from IPFS node %s", cid, self.ipfs_url)
        try:
            response = self.session.post(
                f"{self.ipfs_url}/api/v0/cat",
                params={"arg": cid},
                timeout=self.timeout,
            )
            response.raise_for_status()
            document = response.json()
        except (requests.RequestException, ValueError) as err:
            raise JsonLdError(f"Could not retrieve IPFS document '{url}'") from err
        return {
            "contentType": "application/ld+json",
            "contextUrl": None,
            "documentUrl": url,
            "document": document,
        }


class SchemaProcessor:
    """JSON-LD helpers used to reason about a credential's claim layout."""

    def __init__(self, document_loader: StaticCacheDocumentLoader):
        """Initialize the processor with a document loader."""
        self.document_loader = document_loader

    def type_id_from_context(
        self, context: Sequence[Union[str, dict]], type_name: str
    ) -> str:
        """
        Expand a credential subject type name to its full type IRI.

        Args:
            context: the `@context` of the credential
            type_name: the compact type name declared by the credential subject

        """
        try:
            expanded = jsonld.expand(
                {"@context": list(context), "@type": type_name},
                {"documentLoader": self.document_loader},
            )
        except jsonld.JsonLdError as err:
            raise JsonLdError(f"Failed to expand type '{type_name}'") from err

        types = expanded[0].get("@type", []) if expanded else []
        if not types or ":" not in types[0]:
            raise JsonLdError(f"Type '{type_name}' is not defined by the context")
        return types[0]

    def load_contexts(self, context_urls: Sequence[str]) -> dict:
        """Merge the `@context` of each remote document into one context document."""
        merged = []
        for url in context_urls:
            document = self.document_loader.load(url).get("document")
            if isinstance(document, str):
                try:
                    document = json.loads(document)
                except ValueError as err:
                    raise JsonLdError(f"Invalid context document '{url}'") from err
            if not isinstance(document, dict):
                raise JsonLdError(f"Invalid context document '{url}'")
            if "@context" not in document:
                raise JsonLdError(f"@context key word not found in '{url}'")
            ld_context = document["@context"]
            if isinstance(ld_context, list):
                merged.extend(ld_context)
            else:
                merged.append(ld_context)
        return {"@context": merged}

    def field_slot_index(
        self, field: str, type_name: str, context_document: dict
    ) -> int:
        """
        Return the core claim slot a non-merklized field is serialized into.

        Raises:
            SerializationFieldError: If the type has no serialization info or the
                field is not mapped by it
            JsonLdError: If the type is not defined by the context

        """
        type_definition = self._find_type_definition(type_name, context_document)
        scoped = type_definition.get("@context") or {}
        serialization = (
            scoped.get(SERIALIZATION_KEY) if isinstance(scoped, dict) else None
        )
        if not serialization:
            raise SerializationFieldError(
                f"type '{type_name}' has no serialization info"
            )
        for slot, mapped_field in _parse_serialization(serialization).items():
            if mapped_field == field:
                return SLOT_INDEXES[slot]
        raise SerializationFieldError(
            f"field '{field}' not specified in serialization info"
        )

    @staticmethod
    def _find_type_definition(type_name: str, context_document: dict) -> dict:
        ld_context = context_document.get("@context", [])
        entries: List = ld_context if isinstance(ld_context, list) else [ld_context]
        found = None
        for entry in entries:
            if isinstance(entry, dict) and isinstance(entry.get(type_name), dict):
                found = entry[type_name]
        if found is None:
            raise JsonLdError(f"type '{type_name}' not found in context")
        return found


def _parse_serialization(serialization: str) -> Dict[str, str]:
    if not serialization.startswith(SERIALIZATION_PREFIX):
        raise JsonLdError(f"unsupported serialization info '{serialization}'")
    slots = {}
    for slot, field in parse_qsl(serialization[len(SERIALIZATION_PREFIX) :]):
        if slot not in SLOT_INDEXES:
            raise JsonLdError(f"unknown serialization slot '{slot}'")
        slots[slot] = field
    return slots
