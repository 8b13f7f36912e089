"""
Services - IndexTank Client

Entry point of the library: index lifecycle on an IndexTank account.
"""

import logging
from typing import List, Optional

import httpx

from indextank.config import get_settings
from indextank.errors import InvalidArgumentError, ProtocolError
from indextank.protocol.classifier import Operation
from indextank.protocol.decoder import parse_json
from indextank.protocol.transport import INDEXES_PATH, Transport
from indextank.services.cache_service import CacheService
from indextank.services.index_service import (
    Index,
    fetch_index_info,
    index_path,
    parse_index_info,
)


logger = logging.getLogger(__name__)


def validate_index_name(index_name: str) -> str:
    if index_name is None:
        raise InvalidArgumentError("The index name is null.")
    if not index_name.strip():
        raise InvalidArgumentError("The index name is empty.")
    if not all(c.isalnum() or c == "_" for c in index_name):
        raise InvalidArgumentError(
            "The index name contains one or more characters that is not "
            "a letter, digit, or underscore (_)."
        )
    return index_name


class IndexTankClient:
    """
    Programmatic access to the indexes of an IndexTank account.

    Usage:
        async with IndexTankClient("http://:secret@xyz.api.indextank.com") as client:
            index = await client.get_index("posts")
            result = await index.search(Query("love").with_fields("title"))
    """

    def __init__(
        self,
        private_url: Optional[str] = None,
        settings=None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = Transport(private_url, self.settings, http_client)
        self.cache = CacheService(self.settings)

    async def __aenter__(self) -> "IndexTankClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    def index(self, index_name: str) -> Index:
        """Handle on an index without fetching its metadata."""
        return Index(validate_index_name(index_name), self.transport, cache=self.cache)

    async def create_index(
        self,
        index_name: str,
        public_search: bool = False,
        did_you_mean: bool = False,
    ) -> Index:
        """
        Create an index, or update the options of an existing one.

        Args:
            index_name: Letters, digits and underscores only
            public_search: Enable the public search API
            did_you_mean: Enable "did you mean" suggestions

        Only options set to True are sent, so calling this on an existing
        index never switches an option off; use Index.update for that.

        Returns:
            The index. A freshly created index is usually not started yet.

        Raises:
            ApiError: if the account already holds its maximum number of indexes
        """
        validate_index_name(index_name)

        options = {}
        if public_search:
            options["public_search"] = True
        if did_you_mean:
            options["did_you_mean"] = True

        response = await self.transport.execute(
            "PUT",
            index_path(index_name),
            Operation.CREATE_INDEX,
            payload=options or None,
        )
        self.cache.invalidate_index(index_name)

        if response.status_code == 201:
            info = parse_index_info(
                parse_json(response, Operation.CREATE_INDEX), Operation.CREATE_INDEX
            )
            logger.info(f"Created index {index_name}")
            return Index(index_name, self.transport, info, self.cache)

        # Index already existed; the options were updated in place
        logger.info(f"Index {index_name} already exists, options updated")
        return await self.get_index(index_name)

    async def get_index(self, index_name: str) -> Index:
        """
        Get an index by name.

        Raises:
            ApiError: if the index does not exist
            ProtocolError: if the service reports the index in error
        """
        validate_index_name(index_name)
        info = await fetch_index_info(self.transport, index_name, self.cache)
        return Index(index_name, self.transport, info, self.cache)

    async def get_indexes(self) -> List[Index]:
        """All indexes of the account."""
        response = await self.transport.execute("GET", INDEXES_PATH, Operation.LIST_INDEXES)
        payload = parse_json(response, Operation.LIST_INDEXES)

        if not isinstance(payload, dict) or not all(isinstance(v, dict) for v in payload.values()):
            raise ProtocolError(
                "An unexpected error occurred. Please ensure the private URL you supplied is correct.",
                response.status_code,
                Operation.LIST_INDEXES,
            )

        # Indexes in error are listed too; only get_index rejects them
        return [
            Index(
                name,
                self.transport,
                parse_index_info(entry, Operation.LIST_INDEXES, check_status=False),
                self.cache,
            )
            for name, entry in payload.items()
        ]

    async def delete_index(self, index_name: str) -> bool:
        """
        Delete an index by name.

        Returns:
            True if the service confirmed the deletion
        """
        validate_index_name(index_name)
        response = await self.transport.execute(
            "DELETE", index_path(index_name), Operation.DELETE_INDEX
        )
        self.cache.invalidate_index(index_name)
        logger.info(f"Deleted index {index_name}")
        return response.status_code in (200, 204)
