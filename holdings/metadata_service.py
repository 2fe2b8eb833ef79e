import aiohttp
import asyncio
import hashlib
import logging
from core.redis.providers import CacheService
from holdings.entities import AccountSnapshot, SnapshotError


class TokenMetadataService:
    """
    Service for fetching ERC-721 token metadata documents.

    Runs as an optional stage after the snapshot is built; it only fills
    ``token_name``, ``image_url`` and ``description`` of owned tokens.

    Parameters
    ----------
    cache_service : CacheService
        Cache service for storing metadata documents
    logger : logging.Logger
        Logger instance
    ipfs_gateway : str
        HTTP gateway prefix for ipfs:// URIs
    timeout : float
        Per-request timeout in seconds
    concurrency : int
        Maximum number of requests in flight
    cache_ttl : int
        Seconds a metadata document stays cached
    """

    def __init__(
        self,
        cache_service: CacheService,
        logger: logging.Logger,
        ipfs_gateway: str = "https://ipfs.io/ipfs/",
        timeout: float = 10.0,
        concurrency: int = 8,
        cache_ttl: int = 86400
    ):
        self.cache = cache_service
        self.logger = logger
        self.ipfs_gateway = ipfs_gateway
        self.timeout = timeout
        self.concurrency = max(1, concurrency)
        self.cache_ttl = cache_ttl

    def resolve_uri(self, token_uri: str) -> str | None:
        """
        Turn a token URI into a fetchable HTTP(S) URL.

        Parameters
        ----------
        token_uri : str
            URI returned by tokenURI()

        Returns
        -------
        str | None
            URL, or None for schemes that cannot be fetched
        """
        uri = token_uri.strip()
        if uri.startswith("ipfs://"):
            path = uri[len("ipfs://"):]
            if path.startswith("ipfs/"):
                path = path[len("ipfs/"):]
            return self.ipfs_gateway.rstrip("/") + "/" + path
        if uri.startswith(("http://", "https://")):
            return uri
        return None

    async def get_token_metadata(self, token_uri: str) -> dict[str, any] | None:
        """
        Get the metadata document behind a token URI from cache or network.

        Parameters
        ----------
        token_uri : str
            Token URI

        Returns
        -------
        dict[str, any] | None
            ``{"name", "image", "description"}`` or None if the URI is not fetchable
        """
        url = self.resolve_uri(token_uri)
        if url is None:
            self.logger.debug(f"Skipping metadata for unsupported URI {token_uri[:64]}")
            return None

        cache_key = CacheService.make_key("token_metadata", hashlib.md5(url.encode()).hexdigest())
        cached = await self.cache.get(cache_key)
        if cached and isinstance(cached, dict):
            return cached

        document = await self._fetch_json(url)
        metadata = {
            "name": document.get("name"),
            "image": document.get("image"),
            "description": document.get("description")
        }
        await self.cache.set(cache_key, metadata, ttl=self.cache_ttl)
        return metadata

    async def _fetch_json(self, url: str) -> dict[str, any]:
        """
        Fetch a JSON object over HTTP.

        Parameters
        ----------
        url : str
            Document URL

        Returns
        -------
        dict[str, any]
            Parsed document

        Raises
        ------
        aiohttp.ClientError
            On transport or HTTP status errors
        ValueError
            If the body is not a JSON object
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as response:
                response.raise_for_status()
                document = await response.json(content_type=None)

        if not isinstance(document, dict):
            raise ValueError(f"metadata at {url} is not a JSON object")
        return document

    async def enrich(self, snapshot: AccountSnapshot) -> AccountSnapshot:
        """
        Fill metadata fields of every owned token that has a URI.

        Failures are recorded in ``snapshot.errors`` as ``getTokenMetadata``.

        Parameters
        ----------
        snapshot : AccountSnapshot
            Snapshot to annotate in place

        Returns
        -------
        AccountSnapshot
            The same snapshot
        """
        targets = [
            (contract, token)
            for contract, ledger in snapshot.erc721_tokens.items()
            for token in ledger.tokens
            if token.token_uri
        ]
        if not targets:
            return snapshot

        semaphore = asyncio.Semaphore(self.concurrency)

        async def fetch(token_uri: str) -> dict[str, any] | None:
            async with semaphore:
                return await self.get_token_metadata(token_uri)

        self.logger.info(f"Fetching metadata for {len(targets)} tokens of {snapshot.address}")
        results = await asyncio.gather(
            *[fetch(token.token_uri) for _, token in targets],
            return_exceptions=True
        )

        for (contract, token), result in zip(targets, results):
            if isinstance(result, Exception):
                snapshot.errors.append(SnapshotError(
                    operation="getTokenMetadata",
                    message=f"{contract} {token.token_id}: {result}"
                ))
                continue
            if result is None:
                continue
            token.token_name = result.get("name")
            token.image_url = result.get("image")
            token.description = result.get("description")

        return snapshot
