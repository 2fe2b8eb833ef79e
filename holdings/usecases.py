import logging
from holdings.metadata_service import TokenMetadataService
from holdings.pipeline import SnapshotPipeline
from holdings.schemas import SnapshotResponse
from holdings.services import Web3Service
from core.redis.providers import CacheService


# failures of fetches that may succeed on retry at the same block
TRANSIENT_OPERATIONS = frozenset({"getTransactionCount", "getTokenMetadata"})


class GetAccountSnapshotUseCase:
    """
    Use case for building an account's token holdings snapshot.

    Parameters
    ----------
    web3_service : Web3Service
        Web3 service instance
    cache_service : CacheService
        Cache service instance
    metadata_service : TokenMetadataService
        Optional NFT metadata stage
    logger : logging.Logger
        Logger instance
    cache_ttl : int
        Seconds a snapshot stays cached
    """

    def __init__(
        self,
        web3_service: Web3Service,
        cache_service: CacheService,
        metadata_service: TokenMetadataService,
        logger: logging.Logger,
        cache_ttl: int = 30
    ):
        self.web3_service = web3_service
        self.cache = cache_service
        self.metadata_service = metadata_service
        self.logger = logger
        self.cache_ttl = cache_ttl

    async def __call__(
        self,
        address: str,
        network: str,
        include_metadata: bool = False
    ) -> SnapshotResponse:
        """
        Execute use case.

        Parameters
        ----------
        address : str
            Account address
        network : str
            Network name
        include_metadata : bool
            Whether to run the metadata stage

        Returns
        -------
        SnapshotResponse
            Snapshot response
        """
        current_block = await self.web3_service.get_latest_block_number(network)
        cache_key = CacheService.make_key("snapshot", network, address, current_block, include_metadata)

        cached = await self.cache.get(cache_key)
        if cached:
            self.logger.info(f"Snapshot for {address} on {network} at {current_block} served from cache")
            return SnapshotResponse(**cached)

        pipeline = SnapshotPipeline(self.web3_service, network, self.logger)
        snapshot = await pipeline.run(address)

        if include_metadata:
            snapshot = await self.metadata_service.enrich(snapshot)

        response = SnapshotResponse(network=network, **snapshot.model_dump())

        if any(error.operation in TRANSIENT_OPERATIONS for error in response.errors):
            self.logger.info(f"Snapshot for {address} on {network} at {current_block} not cached: transient errors")
        else:
            await self.cache.set(cache_key, response.model_dump(mode="json"), ttl=self.cache_ttl)

        return response
