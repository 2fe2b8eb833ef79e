from dishka import Provider, Scope, provide, FromComponent
from holdings.services import Web3Service
from holdings.metadata_service import TokenMetadataService
from holdings.usecases import GetAccountSnapshotUseCase
from typing import Annotated
from web3 import AsyncWeb3
from core.environment.config import Settings
from core.redis.providers import CacheService
import logging


NETWORKS = ["avalanche", "ethereum"]


class HoldingsProvider(Provider):
    """
    Provider for holdings snapshot dependencies.
    """

    component = "holdings"

    @provide(scope=Scope.APP)
    def get_web3_clients(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> dict[str, AsyncWeb3]:
        """
        Provide Web3 clients for different networks.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        dict[str, AsyncWeb3]
            Dictionary of Web3 clients
        """
        return {
            network: AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.get_rpc_url(network)))
            for network in NETWORKS
        }

    @provide(scope=Scope.APP)
    def get_web3_service(
        self,
        web3_clients: Annotated[
            dict[str, AsyncWeb3], FromComponent("holdings")
        ],
        logger: Annotated[logging.Logger, FromComponent("logger")],
        cache_service: Annotated[CacheService, FromComponent("cache")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> Web3Service:
        """
        Provide Web3 service.

        Parameters
        ----------
        web3_clients : dict[str, AsyncWeb3]
            Dictionary of Web3 clients
        logger : logging.Logger
            Logger instance
        cache_service : CacheService
            Cache service instance for chunk caching
        settings : Settings
            Application settings

        Returns
        -------
        Web3Service
            Web3 service instance
        """
        account_info_contracts = {
            network: address
            for network in NETWORKS
            if (address := settings.get_account_info_contract(network))
        }
        return Web3Service(
            web3_clients=web3_clients,
            logger=logger,
            cache_service=cache_service,
            account_info_contracts=account_info_contracts,
            logs_chunk_size=settings.logs_chunk_size,
            logs_batch_size=settings.logs_batch_size
        )

    @provide(scope=Scope.APP)
    def get_metadata_service(
        self,
        cache_service: Annotated[CacheService, FromComponent("cache")],
        logger: Annotated[logging.Logger, FromComponent("logger")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> TokenMetadataService:
        """
        Provide token metadata service.

        Parameters
        ----------
        cache_service : CacheService
            Cache service instance
        logger : logging.Logger
            Logger instance
        settings : Settings
            Application settings

        Returns
        -------
        TokenMetadataService
            Token metadata service instance
        """
        return TokenMetadataService(
            cache_service=cache_service,
            logger=logger,
            ipfs_gateway=settings.ipfs_gateway,
            timeout=settings.metadata_timeout,
            concurrency=settings.metadata_concurrency,
            cache_ttl=settings.metadata_cache_ttl
        )

    @provide(scope=Scope.REQUEST)
    def get_account_snapshot_use_case(
        self,
        web3_service: Annotated[Web3Service, FromComponent("holdings")],
        cache_service: Annotated[CacheService, FromComponent("cache")],
        metadata_service: Annotated[TokenMetadataService, FromComponent("holdings")],
        logger: Annotated[logging.Logger, FromComponent("logger")],
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> GetAccountSnapshotUseCase:
        """
        Provide get account snapshot use case.

        Parameters
        ----------
        web3_service : Web3Service
            Web3 service instance
        cache_service : CacheService
            Cache service instance
        metadata_service : TokenMetadataService
            Token metadata service instance
        logger : logging.Logger
            Logger instance
        settings : Settings
            Application settings

        Returns
        -------
        GetAccountSnapshotUseCase
            Get account snapshot use case
        """
        return GetAccountSnapshotUseCase(
            web3_service=web3_service,
            cache_service=cache_service,
            metadata_service=metadata_service,
            logger=logger,
            cache_ttl=settings.snapshot_cache_ttl
        )
