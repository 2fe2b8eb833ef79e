import asyncio
import hashlib
import logging
from web3 import AsyncWeb3
from core.exceptions import BaseCustomException, NetworkNotSupportedException, UpstreamFetchException
from core.redis.providers import CacheService
from holdings.abi import ACCOUNT_INFO_ABI
from holdings.codec import TRANSFER_TOPIC, address_to_topic, token_id_to_int
from holdings.entities import BatchQueryParams, BatchQueryResponse, TransferDirection, TransferLogEntry


class Web3Service:
    """
    Service for reading account data from blockchain networks.

    Parameters
    ----------
    web3_clients : dict[str, AsyncWeb3]
        Dictionary of Web3 clients for different networks
    logger : logging.Logger
        Logger instance
    cache_service : CacheService
        Cache service for caching finished log chunks
    account_info_contracts : dict[str, str]
        Batched query helper contract per network
    logs_chunk_size : int
        Blocks per eth_getLogs request, 0 to query the whole range at once
    logs_batch_size : int
        Number of chunks fetched concurrently
    """

    def __init__(
        self, web3_clients: dict[str, AsyncWeb3],
        logger: logging.Logger,
        cache_service: CacheService,
        account_info_contracts: dict[str, str],
        logs_chunk_size: int = 0,
        logs_batch_size: int = 100
    ):
        self.web3_clients = web3_clients
        self.logger = logger
        self.cache = cache_service
        self.account_info_contracts = account_info_contracts
        self.logs_chunk_size = logs_chunk_size
        self.logs_batch_size = max(1, logs_batch_size)

    def _get_client(self, network: str) -> AsyncWeb3:
        """
        Get Web3 client for specified network.

        Parameters
        ----------
        network : str
            Network name

        Returns
        -------
        AsyncWeb3
            Web3 client instance

        Raises
        ------
        NetworkNotSupportedException
            If network is not supported
        """
        if network not in self.web3_clients:
            raise NetworkNotSupportedException(f"Network {network} is not supported")
        return self.web3_clients[network]

    async def get_latest_block_number(self, network: str) -> int:
        """
        Get the current head block number.

        Parameters
        ----------
        network : str
            Network name

        Returns
        -------
        int
            Latest block number
        """
        web3 = self._get_client(network)
        try:
            return await web3.eth.block_number
        except Exception as e:
            raise UpstreamFetchException(f"eth_blockNumber failed on {network}: {e}") from e

    async def get_transfer_logs(
        self,
        network: str,
        account: str,
        direction: TransferDirection
    ) -> list[TransferLogEntry]:
        """
        Get all Transfer logs sending to or from the account.

        Parameters
        ----------
        network : str
            Network name
        account : str
            Account address
        direction : TransferDirection
            INCOMING matches the recipient topic, OUTGOING the sender topic

        Returns
        -------
        list[TransferLogEntry]
            Logs in the order returned by the node

        Raises
        ------
        UpstreamFetchException
            If any eth_getLogs request fails
        """
        web3 = self._get_client(network)

        account_topic = "0x" + address_to_topic(account).hex()
        transfer_topic = "0x" + TRANSFER_TOPIC.hex()
        if direction is TransferDirection.INCOMING:
            topics = [transfer_topic, None, account_topic]
        else:
            topics = [transfer_topic, account_topic]

        try:
            if self.logs_chunk_size <= 0:
                logs = await web3.eth.get_logs({
                    'fromBlock': 0,
                    'toBlock': 'latest',
                    'topics': topics
                })
                entries = [self._to_log_entry(log) for log in logs]
            else:
                entries = await self._get_logs_chunked(web3, network, topics)
        except BaseCustomException:
            raise
        except Exception as e:
            self.logger.warning(f"Fetching {direction.value} logs for {account} on {network} failed: {e}")
            raise UpstreamFetchException(
                f"eth_getLogs failed for {account} ({direction.value}) on {network}: {e}"
            ) from e

        self.logger.info(f"Fetched {len(entries)} {direction.value} Transfer logs for {account} on {network}")
        return entries

    async def _get_logs_chunked(
        self,
        web3: AsyncWeb3,
        network: str,
        topics: list[str | None]
    ) -> list[TransferLogEntry]:
        """
        Fetch logs for blocks 0..head in fixed-size chunks, a batch of chunks at a time.

        Parameters
        ----------
        web3 : AsyncWeb3
            Web3 client instance
        network : str
            Network name
        topics : list[str | None]
            Topic filter

        Returns
        -------
        list[TransferLogEntry]
            Logs of all chunks in block range order
        """
        current_block = await web3.eth.block_number
        ranges = [
            (start, min(start + self.logs_chunk_size - 1, current_block))
            for start in range(0, current_block + 1, self.logs_chunk_size)
        ]
        self.logger.info(
            f"Fetching logs from block 0 to {current_block} in {len(ranges):,} chunks of {self.logs_chunk_size:,}"
        )

        entries: list[TransferLogEntry] = []
        for offset in range(0, len(ranges), self.logs_batch_size):
            batch = ranges[offset:offset + self.logs_batch_size]
            try:
                async with asyncio.TaskGroup() as tg:
                    tasks = [
                        tg.create_task(
                            self._fetch_logs_chunk(web3, network, topics, start, end, cacheable=end < current_block)
                        )
                        for start, end in batch
                    ]
            except ExceptionGroup as group:
                raise group.exceptions[0]
            for task in tasks:
                entries.extend(task.result())
            self.logger.debug(f"Log chunks {offset + len(batch)}/{len(ranges)} done")

        return entries

    async def _fetch_logs_chunk(
        self,
        web3: AsyncWeb3,
        network: str,
        topics: list[str | None],
        from_block: int,
        to_block: int,
        cacheable: bool
    ) -> list[TransferLogEntry]:
        """
        Fetch logs for a specific block range with caching.

        Parameters
        ----------
        web3 : AsyncWeb3
            Web3 client instance
        network : str
            Network name
        topics : list[str | None]
            Topic filter
        from_block : int
            Starting block number
        to_block : int
            Ending block number
        cacheable : bool
            Whether the range is below the chain head and may be cached

        Returns
        -------
        list[TransferLogEntry]
            Log entries
        """
        cache_key_data = f"{network}:{from_block}:{to_block}:{topics}"
        cache_key = f"transfer_logs_chunk:{hashlib.md5(cache_key_data.encode()).hexdigest()}"

        if cacheable:
            cached = await self.cache.get(cache_key)
            if cached and isinstance(cached, dict) and 'logs' in cached:
                self.logger.debug(f"Cache hit for chunk {from_block}-{to_block}")
                return [TransferLogEntry(**log) for log in cached['logs']]

        logs = await web3.eth.get_logs({
            'fromBlock': from_block,
            'toBlock': to_block,
            'topics': topics
        })
        entries = [self._to_log_entry(log) for log in logs]

        if entries:
            self.logger.debug(f"Chunk {from_block}-{to_block}: found {len(entries)} logs")
        if cacheable:
            await self.cache.set(
                cache_key,
                {'logs': [self._serialize_log(entry) for entry in entries]},
                ttl=86400
            )

        return entries

    async def get_account_info(
        self,
        network: str,
        account: str,
        params: BatchQueryParams
    ) -> BatchQueryResponse:
        """
        Run the batched balance/metadata query on the helper contract.

        Parameters
        ----------
        network : str
            Network name
        account : str
            Account address, also used as the call sender
        params : BatchQueryParams
            Query parameters

        Returns
        -------
        BatchQueryResponse
            Positional query response

        Raises
        ------
        NetworkNotSupportedException
            If no helper contract is deployed on the network
        UpstreamFetchException
            If the call fails
        """
        web3 = self._get_client(network)
        contract_address = self.account_info_contracts.get(network)
        if not contract_address:
            raise NetworkNotSupportedException(f"No account info contract configured for {network}")

        contract = web3.eth.contract(
            address=web3.to_checksum_address(contract_address),
            abi=ACCOUNT_INFO_ABI
        )
        try:
            raw = await contract.functions.getInfo(
                params.erc20_addresses,
                params.erc721_addresses,
                params.counts,
                [token_id_to_int(token_id) for token_id in params.token_ids]
            ).call({'from': account})
        except Exception as e:
            self.logger.warning(f"getInfo failed for {account} on {network}: {e}")
            raise UpstreamFetchException(f"getInfo call failed for {account} on {network}: {e}") from e

        return BatchQueryResponse.from_call_result(raw)

    async def get_transaction_count(self, network: str, account: str) -> int:
        """
        Get the account's transaction count (nonce).

        Parameters
        ----------
        network : str
            Network name
        account : str
            Account address

        Returns
        -------
        int
            Transaction count
        """
        web3 = self._get_client(network)
        return await web3.eth.get_transaction_count(web3.to_checksum_address(account))

    def _to_log_entry(self, log) -> TransferLogEntry:
        """
        Convert a web3 log receipt into a log entry.

        Parameters
        ----------
        log : LogReceipt
            Log as returned by eth_getLogs

        Returns
        -------
        TransferLogEntry
            Log entry
        """
        return TransferLogEntry(
            contract_address=log['address'],
            topics=log['topics'],
            data=log['data'],
            block_number=log['blockNumber'],
            block_hash=log.get('blockHash'),
            transaction_hash=log.get('transactionHash'),
            log_index=log.get('logIndex')
        )

    def _serialize_log(self, entry: TransferLogEntry) -> dict[str, any]:
        """
        Serialize a log entry for the cache.

        Parameters
        ----------
        entry : TransferLogEntry
            Log entry

        Returns
        -------
        dict[str, any]
            JSON-compatible log
        """
        return {
            'contract_address': entry.contract_address,
            'topics': ["0x" + topic.hex() for topic in entry.topics],
            'data': "0x" + entry.data.hex(),
            'block_number': entry.block_number,
            'block_hash': entry.block_hash,
            'transaction_hash': entry.transaction_hash,
            'log_index': entry.log_index
        }
