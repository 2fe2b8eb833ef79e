import asyncio
import logging
from typing import Protocol

from eth_utils import to_checksum_address

from holdings.entities import (
    AccountSnapshot,
    BatchQueryParams,
    BatchQueryResponse,
    SnapshotError,
    TransferDirection,
    TransferLogEntry,
)
from holdings.ledger import build_ledgers
from holdings.merger import merge_batch_result
from holdings.params import build_query_params


class ChainGateway(Protocol):
    """Chain access the pipeline depends on; implemented by ``Web3Service``."""

    async def get_transfer_logs(
        self, network: str, account: str, direction: TransferDirection
    ) -> list[TransferLogEntry]: ...

    async def get_account_info(
        self, network: str, account: str, params: BatchQueryParams
    ) -> BatchQueryResponse: ...

    async def get_transaction_count(self, network: str, account: str) -> int: ...


class SnapshotPipeline:
    """
    Builds an account snapshot from Transfer logs and one batched query.

    Both log queries run concurrently and must succeed. The batched query
    runs once ledgers are complete. The transaction count is fetched while
    the response is merged; its failure is recorded in ``errors``.

    Parameters
    ----------
    gateway : ChainGateway
        Chain access
    network : str
        Network name
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, gateway: ChainGateway, network: str, logger: logging.Logger):
        self.gateway = gateway
        self.network = network
        self.logger = logger

    async def run(self, account: str) -> AccountSnapshot:
        """
        Execute the pipeline.

        Parameters
        ----------
        account : str
            Account address

        Returns
        -------
        AccountSnapshot
            Best-effort snapshot with non-fatal diagnostics in ``errors``

        Raises
        ------
        UpstreamFetchException
            If a log query or the batched query fails
        """
        account = to_checksum_address(account)

        # a failed query cancels the other one before the error propagates
        try:
            async with asyncio.TaskGroup() as tg:
                incoming_task = tg.create_task(
                    self.gateway.get_transfer_logs(self.network, account, TransferDirection.INCOMING)
                )
                outgoing_task = tg.create_task(
                    self.gateway.get_transfer_logs(self.network, account, TransferDirection.OUTGOING)
                )
        except ExceptionGroup as group:
            raise group.exceptions[0]
        incoming, outgoing = incoming_task.result(), outgoing_task.result()
        self.logger.info(
            f"{account} on {self.network}: {len(incoming)} incoming, {len(outgoing)} outgoing Transfer logs"
        )

        book = build_ledgers(account, incoming, outgoing)
        params = build_query_params(book)
        self.logger.info(
            f"Querying {len(params.erc20_addresses)} ERC-20 and {len(params.erc721_addresses)} "
            f"ERC-721 contracts, {len(params.token_ids)} token ids"
        )

        response = await self.gateway.get_account_info(self.network, account, params)

        count_task = asyncio.create_task(self._fetch_transaction_count(account))
        # let the request go out before the synchronous merge
        await asyncio.sleep(0)
        try:
            snapshot = merge_batch_result(account, book, params, response)
        except BaseException:
            count_task.cancel()
            raise

        transaction_count, error = await count_task
        if error is not None:
            snapshot.errors.append(error)
        else:
            snapshot.transaction_count = transaction_count

        for diagnostic in snapshot.errors:
            self.logger.warning(f"{diagnostic.operation}: {diagnostic.message}")

        return snapshot

    async def _fetch_transaction_count(self, account: str) -> tuple[int, SnapshotError | None]:
        try:
            return await self.gateway.get_transaction_count(self.network, account), None
        except Exception as e:
            return -1, SnapshotError(operation="getTransactionCount", message=str(e))
