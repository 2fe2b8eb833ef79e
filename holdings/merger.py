from eth_utils import to_checksum_address

from core.exceptions import BatchQueryMismatchException, DecodeFailureException
from holdings.codec import address_from_uint, decode_string
from holdings.entities import (
    AccountSnapshot,
    BatchQueryParams,
    BatchQueryResponse,
    ERC721Token,
    SnapshotError,
)
from holdings.ledger import LedgerBook


def _check_alignment(params: BatchQueryParams, response: BatchQueryResponse) -> None:
    expected = (
        ("erc20Infos", len(params.erc20_addresses), len(response.erc20_infos)),
        ("erc721Infos", len(params.erc721_addresses), len(response.erc721_infos)),
        ("erc721TokenInfos", sum(params.counts), len(response.erc721_token_infos)),
    )
    for name, want, got in expected:
        if want != got:
            raise BatchQueryMismatchException(
                f"Batched query returned {got} {name}, expected {want}"
            )


class _StringDecoder:
    """Decodes optional strings, turning failures into diagnostics."""

    def __init__(self, errors: list[SnapshotError]):
        self.errors = errors

    def __call__(self, data: bytes, context: str) -> str | None:
        try:
            return decode_string(data)
        except DecodeFailureException as e:
            self.errors.append(SnapshotError(operation="decodeString", message=f"{context}: {e.message}"))
            return None


def merge_batch_result(
    account: str,
    book: LedgerBook,
    params: BatchQueryParams,
    response: BatchQueryResponse
) -> AccountSnapshot:
    """
    Fold the batched query response back into the ledgers.

    The response is positional: ``erc20_infos[i]`` belongs to
    ``params.erc20_addresses[i]``, ``erc721_infos[i]`` to
    ``params.erc721_addresses[i]``, and ``erc721_token_infos`` is consumed
    ``counts[i]`` entries at a time. NFT entries whose on-chain owner is no
    longer the account are dropped.

    Parameters
    ----------
    account : str
        Account address
    book : LedgerBook
        Ledgers the parameters were built from
    params : BatchQueryParams
        Parameters the query was called with
    response : BatchQueryResponse
        Query result

    Returns
    -------
    AccountSnapshot
        Snapshot without transaction count

    Raises
    ------
    BatchQueryMismatchException
        If response array lengths do not match the parameters
    """
    account = to_checksum_address(account)
    _check_alignment(params, response)

    errors = list(book.diagnostics)
    decode = _StringDecoder(errors)
    block_number = response.block_number

    for token, info in zip(params.erc20_addresses, response.erc20_infos):
        ledger = book.erc20[token]
        ledger.name = decode(info.name, f"{token} name")
        ledger.symbol = decode(info.symbol, f"{token} symbol")
        ledger.decimals = info.decimals
        ledger.balance = str(info.balance)
        ledger.block_number = block_number

    cursor = 0
    for index, (token, info) in enumerate(zip(params.erc721_addresses, response.erc721_infos)):
        ledger = book.erc721[token]
        ledger.name = decode(info.name, f"{token} name")
        ledger.symbol = decode(info.symbol, f"{token} symbol")
        ledger.block_number = block_number

        for _ in range(params.counts[index]):
            token_info = response.erc721_token_infos[cursor]
            token_id = params.token_ids[cursor]
            cursor += 1

            try:
                owner = address_from_uint(token_info.owner)
            except DecodeFailureException:
                continue
            if owner != account:
                continue

            ledger.tokens.append(ERC721Token(
                token_id=token_id,
                token_uri=decode(token_info.token_uri, f"{token} tokenURI({token_id})")
            ))

    return AccountSnapshot(
        address=account,
        block_number=block_number,
        balance=str(response.balance),
        erc20_tokens=dict(book.erc20),
        erc721_tokens=dict(book.erc721),
        errors=errors
    )
