from holdings.entities import BatchQueryParams
from holdings.ledger import LedgerBook


def build_query_params(book: LedgerBook) -> BatchQueryParams:
    """
    Flatten ledgers into the parallel lists taken by the batched query.

    The query cannot take nested arrays, so owned ERC-721 ids are
    concatenated contract by contract and ``counts[i]`` says how many of
    them belong to ``erc721_addresses[i]``.

    Parameters
    ----------
    book : LedgerBook
        Output of :func:`holdings.ledger.build_ledgers`

    Returns
    -------
    BatchQueryParams
        Order-correlated query parameters
    """
    erc721_addresses = book.erc721.keys_list()
    counts: list[int] = []
    token_ids: list[str] = []
    for token in erc721_addresses:
        owned = book.owned_token_ids.get(token, [])
        counts.append(len(owned))
        token_ids.extend(owned)

    return BatchQueryParams(
        erc20_addresses=book.erc20.keys_list(),
        erc721_addresses=erc721_addresses,
        counts=counts,
        token_ids=token_ids
    )
