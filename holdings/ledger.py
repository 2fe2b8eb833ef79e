from dataclasses import dataclass, field
from typing import Hashable, Iterable

from eth_utils import to_checksum_address

from core.exceptions import MalformedLogEntryException
from holdings.address_map import AddressSortedMap
from holdings.classifier import classify_log
from holdings.entities import (
    ERC20Ledger,
    ERC721Ledger,
    SnapshotError,
    TokenStandard,
    TransferLogEntry,
    TransferRecord,
)


@dataclass
class LedgerBook:
    """
    Per-contract transfer histories of one account.

    Attributes
    ----------
    erc20 : AddressSortedMap[ERC20Ledger]
        ERC-20 ledgers keyed by contract address
    erc721 : AddressSortedMap[ERC721Ledger]
        ERC-721 ledgers keyed by contract address
    owned_token_ids : dict[str, list[str]]
        Token ids currently owned per ERC-721 contract, from history replay
    diagnostics : list[SnapshotError]
        One entry per skipped log
    """
    erc20: AddressSortedMap[ERC20Ledger] = field(default_factory=AddressSortedMap)
    erc721: AddressSortedMap[ERC721Ledger] = field(default_factory=AddressSortedMap)
    owned_token_ids: dict[str, list[str]] = field(default_factory=dict)
    diagnostics: list[SnapshotError] = field(default_factory=list)


def log_identity(entry: TransferLogEntry) -> Hashable:
    """
    Identity of a log used to drop duplicates across the two log queries.
    """
    if entry.log_index is not None:
        return (entry.block_hash, entry.transaction_hash, entry.log_index)
    return (entry.block_hash, entry.transaction_hash, entry.topics, entry.data)


def replay_ownership(account: str, history: Iterable[TransferRecord]) -> list[str]:
    """
    Replay ERC-721 transfers in order and return the ids still owned.

    A transfer to ``account`` adds the id, a transfer from it removes the id.
    The result keeps first-acquisition order.

    Parameters
    ----------
    account : str
        Checksummed account address
    history : Iterable[TransferRecord]
        Transfers of one contract, in chain order

    Returns
    -------
    list[str]
        Owned token ids
    """
    owned: dict[str, None] = {}
    for record in history:
        if record.to_address == account:
            owned[record.token_id] = None
        elif record.from_address == account:
            owned.pop(record.token_id, None)
    return list(owned)


def build_ledgers(account: str, *log_streams: Iterable[TransferLogEntry]) -> LedgerBook:
    """
    Group Transfer logs into per-contract ledgers.

    Streams are consumed in the order given (incoming first, then outgoing)
    and a log seen in an earlier stream is not processed again, so a
    self-transfer ends up in history once. Histories are sorted by block
    number; the sort is stable, so same-block records keep fetch order.

    Parameters
    ----------
    account : str
        Account address
    *log_streams : Iterable[TransferLogEntry]
        Results of the log queries

    Returns
    -------
    LedgerBook
        Ledgers, owned ERC-721 ids and diagnostics for skipped logs
    """
    account = to_checksum_address(account)
    book = LedgerBook()
    seen: set[Hashable] = set()

    for stream in log_streams:
        for entry in stream:
            identity = log_identity(entry)
            if identity in seen:
                continue
            seen.add(identity)

            try:
                standard, record = classify_log(entry)
            except MalformedLogEntryException as e:
                book.diagnostics.append(SnapshotError(operation="classifyLog", message=e.message))
                continue

            if standard is TokenStandard.ERC20:
                ledger = book.erc20.setdefault_factory(entry.contract_address, ERC20Ledger)
            else:
                ledger = book.erc721.setdefault_factory(entry.contract_address, ERC721Ledger)
            ledger.history.append(record)

    for ledgers in (book.erc20, book.erc721):
        for ledger in ledgers.values():
            ledger.history.sort(key=lambda r: r.block_number)

    for token, ledger in book.erc721.items():
        book.owned_token_ids[token] = replay_ownership(account, ledger.history)

    return book
