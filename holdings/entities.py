from enum import Enum
from typing import Any, Sequence

from eth_utils import to_checksum_address
from hexbytes import HexBytes
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TokenStandard(str, Enum):
    """Token standard a transfer log was classified as."""
    ERC20 = "erc20"
    ERC721 = "erc721"


class TransferDirection(str, Enum):
    """Which indexed Transfer topic is matched against the account."""
    INCOMING = "incoming"
    OUTGOING = "outgoing"


def _hex_string(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


class TransferLogEntry(BaseModel):
    """
    Raw Transfer event log as returned by the log source.

    Attributes
    ----------
    contract_address : str
        Emitting contract (checksummed)
    topics : tuple[bytes, ...]
        Indexed topics, signature first
    data : bytes
        Non-indexed payload
    block_number : int
        Block the log was emitted in
    block_hash : str | None
        Block hash
    transaction_hash : str | None
        Transaction hash
    log_index : int | None
        Position of the log in its block, if known
    """
    contract_address: str
    topics: tuple[bytes, ...]
    data: bytes = b""
    block_number: int
    block_hash: str | None = None
    transaction_hash: str | None = None
    log_index: int | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("contract_address")
    @classmethod
    def checksum_contract(cls, v: str) -> str:
        return to_checksum_address(v)

    @field_validator("topics", mode="before")
    @classmethod
    def topics_to_bytes(cls, v: Sequence[Any]) -> tuple[bytes, ...]:
        return tuple(bytes(HexBytes(t)) for t in v)

    @field_validator("data", mode="before")
    @classmethod
    def data_to_bytes(cls, v: Any) -> bytes:
        if v is None:
            return b""
        return bytes(HexBytes(v))

    @field_validator("block_hash", "transaction_hash", mode="before")
    @classmethod
    def hashes_to_hex(cls, v: Any) -> Any:
        return _hex_string(v)


class TransferRecord(BaseModel):
    """
    Decoded Transfer event.

    Exactly one of ``value`` (ERC-20, decimal string) and ``token_id``
    (ERC-721, hex string) is set.
    """
    from_address: str
    to_address: str
    block_number: int
    block_hash: str | None = None
    transaction_hash: str | None = None
    log_index: int | None = None
    value: str | None = None
    token_id: str | None = None

    model_config = ConfigDict(frozen=True)


class SnapshotError(BaseModel):
    """
    Non-fatal diagnostic accumulated while building a snapshot.

    Attributes
    ----------
    operation : str
        Pipeline step that failed (classifyLog, decodeString, ...)
    message : str
        Human readable description
    """
    operation: str
    message: str


class ERC20Ledger(BaseModel):
    name: str | None = None
    symbol: str | None = None
    decimals: int = -1
    balance: str | None = None
    block_number: int = -1
    history: list[TransferRecord] = Field(default_factory=list)


class ERC721Token(BaseModel):
    token_id: str
    token_uri: str | None = None
    token_name: str | None = None
    image_url: str | None = None
    description: str | None = None


class ERC721Ledger(BaseModel):
    name: str | None = None
    symbol: str | None = None
    tokens: list[ERC721Token] = Field(default_factory=list)
    block_number: int = -1
    history: list[TransferRecord] = Field(default_factory=list)


class AccountSnapshot(BaseModel):
    """
    Point-in-time token holdings of one account.

    Attributes
    ----------
    address : str
        Account address (checksummed)
    block_number : int
        Block the batched query was answered at, -1 if unknown
    balance : str | None
        Native balance in wei as a decimal string
    transaction_count : int
        Account nonce, -1 if it could not be fetched
    erc20_tokens : dict[str, ERC20Ledger]
        ERC-20 ledgers in contract address order
    erc721_tokens : dict[str, ERC721Ledger]
        ERC-721 ledgers in contract address order
    errors : list[SnapshotError]
        Non-fatal diagnostics
    """
    address: str
    block_number: int = -1
    balance: str | None = None
    transaction_count: int = -1
    erc20_tokens: dict[str, ERC20Ledger] = Field(default_factory=dict)
    erc721_tokens: dict[str, ERC721Ledger] = Field(default_factory=dict)
    errors: list[SnapshotError] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("erc20_tokens", "erc721_tokens")
    @classmethod
    def sort_by_address(cls, v: dict) -> dict:
        return dict(sorted(v.items()))


class BatchQueryParams(BaseModel):
    """
    Parallel parameter lists of the batched account query.

    Attributes
    ----------
    erc20_addresses : list[str]
        Sorted ERC-20 contracts
    erc721_addresses : list[str]
        Sorted ERC-721 contracts
    counts : list[int]
        Owned token count per ERC-721 contract, same order
    token_ids : list[str]
        Owned token ids of all ERC-721 contracts, flattened in the same order
    """
    erc20_addresses: list[str] = Field(default_factory=list)
    erc721_addresses: list[str] = Field(default_factory=list)
    counts: list[int] = Field(default_factory=list)
    token_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_alignment(self) -> "BatchQueryParams":
        if len(self.counts) != len(self.erc721_addresses):
            raise ValueError("counts must have one entry per ERC-721 contract")
        if sum(self.counts) != len(self.token_ids):
            raise ValueError("sum(counts) must equal the number of token ids")
        return self


class ERC20Info(BaseModel):
    name: bytes
    symbol: bytes
    decimals: int
    balance: int


class ERC721Info(BaseModel):
    name: bytes
    symbol: bytes


class ERC721TokenInfo(BaseModel):
    owner: int
    token_uri: bytes


class BatchQueryResponse(BaseModel):
    """
    Response of the batched account query, positionally aligned to
    :class:`BatchQueryParams`.
    """
    balance: int
    block_number: int
    erc20_infos: list[ERC20Info] = Field(default_factory=list)
    erc721_infos: list[ERC721Info] = Field(default_factory=list)
    erc721_token_infos: list[ERC721TokenInfo] = Field(default_factory=list)

    @classmethod
    def from_call_result(cls, raw: Sequence[Any]) -> "BatchQueryResponse":
        """
        Build the response from the positional tuple returned by the contract call.

        Parameters
        ----------
        raw : Sequence[Any]
            ``(balance, blockNumber, erc20Infos, erc721Infos, erc721TokenInfos)``

        Returns
        -------
        BatchQueryResponse
            Parsed response
        """
        balance, block_number, erc20_infos, erc721_infos, token_infos = raw
        return cls(
            balance=balance,
            block_number=block_number,
            erc20_infos=[
                ERC20Info(name=name, symbol=symbol, decimals=decimals, balance=token_balance)
                for name, symbol, decimals, token_balance in erc20_infos
            ],
            erc721_infos=[
                ERC721Info(name=name, symbol=symbol) for name, symbol in erc721_infos
            ],
            erc721_token_infos=[
                ERC721TokenInfo(owner=owner, token_uri=token_uri)
                for owner, token_uri in token_infos
            ]
        )
