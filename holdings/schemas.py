from eth_utils import is_address, is_checksum_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal

from holdings.entities import AccountSnapshot


class GetSnapshotRequest(BaseModel):
    """
    Request schema for building an account holdings snapshot.

    Attributes
    ----------
    address : str
        Account address
    network : Literal["avalanche", "ethereum"]
        Network to query (optional, defaults to ethereum)
    include_metadata : bool
        Whether to fetch metadata documents of owned NFTs
    """
    address: str = Field(..., description="Account address to snapshot")
    network: Literal["avalanche", "ethereum"] = Field(
        default="ethereum",
        description="Network to query"
    )
    include_metadata: bool = Field(
        default=False,
        description="Fetch name/image/description of owned NFTs from their token URI"
    )

    @field_validator('address')
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not v.startswith('0x') or len(v) != 42 or not is_address(v):
            raise ValueError('Invalid Ethereum address format')
        digits = v[2:]
        # mixed case means the caller sent a checksum, so it has to match
        if digits != digits.lower() and digits != digits.upper() and not is_checksum_address(v):
            raise ValueError('Invalid address checksum')
        return to_checksum_address(v)

    model_config = ConfigDict(from_attributes=True)


class SnapshotResponse(AccountSnapshot):
    """
    Response schema for a snapshot query.

    Attributes
    ----------
    network : str
        Network name
    """
    network: str
