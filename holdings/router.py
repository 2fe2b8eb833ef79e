from fastapi import APIRouter
from dishka.integrations.fastapi import inject
from dishka import FromComponent
from typing import Annotated
from holdings.schemas import GetSnapshotRequest, SnapshotResponse
from holdings.usecases import GetAccountSnapshotUseCase

router = APIRouter(
    prefix="/api/holdings",
    tags=["Holdings"]
)


@router.post("/snapshot", response_model=SnapshotResponse)
@inject
async def get_account_snapshot(
    request: GetSnapshotRequest,
    use_case: Annotated[
        GetAccountSnapshotUseCase, FromComponent("holdings")
    ]
) -> SnapshotResponse:
    """
    Get the ERC-20 and ERC-721 holdings of an account at the latest block.

    Parameters
    ----------
    request : GetSnapshotRequest
        Request with account address, network and metadata flag
    use_case : GetAccountSnapshotUseCase
        Use case for building the snapshot

    Returns
    -------
    SnapshotResponse
        Account snapshot
    """
    return await use_case(
        address=request.address,
        network=request.network,
        include_metadata=request.include_metadata
    )
