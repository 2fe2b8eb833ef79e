import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings using Pydantic Settings.

    Attributes
    ----------
    rpc_base_url : str
        Base RPC URL (network path will be added automatically)
    ankr_api_key : str
        Ankr API key for RPC access
    redis_host : str
        Redis host for caching
    redis_port : int
        Redis port
    redis_db : int
        Redis database number
    redis_password : str
        Redis password (optional)
    account_info_contract_ethereum : str
        Address of the batched account-info helper contract on Ethereum
    account_info_contract_avalanche : str
        Address of the helper contract on Avalanche (empty if not deployed)
    logs_chunk_size : int
        Blocks per eth_getLogs request, 0 to fetch the whole range at once
    logs_batch_size : int
        Number of log chunks fetched concurrently
    snapshot_cache_ttl : int
        Seconds a finished snapshot stays cached
    metadata_cache_ttl : int
        Seconds token metadata documents stay cached
    metadata_timeout : float
        Timeout for a single token metadata request
    metadata_concurrency : int
        Maximum number of concurrent token metadata requests
    ipfs_gateway : str
        HTTP gateway used for ipfs:// token URIs
    log_level : str
        Root logging level name
    """

    rpc_base_url: str = "https://rpc.ankr.com"
    ankr_api_key: str = ""

    redis_host: str
    redis_port: int
    redis_db: int
    redis_password: str

    account_info_contract_ethereum: str = "0xEDaDe4c1191312abA34BB98951Ad21c290b282D3"
    account_info_contract_avalanche: str = ""

    logs_chunk_size: int = 0
    logs_batch_size: int = 100

    snapshot_cache_ttl: int = 30
    metadata_cache_ttl: int = 86400
    metadata_timeout: float = 10.0
    metadata_concurrency: int = 8
    ipfs_gateway: str = "https://ipfs.io/ipfs/"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    def get_rpc_url(self, network: str) -> str:
        """
        Get RPC URL for specific network.

        Parameters
        ----------
        network : str
            Network name (avalanche, ethereum, etc.)

        Returns
        -------
        str
            Full RPC URL with API key
        """
        network_paths = {
            "avalanche": "avalanche",
            "ethereum": "eth"
        }
        network_path = network_paths.get(network, network)
        return f"{self.rpc_base_url}/{network_path}/{self.ankr_api_key}"

    def get_account_info_contract(self, network: str) -> str | None:
        """
        Get the helper contract address used for the batched query.

        Parameters
        ----------
        network : str
            Network name

        Returns
        -------
        str | None
            Contract address, or None if the network has no deployment
        """
        address = getattr(self, f"account_info_contract_{network}", "")
        return address or None
