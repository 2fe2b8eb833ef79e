"""
Encoding helpers for Transfer topics and batched query payloads.
"""
from eth_abi import decode as abi_decode
from eth_utils import is_address, keccak, to_canonical_address, to_checksum_address

from core.exceptions import DecodeFailureException, InvalidAddressException

# keccak256("Transfer(address,address,uint256)"), shared by ERC-20 and ERC-721
TRANSFER_TOPIC = keccak(text="Transfer(address,address,uint256)")

_TOPIC_PADDING = b"\x00" * 12
_MAX_ADDRESS = 1 << 160


def address_to_topic(address: str) -> bytes:
    """
    Left-pad a 20-byte address to a 32-byte indexed topic.

    Parameters
    ----------
    address : str
        Hex address, checksummed or not

    Returns
    -------
    bytes
        32-byte topic

    Raises
    ------
    InvalidAddressException
        If ``address`` is not a valid address
    """
    if not is_address(address):
        raise InvalidAddressException(f"Invalid address: {address!r}")
    return _TOPIC_PADDING + to_canonical_address(address)


def address_from_topic(topic: bytes) -> str:
    """
    Decode a zero-padded 32-byte topic into a checksummed address.

    Parameters
    ----------
    topic : bytes
        Indexed topic

    Returns
    -------
    str
        Checksummed address

    Raises
    ------
    DecodeFailureException
        If the topic is not 32 bytes or its upper 12 bytes are not zero
    """
    if len(topic) != 32 or topic[:12] != _TOPIC_PADDING:
        raise DecodeFailureException(f"bad topic address: 0x{topic.hex()}")
    return to_checksum_address(topic[12:])


def address_from_uint(value: int) -> str:
    """
    Decode an address returned as ``uint256``.

    Raises
    ------
    DecodeFailureException
        If the value does not fit in 160 bits
    """
    if value < 0 or value >= _MAX_ADDRESS:
        raise DecodeFailureException(f"bad address value: {hex(value)}")
    return to_checksum_address(value.to_bytes(20, "big"))


def decode_uint256(data: bytes) -> int:
    """Decode a single 32-byte big-endian ``uint256``."""
    if len(data) != 32:
        raise DecodeFailureException(f"expected 32 bytes, got {len(data)}")
    return abi_decode(["uint256"], data)[0]


def decode_string(data: bytes) -> str | None:
    """
    Decode a name/symbol/URI returned as raw ``bytes``.

    Exactly 32 bytes is treated as a null-padded ``bytes32`` short string
    (legacy tokens), anything else as UTF-8. Empty input and a ``bytes32``
    with no characters decode to None.

    Parameters
    ----------
    data : bytes
        Raw value

    Returns
    -------
    str | None
        Decoded text

    Raises
    ------
    DecodeFailureException
        If the bytes are not valid text
    """
    if not data:
        return None

    try:
        if len(data) == 32:
            if data[31] != 0:
                raise DecodeFailureException("invalid bytes32 string - no null terminator")
            return data.rstrip(b"\x00").decode("utf-8") or None
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeFailureException(f"invalid utf-8 string 0x{data.hex()}: {e}") from e


def token_id_to_hex(value: int) -> str:
    """Render a token id as ``0x`` + an even number of hex digits."""
    digits = format(value, "x")
    if len(digits) % 2:
        digits = "0" + digits
    return "0x" + digits


def token_id_to_int(token_id: str) -> int:
    return int(token_id, 16)
