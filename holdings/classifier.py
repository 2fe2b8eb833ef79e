from core.exceptions import DecodeFailureException, MalformedLogEntryException
from holdings.codec import address_from_topic, decode_uint256, token_id_to_hex
from holdings.entities import TokenStandard, TransferLogEntry, TransferRecord


def _describe(entry: TransferLogEntry) -> str:
    return (
        f"contract={entry.contract_address} block={entry.block_number} "
        f"tx={entry.transaction_hash} log_index={entry.log_index} "
        f"topics={['0x' + t.hex() for t in entry.topics]} data=0x{entry.data.hex()}"
    )


def classify_log(entry: TransferLogEntry) -> tuple[TokenStandard, TransferRecord]:
    """
    Classify a Transfer log as ERC-20 or ERC-721 and decode it.

    ERC-20 and ERC-721 share the Transfer signature; they differ only in
    whether the third argument is indexed. ERC-20 logs have 3 topics and
    a 32-byte value in data, ERC-721 logs have 4 topics and empty data.

    Parameters
    ----------
    entry : TransferLogEntry
        Log carrying the Transfer signature as its first topic

    Returns
    -------
    tuple[TokenStandard, TransferRecord]
        Token standard and decoded record

    Raises
    ------
    MalformedLogEntryException
        If the topic/data shape matches neither standard, or an indexed
        address is not properly zero-padded
    """
    topic_count = len(entry.topics)
    data_length = len(entry.data)

    if data_length == 32 and topic_count == 3:
        standard = TokenStandard.ERC20
    elif data_length == 0 and topic_count == 4:
        standard = TokenStandard.ERC721
    else:
        raise MalformedLogEntryException(f"unexpected Transfer log shape: {_describe(entry)}")

    try:
        from_address = address_from_topic(entry.topics[1])
        to_address = address_from_topic(entry.topics[2])
        if standard is TokenStandard.ERC20:
            amount = {"value": str(decode_uint256(entry.data))}
        else:
            amount = {"token_id": token_id_to_hex(decode_uint256(entry.topics[3]))}
    except DecodeFailureException as e:
        raise MalformedLogEntryException(f"{e.message}: {_describe(entry)}") from e

    record = TransferRecord(
        from_address=from_address,
        to_address=to_address,
        block_number=entry.block_number,
        block_hash=entry.block_hash,
        transaction_hash=entry.transaction_hash,
        log_index=entry.log_index,
        **amount
    )
    return standard, record
