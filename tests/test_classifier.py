import pytest

from core.exceptions import MalformedLogEntryException
from holdings.classifier import classify_log
from holdings.codec import TRANSFER_TOPIC, address_to_topic
from holdings.entities import TokenStandard


class TestClassifyLog:
    """Tests for ERC-20 / ERC-721 Transfer log classification."""

    def test_erc20_transfer(self, make_log, account, addresses):
        entry = make_log(addresses["erc20_a"], addresses["other"], account, value=10 ** 30, block_number=7)

        standard, record = classify_log(entry)

        assert standard is TokenStandard.ERC20
        assert record.from_address == addresses["other"]
        assert record.to_address == account
        assert record.value == str(10 ** 30)
        assert record.token_id is None
        assert record.block_number == 7
        assert record.transaction_hash == entry.transaction_hash

    def test_erc721_transfer(self, make_log, account, addresses):
        entry = make_log(addresses["erc721_b"], account, addresses["other"], token_id=5)

        standard, record = classify_log(entry)

        assert standard is TokenStandard.ERC721
        assert record.from_address == account
        assert record.to_address == addresses["other"]
        assert record.token_id == "0x05"
        assert record.value is None

    def test_three_topics_with_64_byte_data_is_malformed(self, make_log, account, addresses):
        entry = make_log(addresses["erc20_a"], addresses["other"], account, data=b"\x00" * 64)

        with pytest.raises(MalformedLogEntryException) as exc_info:
            classify_log(entry)
        assert addresses["erc20_a"] in exc_info.value.message

    def test_four_topics_with_data_is_malformed(self, make_log, account, addresses):
        entry = make_log(addresses["erc721_b"], addresses["other"], account, token_id=1, data=b"\x00" * 32)

        with pytest.raises(MalformedLogEntryException):
            classify_log(entry)

    def test_bad_address_padding_is_malformed(self, make_log, account, addresses):
        dirty = b"\x01" * 12 + bytes.fromhex("11" * 20)
        entry = make_log(
            addresses["erc20_a"], addresses["other"], account,
            topics=[TRANSFER_TOPIC, dirty, address_to_topic(account)],
            data=(1).to_bytes(32, "big")
        )

        with pytest.raises(MalformedLogEntryException):
            classify_log(entry)
