import pytest

from core.exceptions import BatchQueryMismatchException
from holdings.entities import BatchQueryResponse, ERC20Info, ERC721Info, ERC721TokenInfo
from holdings.ledger import build_ledgers
from holdings.merger import merge_batch_result
from holdings.params import build_query_params


def _owner(address: str) -> int:
    return int(address, 16)


def _bytes32(text: str) -> bytes:
    return text.encode().ljust(32, b"\x00")


class TestMergeBatchResult:
    """Tests for folding the positional query response into the snapshot."""

    def test_erc20_balance_comes_from_query(self, make_log, account, addresses):
        token = addresses["erc20_a"]
        book = build_ledgers(account, [make_log(token, addresses["other"], account, value=100)], [])
        params = build_query_params(book)
        response = BatchQueryResponse(
            balance=10 ** 18,
            block_number=1234,
            erc20_infos=[ERC20Info(name=b"Token A", symbol=_bytes32("TKA"), decimals=6, balance=42)]
        )

        snapshot = merge_batch_result(account, book, params, response)

        ledger = snapshot.erc20_tokens[token]
        assert ledger.balance == "42"
        assert ledger.name == "Token A"
        assert ledger.symbol == "TKA"
        assert ledger.decimals == 6
        assert ledger.block_number == 1234
        assert len(ledger.history) == 1
        assert snapshot.balance == str(10 ** 18)
        assert snapshot.block_number == 1234
        assert snapshot.address == account
        assert snapshot.transaction_count == -1
        assert snapshot.errors == []

    def test_nft_sent_away_before_query_is_discarded(self, make_log, account, addresses):
        token = addresses["erc721_b"]
        book = build_ledgers(account, [make_log(token, addresses["other"], account, token_id=5)], [])
        params = build_query_params(book)
        assert params.token_ids == ["0x05"]
        response = BatchQueryResponse(
            balance=0,
            block_number=50,
            erc721_infos=[ERC721Info(name=b"Kitties", symbol=b"CK")],
            erc721_token_infos=[ERC721TokenInfo(owner=_owner(addresses["other"]), token_uri=b"https://x/5")]
        )

        snapshot = merge_batch_result(account, book, params, response)

        ledger = snapshot.erc721_tokens[token]
        assert ledger.tokens == []
        assert ledger.name == "Kitties"
        assert ledger.block_number == 50
        assert snapshot.errors == []

    def test_token_cursor_spans_contracts(self, make_log, account, addresses):
        other = addresses["other"]
        incoming = [
            make_log(addresses["erc721_b"], other, account, token_id=1),
            make_log(addresses["erc721_b"], other, account, token_id=2),
            make_log(addresses["erc721_d"], other, account, token_id=3),
        ]
        book = build_ledgers(account, incoming, [])
        params = build_query_params(book)
        assert params.erc721_addresses == [addresses["erc721_d"], addresses["erc721_b"]]
        assert params.token_ids == ["0x03", "0x01", "0x02"]
        response = BatchQueryResponse(
            balance=0,
            block_number=9,
            erc721_infos=[ERC721Info(name=b"D", symbol=b"DD"), ERC721Info(name=b"", symbol=b"")],
            erc721_token_infos=[
                ERC721TokenInfo(owner=_owner(account), token_uri=b""),
                ERC721TokenInfo(owner=_owner(account), token_uri=b"uri-1"),
                ERC721TokenInfo(owner=_owner(other), token_uri=b"uri-2"),
            ]
        )

        snapshot = merge_batch_result(account, book, params, response)

        b_tokens = snapshot.erc721_tokens[addresses["erc721_b"]].tokens
        d_tokens = snapshot.erc721_tokens[addresses["erc721_d"]].tokens
        assert [(t.token_id, t.token_uri) for t in b_tokens] == [("0x01", "uri-1")]
        assert [(t.token_id, t.token_uri) for t in d_tokens] == [("0x03", None)]
        assert snapshot.erc721_tokens[addresses["erc721_b"]].name is None
        assert snapshot.erc721_tokens[addresses["erc721_d"]].name == "D"
        assert list(snapshot.erc721_tokens) == [addresses["erc721_d"], addresses["erc721_b"]]

    def test_owner_wider_than_address_is_discarded(self, make_log, account, addresses):
        token = addresses["erc721_b"]
        book = build_ledgers(account, [make_log(token, addresses["other"], account, token_id=1)], [])
        params = build_query_params(book)
        response = BatchQueryResponse(
            balance=0,
            block_number=1,
            erc721_infos=[ERC721Info(name=b"N", symbol=b"S")],
            erc721_token_infos=[ERC721TokenInfo(owner=(1 << 160) + _owner(account), token_uri=b"u")]
        )

        snapshot = merge_batch_result(account, book, params, response)

        assert snapshot.erc721_tokens[token].tokens == []

    def test_undecodable_name_is_diagnosed(self, make_log, account, addresses):
        token = addresses["erc20_a"]
        book = build_ledgers(account, [make_log(token, addresses["other"], account, value=1)], [])
        params = build_query_params(book)
        response = BatchQueryResponse(
            balance=0,
            block_number=1,
            erc20_infos=[ERC20Info(name=b"\xff\xfe", symbol=b"\x00" * 32, decimals=18, balance=1)]
        )

        snapshot = merge_batch_result(account, book, params, response)

        ledger = snapshot.erc20_tokens[token]
        assert ledger.name is None
        assert ledger.symbol is None
        assert ledger.balance == "1"
        assert len(snapshot.errors) == 1
        assert snapshot.errors[0].operation == "decodeString"
        assert token in snapshot.errors[0].message

    def test_log_diagnostics_are_carried_over(self, make_log, account, addresses):
        malformed = make_log(addresses["erc20_c"], addresses["other"], account, data=b"\x00" * 64)
        book = build_ledgers(account, [malformed], [])
        params = build_query_params(book)

        snapshot = merge_batch_result(account, book, params, BatchQueryResponse(balance=0, block_number=1))

        assert [e.operation for e in snapshot.errors] == ["classifyLog"]
        assert snapshot.erc20_tokens == {}

    def test_misaligned_response_is_rejected(self, make_log, account, addresses):
        book = build_ledgers(account, [make_log(addresses["erc721_b"], addresses["other"], account, token_id=1)], [])
        params = build_query_params(book)
        response = BatchQueryResponse(
            balance=0,
            block_number=1,
            erc721_infos=[ERC721Info(name=b"", symbol=b"")]
        )

        with pytest.raises(BatchQueryMismatchException):
            merge_batch_result(account, book, params, response)


class TestBatchQueryResponse:
    """Tests for parsing the raw contract call result."""

    def test_from_call_result(self):
        raw = [
            5,
            100,
            [(b"A", b"B", 18, 7)],
            [(b"N", b"S")],
            [(0x11, b"uri")],
        ]

        response = BatchQueryResponse.from_call_result(raw)

        assert response.balance == 5
        assert response.block_number == 100
        assert response.erc20_infos[0].balance == 7
        assert response.erc721_infos[0].symbol == b"S"
        assert response.erc721_token_infos[0].owner == 0x11
        assert response.erc721_token_infos[0].token_uri == b"uri"
