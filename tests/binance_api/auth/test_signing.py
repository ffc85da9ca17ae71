# tests/binance_api/auth/test_signing.py

import time
from decimal import Decimal

import pytest
from pydantic import SecretStr

from binance_api.auth.signing import (
    SignedRequestBuilder,
    build_query_string,
    compute_signature,
    to_wire_value,
)
from binance_api.core.constants import API_KEY_HEADER
from binance_api.core.enums import OrderSide, SecurityType, TimeInForce
from binance_api.core.exceptions import InvalidParameterError, MissingCredentialsError



@pytest.fixture
def builder(doc_settings, fixed_clock):
    return SignedRequestBuilder(
        api_key=doc_settings.api_key,
        api_secret=doc_settings.api_secret,
        clock=fixed_clock,
    )


class TestComputeSignature:
    """Tests for the raw HMAC helper."""

    def test_golden_value_for_symbol_and_timestamp(self, doc_secret):
        payload = build_query_string({"symbol": "ETHBTC", "timestamp": "1499827319559"})
        assert payload == "symbol=ETHBTC&timestamp=1499827319559"
        assert (
            compute_signature(doc_secret, payload)
            == "326d191402ee0a5835e01dce2ac0c42e9be60c5b9dedff42d20a81aa0a77e41d"
        )

    def test_golden_value_from_documented_order_example(self, doc_secret):
        payload = (
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1"
            "&price=0.1&recvWindow=5000&timestamp=1499827319559"
        )
        assert (
            compute_signature(doc_secret, payload)
            == "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"
        )

    def test_signature_is_lowercase_hex(self):
        signature = compute_signature("secret", "a=1")
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_deterministic(self, doc_secret):
        payload = "symbol=BNBUSDT&side=SELL&quantity=3"
        assert compute_signature(doc_secret, payload) == compute_signature(doc_secret, payload)

    def test_single_character_change_alters_signature(self, doc_secret):
        original = compute_signature(doc_secret, "symbol=ETHBTC&price=0.1")
        mutated = compute_signature(doc_secret, "symbol=ETHBTC&price=0.2")
        assert original != mutated


class TestWireValues:
    """Tests for value normalisation ahead of serialization."""

    def test_enum_uses_wire_value(self):
        assert to_wire_value(OrderSide.BUY) == "BUY"
        assert to_wire_value(TimeInForce.GTC) == "GTC"

    def test_bool_is_lowercase(self):
        assert to_wire_value(True) == "true"
        assert to_wire_value(False) == "false"

    def test_decimal_avoids_exponent_notation(self):
        assert to_wire_value(Decimal("1E-7")) == "0.0000001"

    def test_query_string_preserves_insertion_order(self):
        params = {"z": "1", "a": "2", "m": "3"}
        assert build_query_string(params) == "z=1&a=2&m=3"

    def test_query_string_keeps_values_verbatim(self):
        assert build_query_string({"newClientOrderId": "my-order_1.0"}) == "newClientOrderId=my-order_1.0"


class TestSign:
    """Tests for SignedRequestBuilder.sign."""

    def test_golden_value_with_caller_supplied_timestamp(self, builder):
        # Arrange
        params = {"symbol": "ETHBTC", "timestamp": "1499827319559"}

        # Act
        signed = builder.sign(params)

        # Assert
        assert list(signed) == ["symbol", "timestamp", "signature"]
        assert signed["signature"] == "326d191402ee0a5835e01dce2ac0c42e9be60c5b9dedff42d20a81aa0a77e41d"

    def test_documented_example_with_existing_recv_window(self, builder):
        params = {
            "symbol": "LTCBTC",
            "side": "BUY",
            "type": "LIMIT",
            "timeInForce": "GTC",
            "quantity": "1",
            "price": "0.1",
            "recvWindow": "5000",
            "timestamp": "1499827319559",
        }

        signed = builder.sign(params)

        assert signed["signature"] == "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"
        assert list(signed)[-1] == "signature"

    def test_injects_timestamp_from_clock(self, builder):
        signed = builder.sign({"symbol": "ETHBTC"})

        assert signed["timestamp"] == "1499827319559"
        assert signed["signature"] == "326d191402ee0a5835e01dce2ac0c42e9be60c5b9dedff42d20a81aa0a77e41d"

    def test_injected_timestamp_is_current(self):
        # Arrange
        builder = SignedRequestBuilder(api_key="key", api_secret=SecretStr("secret"))
        before = int(time.time() * 1000)

        # Act
        signed = builder.sign({"symbol": "ETHBTC"})
        after = int(time.time() * 1000)

        # Assert
        assert before <= int(signed["timestamp"]) <= after + 50

    def test_clock_is_read_on_every_call(self):
        ticks = iter([1000, 2000])
        builder = SignedRequestBuilder(api_key="key", api_secret=SecretStr("secret"), clock=lambda: next(ticks))

        first = builder.sign({"symbol": "ETHBTC"})
        second = builder.sign({"symbol": "ETHBTC"})

        assert first["timestamp"] == "1000"
        assert second["timestamp"] == "2000"
        assert first["signature"] != second["signature"]

    def test_recv_window_appended_after_timestamp(self, builder):
        signed = builder.sign({"symbol": "ETHBTC"}, recv_window=5000)

        assert list(signed) == ["symbol", "timestamp", "recvWindow", "signature"]
        assert signed["signature"] == "43897182eec922ca6e73afecd85df0056c7b09e94997b28ddd704a410696c9bf"

    def test_default_recv_window_used_when_not_given(self):
        builder = SignedRequestBuilder(
            api_key="key", api_secret=SecretStr("secret"), clock=lambda: 1, default_recv_window=60000
        )

        signed = builder.sign({"symbol": "ETHBTC"})

        assert signed["recvWindow"] == "60000"

    def test_recv_window_omitted_by_default(self, builder):
        signed = builder.sign({"symbol": "ETHBTC"})
        assert "recvWindow" not in signed

    def test_signature_covers_exact_transmitted_payload(self, builder, doc_secret):
        signed = builder.sign({"symbol": "ETHBTC", "side": "BUY"}, recv_window=5000)

        payload = build_query_string({k: v for k, v in signed.items() if k != "signature"})

        assert signed["signature"] == compute_signature(doc_secret, payload)

    def test_mutating_one_value_changes_signature(self, builder):
        original = builder.sign({"symbol": "ETHBTC", "quantity": "1.0"})
        mutated = builder.sign({"symbol": "ETHBTC", "quantity": "1.1"})
        assert original["signature"] != mutated["signature"]

    def test_does_not_mutate_input(self, builder):
        params = {"symbol": "ETHBTC"}
        builder.sign(params)
        assert params == {"symbol": "ETHBTC"}

    def test_stale_signature_is_replaced_and_moved_last(self, builder):
        # Arrange
        params = {"symbol": "ETHBTC", "signature": "stale", "timestamp": "1499827319559"}

        # Act
        signed = builder.sign(params)

        # Assert
        assert list(signed) == ["symbol", "timestamp", "signature"]
        assert signed["signature"] == "326d191402ee0a5835e01dce2ac0c42e9be60c5b9dedff42d20a81aa0a77e41d"

    def test_missing_secret_raises(self):
        builder = SignedRequestBuilder(api_key="key", api_secret=None)
        with pytest.raises(MissingCredentialsError):
            builder.sign({"symbol": "ETHBTC"})

    def test_empty_secret_raises(self):
        builder = SignedRequestBuilder(api_key="key", api_secret=SecretStr(""))
        with pytest.raises(MissingCredentialsError):
            builder.sign({"symbol": "ETHBTC"})


class TestPrepare:
    """Tests for SignedRequestBuilder.prepare."""

    def test_public_endpoint_has_no_signature_even_with_secret(self, builder):
        prepared = builder.prepare({"symbol": "ETHBTC", "limit": 10}, SecurityType.NONE)

        assert "signature" not in prepared.params
        assert "timestamp" not in prepared.params
        assert prepared.params == {"symbol": "ETHBTC", "limit": "10"}

    def test_api_key_endpoint_sends_header_without_signature(self, builder, doc_settings):
        prepared = builder.prepare({"listenKey": "abc"}, SecurityType.API_KEY)

        assert prepared.headers == {API_KEY_HEADER: doc_settings.api_key}
        assert "signature" not in prepared.params

    def test_signed_endpoint_sends_header_and_signature(self, builder, doc_settings):
        prepared = builder.prepare({"symbol": "ETHBTC"}, SecurityType.SIGNED)

        assert prepared.headers == {API_KEY_HEADER: doc_settings.api_key}
        assert prepared.query_string == (
            "symbol=ETHBTC&timestamp=1499827319559"
            "&signature=326d191402ee0a5835e01dce2ac0c42e9be60c5b9dedff42d20a81aa0a77e41d"
        )

    def test_caller_signature_never_reaches_signed_payload(self, builder, doc_secret):
        prepared = builder.prepare({"symbol": "ETHBTC", "signature": "stale"}, SecurityType.SIGNED)

        unsigned, signature = prepared.query_string.rsplit("&signature=", 1)
        assert list(prepared.params)[-1] == "signature"
        assert unsigned == "symbol=ETHBTC&timestamp=1499827319559"
        assert "stale" not in prepared.query_string
        assert signature == compute_signature(doc_secret, unsigned)

    def test_public_endpoint_without_credentials_has_no_header(self):
        builder = SignedRequestBuilder()
        prepared = builder.prepare({"symbol": "ETHBTC"}, SecurityType.NONE)
        assert prepared.headers == {}

    def test_signed_endpoint_without_key_raises(self):
        builder = SignedRequestBuilder(api_key=None, api_secret=SecretStr("secret"))
        with pytest.raises(MissingCredentialsError):
            builder.prepare({"symbol": "ETHBTC"}, SecurityType.SIGNED)

    def test_signed_endpoint_without_secret_raises(self):
        builder = SignedRequestBuilder(api_key="key")
        with pytest.raises(MissingCredentialsError):
            builder.prepare({"symbol": "ETHBTC"}, SecurityType.SIGNED)

    def test_optional_none_values_are_dropped(self, builder):
        prepared = builder.prepare({"symbol": "ETHBTC", "fromId": None, "limit": 5}, SecurityType.NONE)
        assert list(prepared.params) == ["symbol", "limit"]

    def test_missing_mandatory_parameter_raises(self, builder):
        with pytest.raises(InvalidParameterError) as exc_info:
            builder.prepare({"symbol": None}, SecurityType.SIGNED, required=("symbol",))
        assert exc_info.value.name == "symbol"

    def test_repr_hides_secret(self, builder, doc_secret):
        assert doc_secret not in repr(builder)
