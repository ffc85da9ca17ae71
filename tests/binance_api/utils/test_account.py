# tests/binance_api/utils/test_account.py

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from binance_api.core.exceptions import InvalidParameterError
from binance_api.core.models import Account, AssetBalance, TickerPrice
from binance_api.utils.account import (
    balance_in_btc,
    get_total_account_balance,
    price_map,
    total_balance_in_btc,
)

PRICES = [
    TickerPrice(symbol="ETHBTC", price=Decimal("0.05")),
    TickerPrice(symbol="BTCUSDT", price=Decimal("60000")),
    TickerPrice(symbol="BNBETH", price=Decimal("0.2")),
]


def _account(*balances):
    return Account.model_validate(
        {
            "makerCommission": 10, "takerCommission": 10, "buyerCommission": 0, "sellerCommission": 0,
            "canTrade": True, "canWithdraw": True, "canDeposit": True, "updateTime": 0,
            "balances": [{"asset": a, "free": f, "locked": l} for a, f, l in balances],
        }
    )


class TestBalanceInBtc:
    @pytest.fixture
    def prices(self):
        return price_map(PRICES)

    def test_btc_counts_free_and_locked(self, prices):
        balance = AssetBalance(asset="BTC", free=Decimal("1"), locked=Decimal("0.5"))
        assert balance_in_btc(balance, prices) == Decimal("1.5")

    def test_altcoin_uses_asset_btc_market(self, prices):
        balance = AssetBalance(asset="ETH", free=Decimal("10"), locked=Decimal("0"))
        assert balance_in_btc(balance, prices) == Decimal("0.5")

    def test_fiat_uses_btc_asset_market(self, prices):
        balance = AssetBalance(asset="USDT", free=Decimal("30000"), locked=Decimal("0"))
        assert balance_in_btc(balance, prices) == Decimal("0.5")

    def test_asset_without_btc_market_is_zero(self, prices):
        balance = AssetBalance(asset="BNB", free=Decimal("100"), locked=Decimal("0"))
        assert balance_in_btc(balance, prices) == Decimal("0")

    def test_empty_balance_is_zero(self, prices):
        balance = AssetBalance(asset="ETH", free=Decimal("0"), locked=Decimal("0"))
        assert balance_in_btc(balance, prices) == Decimal("0")


class TestTotals:
    def test_total_balance_in_btc(self):
        account = _account(("BTC", "1", "0.5"), ("ETH", "10", "0"), ("USDT", "30000", "0"), ("BNB", "5", "0"))

        assert total_balance_in_btc(account, price_map(PRICES)) == Decimal("2.5")

    @pytest.mark.asyncio
    async def test_total_account_balance_in_quote_asset(self):
        # Arrange
        client = MagicMock()
        client.get_account = AsyncMock(return_value=_account(("BTC", "1", "0"), ("ETH", "10", "0")))
        client.get_all_prices = AsyncMock(return_value=PRICES)

        # Act
        in_btc = await get_total_account_balance(client)
        in_usdt = await get_total_account_balance(client, quote_asset="USDT")

        # Assert
        assert in_btc == Decimal("1.5")
        assert in_usdt == Decimal("90000")

    @pytest.mark.asyncio
    async def test_unknown_quote_asset_raises(self):
        client = MagicMock()
        client.get_account = AsyncMock(return_value=_account(("BTC", "1", "0")))
        client.get_all_prices = AsyncMock(return_value=PRICES)

        with pytest.raises(InvalidParameterError) as exc_info:
            await get_total_account_balance(client, quote_asset="JPY")

        assert exc_info.value.name == "quote_asset"
