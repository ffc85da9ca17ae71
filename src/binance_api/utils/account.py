# src/binance_api/utils/account.py

# --- Built Ins ---
from decimal import Decimal
from typing import Dict, Iterable

# --- Installed ---
from loguru import logger as log

# --- Local Application Imports ---
from ..clients.rest_client import BinanceAsyncRestClient
from ..core.constants import BTC_TICKER, FIAT_CURRENCIES
from ..core.exceptions import InvalidParameterError
from ..core.models import Account, AssetBalance, TickerPrice


def price_map(prices: Iterable[TickerPrice]) -> Dict[str, Decimal]:
    return {p.symbol: p.price for p in prices}


def balance_in_btc(balance: AssetBalance, prices: Dict[str, Decimal]) -> Decimal:
    """
    Values one spot balance in BTC.
    Fiat/stable assets are quoted as BTC<asset>, everything else as <asset>BTC.
    Assets without a BTC market are valued at zero.
    """
    amount = balance.total
    if amount == 0:
        return Decimal("0")
    if balance.asset == BTC_TICKER:
        return amount

    if balance.asset in FIAT_CURRENCIES:
        price = prices.get(f"{BTC_TICKER}{balance.asset}")
        if price:
            return amount / price
    else:
        price = prices.get(f"{balance.asset}{BTC_TICKER}")
        if price:
            return amount * price

    log.debug(f"No BTC market found for {balance.asset}; valuing it at zero.")
    return Decimal("0")


def total_balance_in_btc(account: Account, prices: Dict[str, Decimal]) -> Decimal:
    return sum((balance_in_btc(b, prices) for b in account.balances), Decimal("0"))


async def get_total_account_balance(
    client: BinanceAsyncRestClient,
    quote_asset: str = BTC_TICKER,
) -> Decimal:
    """
    Total spot account value in BTC, or in `quote_asset` via the BTC<quote> price.
    """
    account = await client.get_account()
    prices = price_map(await client.get_all_prices())
    total_btc = total_balance_in_btc(account, prices)
    if quote_asset == BTC_TICKER:
        return total_btc

    btc_price = prices.get(f"{BTC_TICKER}{quote_asset}")
    if btc_price is None:
        raise InvalidParameterError("quote_asset", f"no {BTC_TICKER}{quote_asset} market to value the account in")
    return total_btc * btc_price
