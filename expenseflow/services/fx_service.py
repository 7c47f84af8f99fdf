"""
Foreign exchange service for currency conversion.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, List, Optional
import httpx
import logging
from expenseflow.core.config import settings

logger = logging.getLogger(__name__)

RateLookup = Callable[[str], Dict[str, Decimal]]


def fetch_latest_rates(currency: str) -> Dict[str, Decimal]:
    """
    Fetch the latest rates for a currency.

    Uses the ``/latest/{currency}`` endpoint of ExchangeRate-API, which
    answers with ``{"rates": {"EUR": 0.92, ...}}`` where each value is the
    amount of that currency one unit of ``currency`` buys.

    Raises:
        ValueError: the API could not be reached or answered unexpectedly
    """
    currency_upper = currency.upper()
    api_url = f"{settings.FX_API_URL.rstrip('/')}/latest/{currency_upper}"
    logger.info(f"Fetching latest exchange rates for {currency_upper}")

    try:
        response = httpx.get(api_url, timeout=settings.FX_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"HTTP error with exchange rate API: {e.response.status_code}")
        raise ValueError(f"Exchange rate API HTTP error: {e.response.status_code}")
    except httpx.HTTPError as e:
        # Network errors, timeouts
        logger.error(f"HTTP error with exchange rate API: {e}")
        raise ValueError(f"Exchange rate API network error: {str(e)}")

    if settings.DEBUG:
        logger.debug(f"Exchange rate API response: {data}")

    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise ValueError(f"Exchange rate API returned no rates for {currency_upper}")

    try:
        return {code.upper(): Decimal(str(value)) for code, value in rates.items()}
    except InvalidOperation:
        logger.error(f"Exchange rate API returned a non-numeric rate for {currency_upper}")
        raise ValueError(f"Exchange rate API returned a non-numeric rate for {currency_upper}")


def convert_amount(amount: Decimal, rate: Decimal) -> Decimal:
    """Convert an amount with a rate, rounded to 2 decimal places."""
    return (Decimal(amount) * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class RequestRateCache:
    """
    Rates looked up during one request.

    Each currency is looked up at most once; a failed lookup is remembered
    as missing so it is not retried within the same request.
    """

    def __init__(self, lookup: Optional[RateLookup] = None):
        self._lookup = lookup or fetch_latest_rates
        self._rates: Dict[str, Optional[Dict[str, Decimal]]] = {}

    def get_rate(self, currency: str, target_currency: str) -> Optional[Decimal]:
        """Rate from ``currency`` to ``target_currency``, or None if unavailable."""
        currency = currency.upper()
        target_currency = target_currency.upper()
        if currency == target_currency:
            return Decimal("1")

        if currency not in self._rates:
            try:
                self._rates[currency] = self._lookup(currency)
            except ValueError as e:
                logger.error(f"Could not fetch exchange rate for {currency}: {e}")
                self._rates[currency] = None

        rates = self._rates[currency]
        if not rates:
            return None
        return rates.get(target_currency)


def enrich_pending_expenses(
    expenses: Iterable[dict],
    default_currency: str,
    lookup: Optional[RateLookup] = None
) -> List[dict]:
    """
    Attach ``converted_amount`` to expenses not in the company currency.

    The conversion is for display only. Expenses whose rate could not be
    fetched are returned with ``converted_amount`` set to None.
    """
    cache = RequestRateCache(lookup)
    enriched = []
    for expense in expenses:
        item = dict(expense)
        item["converted_amount"] = None
        if item["currency"].upper() != default_currency.upper():
            rate = cache.get_rate(item["currency"], default_currency)
            if rate is not None:
                item["converted_amount"] = convert_amount(item["amount"], rate)
        enriched.append(item)
    return enriched
