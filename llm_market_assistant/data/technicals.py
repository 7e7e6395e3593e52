"""Technical indicator source.

Indicators are not computed yet: the source returns fixed neutral values
flagged as placeholders so the prompt can say so.
"""

from __future__ import annotations

from llm_market_assistant.core.models import BollingerBands, MacdValues, TechnicalIndicators


class PlaceholderIndicatorSource:
    """Returns neutral placeholder indicators for any symbol."""

    def fetch(self, symbol: str) -> TechnicalIndicators:
        return TechnicalIndicators(
            rsi=50.0,
            macd=MacdValues(value=0.0, signal=0.0, histogram=0.0),
            bollinger_bands=BollingerBands(upper=0.0, middle=0.0, lower=0.0),
            placeholder=True,
        )
