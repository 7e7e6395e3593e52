"""Prompt construction for market analysis requests."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from llm_market_assistant.core.models import (
    AssetSnapshot,
    MarketContext,
    PriceHistory,
    SentimentSnapshot,
    TechnicalIndicators,
)
from llm_market_assistant.infra.llm_infra.types import CompletionMessage, CompletionRequest

ANALYZE_COMMAND = "/analyze"
UNAVAILABLE = "unavailable"

ANALYZE_USAGE_MESSAGE = "Please provide a cryptocurrency symbol to analyze. Example: /analyze BTC"

SYSTEM_PROMPT = """You are a cryptocurrency market analyst and trading assistant. Your role is to analyze market data and provide clear, data-driven insights. When given market data, analyze it thoroughly and present your findings in a structured format.

For analysis requests, structure your response as follows:

1. MARKET SUMMARY
- Current price and 24h change
- Trading volume analysis
- Market capitalization context

2. TECHNICAL ANALYSIS
- Price trends and patterns
- Support and resistance levels
- Volume analysis
- Key technical indicators

3. MARKET SENTIMENT
- Overall market sentiment
- News sentiment impact
- Social sentiment signals
- Fear & Greed context

4. RISKS AND OPPORTUNITIES
- Potential upside catalysts
- Downside risks
- Key levels to watch
- Market positioning

5. RECOMMENDATION SUMMARY
- Short-term outlook (24-48 hours)
- Medium-term perspective (1-4 weeks)
- Key action points for traders
- Risk management suggestions

Only use the market data provided in the user message. Data marked "unavailable" is unknown; do not guess it.

Always conclude with these important disclaimers:
- This analysis is for informational purposes only
- Cryptocurrency markets are highly volatile
- Past performance doesn't guarantee future results
- Never invest more than you can afford to lose
- Always do your own research (DYOR)
"""

ANALYZE_INSTRUCTION = """Please provide a detailed analysis for {symbol} including:
1. Current market conditions
2. Recent price movements
3. Technical indicators
4. Market sentiment
5. Key support and resistance levels
6. Potential risks and opportunities

Please format your response in clear sections and include relevant disclaimers about market volatility and risk."""

QUESTION_INSTRUCTION = """Please analyze the available market data and provide trading insights for {symbol}, considering:
1. Current price and recent price action
2. Market trends and potential support/resistance levels
3. Risk assessment and trading considerations
4. General market sentiment

Remember to include appropriate risk disclaimers in your analysis."""

_NON_ALPHA = re.compile(r"[^A-Z]")


# ============================================================================
# Command parsing
# ============================================================================


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    """User text split into mode and optional explicit symbol."""

    text: str
    analyze: bool = False
    symbol: Optional[str] = None

    @property
    def needs_symbol(self) -> bool:
        return self.analyze and not self.symbol


def parse_command(text: str) -> ParsedCommand:
    """Detect a leading ``/analyze`` token and the symbol that follows it."""
    stripped = text.strip()
    parts = stripped.split(maxsplit=2)
    if not parts or parts[0].lower() != ANALYZE_COMMAND:
        return ParsedCommand(text=stripped)

    symbol = _NON_ALPHA.sub("", parts[1].upper()) if len(parts) > 1 else ""
    return ParsedCommand(text=stripped, analyze=True, symbol=symbol or None)


# ============================================================================
# Number formatting
# ============================================================================


def format_percent(value: Optional[float]) -> str:
    if value is None:
        return UNAVAILABLE
    return f"{value:+.2f}%"


def format_compact(value: Optional[float], prefix: str = "") -> str:
    """Scale to thousands/millions/billions with a one-letter suffix."""
    if value is None:
        return UNAVAILABLE
    magnitude = abs(value)
    for threshold, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if magnitude >= threshold:
            return f"{prefix}{value / threshold:,.2f}{suffix}"
    return f"{prefix}{value:,.2f}"


def format_price(value: Optional[float]) -> str:
    if value is None:
        return UNAVAILABLE
    if abs(value) >= 1:
        return f"${value:,.2f}"
    return f"${value:.6f}"


def format_date(value: Optional[str]) -> str:
    if not value:
        return UNAVAILABLE
    return value[:10]


def format_number(value: Optional[float]) -> str:
    if value is None:
        return UNAVAILABLE
    return f"{value:,.2f}"


# ============================================================================
# Sections
# ============================================================================


def _price_section(asset: AssetSnapshot) -> List[str]:
    lines = [
        "Price Information:",
        f"- Current Price: {format_price(asset.price)}",
        f"- 24h Change: {format_percent(asset.change_24h)}",
        f"- 24h Volume: {format_compact(asset.volume_24h, '$')}",
        f"- Market Cap: {format_compact(asset.market_cap, '$')}",
    ]
    ext = asset.extended
    if ext is None:
        lines += ["", "Historical Milestones: unavailable", "", "Supply Information: unavailable"]
        return lines

    max_supply = format_compact(ext.max_supply) if ext.max_supply is not None else "Unlimited"
    lines += [
        "",
        "Historical Milestones:",
        f"- All-Time High: {format_price(ext.ath_price)} ({format_date(ext.ath_date)})",
        f"- All-Time Low: {format_price(ext.atl_price)} ({format_date(ext.atl_date)})",
        "",
        "Supply Information:",
        f"- Circulating Supply: {format_compact(ext.circulating_supply)} {asset.symbol}",
        f"- Total Supply: {format_compact(ext.total_supply)} {asset.symbol}",
        f"- Maximum Supply: {max_supply} {asset.symbol}",
    ]
    return lines


def _technical_section(indicators: TechnicalIndicators) -> List[str]:
    header = "Technical Indicators"
    if indicators.placeholder:
        header += " (placeholder values, not computed from price history)"
    bands = indicators.bollinger_bands
    return [
        f"{header}:",
        f"- RSI (14): {format_number(indicators.rsi)}",
        f"- MACD: value {format_number(indicators.macd.value)}, "
        f"signal {format_number(indicators.macd.signal)}, "
        f"histogram {format_number(indicators.macd.histogram)}",
        f"- Bollinger Bands: upper {format_number(bands.upper)}, "
        f"middle {format_number(bands.middle)}, lower {format_number(bands.lower)}",
    ]


def _sentiment_section(sentiment: SentimentSnapshot) -> List[str]:
    fear_greed = UNAVAILABLE if sentiment.fear_greed_index is None else str(sentiment.fear_greed_index)
    lines = [
        "Market Sentiment:",
        f"- Overall News Sentiment: {sentiment.overall.upper()} "
        f"({sentiment.positive_count} positive, {sentiment.negative_count} negative, "
        f"{sentiment.neutral_count} neutral of {sentiment.total_articles} articles)",
        f"- Social Sentiment: {sentiment.social or UNAVAILABLE}",
        f"- Fear & Greed Index: {fear_greed}",
        f"- As of: {sentiment.updated_at.strftime('%Y-%m-%d %H:%M UTC')}",
    ]
    if sentiment.articles:
        lines.append("- Top Headlines:")
        for article in sentiment.articles:
            lines.append(f"  * [{article.sentiment}] {article.title} ({article.source})")
    return lines


def _history_section(history: PriceHistory) -> List[str]:
    lines = [f"Historical Data ({history.days} days):"]
    price_range = history.price_range
    volume_range = history.volume_range
    if price_range is None:
        lines.append(f"- Price Range: {UNAVAILABLE}")
    else:
        lines.append(f"- Price Range: {format_price(price_range[0])} - {format_price(price_range[1])}")
    if volume_range is None:
        lines.append(f"- Volume Range: {UNAVAILABLE}")
    else:
        lines.append(
            f"- Volume Range: {format_compact(volume_range[0], '$')} - {format_compact(volume_range[1], '$')}"
        )
    return lines


def render_market_context(context: MarketContext) -> str:
    """Render available sections; unavailable sections are left out entirely."""
    name = f" ({context.price.value.name})" if context.price.value is not None else ""
    blocks: List[List[str]] = [[f"Current Market Data for {context.symbol}{name}:"]]
    if context.price.value is not None:
        blocks.append(_price_section(context.price.value))
    if context.technicals.value is not None:
        blocks.append(_technical_section(context.technicals.value))
    if context.sentiment.value is not None:
        blocks.append(_sentiment_section(context.sentiment.value))
    if context.history is not None and context.history.value is not None:
        blocks.append(_history_section(context.history.value))
    return "\n\n".join("\n".join(block) for block in blocks)


# ============================================================================
# Request
# ============================================================================


def build_user_prompt(command: ParsedCommand, context: Optional[MarketContext], symbol: Optional[str]) -> str:
    """Build the user turn for ``command`` with whatever market data is available."""
    if command.analyze and command.symbol:
        parts = [ANALYZE_INSTRUCTION.format(symbol=command.symbol)]
        if context is not None:
            parts.append(render_market_context(context))
        return "\n\n".join(parts)

    if context is None or symbol is None:
        return command.text

    return "\n\n".join(
        [
            f"User Question: {command.text}",
            render_market_context(context),
            QUESTION_INSTRUCTION.format(symbol=symbol),
        ]
    )


def compose_request(
    command: ParsedCommand,
    context: Optional[MarketContext],
    symbol: Optional[str],
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 2000,
) -> CompletionRequest:
    return CompletionRequest(
        model=model,
        messages=(
            CompletionMessage(role="system", content=SYSTEM_PROMPT),
            CompletionMessage(role="user", content=build_user_prompt(command, context, symbol)),
        ),
        temperature=temperature,
        max_tokens=max_tokens,
        stream=False,
    )
