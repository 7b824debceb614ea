"""
Run Backtest - Command Line Report
==================================
Descarga las velas horarias de un ticker, ejecuta el backtest de señales
cond2 y muestra un resumen (o JSON con --json).

Uso:
    python scripts/run_backtest.py --ticker AAPL
    python scripts/run_backtest.py --ticker TSLA --hold-bars 8 --stop-pct 0.03 --json
    python scripts/run_backtest.py --ticker NVDA --chart nvda.png
"""

import argparse
import asyncio
import json
import os
import sys
from dataclasses import replace

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from config import Config
from src.logic.models import BacktestParams, BacktestReport
from src.services import BacktestService, YahooChartService
from src.services.backtest_service import BacktestRun
from src.utils.charting import generate_chart_base64, save_chart_png
from src.utils.indicators import compute_indicator_series


def build_params(args) -> BacktestParams:
    params = BacktestParams.from_config()
    overrides = {
        name: value
        for name, value in (
            ("hold_bars", args.hold_bars),
            ("stop_pct", args.stop_pct),
            ("take_pct", args.take_pct),
        )
        if value is not None
    }
    return replace(params, **overrides) if overrides else params


def format_report(run: BacktestRun, params: BacktestParams) -> str:
    """Resumen legible del backtest (valores redondeados solo aquí)."""
    lines = [
        "=" * 60,
        f"BACKTEST {run.ticker} | Velas: {run.candle_count} | Fuente: {run.source}",
        f"Hold: {params.hold_bars} velas | Stop: {params.stop_pct:.1%} | Take: {params.take_pct:.1%}",
        "=" * 60,
    ]

    outcome = run.outcome
    if not isinstance(outcome, BacktestReport):
        lines.append(
            f"⏳ Datos insuficientes: {outcome.available} velas, se necesitan {outcome.required}"
        )
        return "\n".join(lines)

    lines.append(f"Operaciones: {outcome.trade_count}")
    lines.append(f"Win rate:    {outcome.win_rate:.1f}%")
    lines.append(f"PnL medio:   {outcome.average_pnl:+.2f}%")
    lines.append(f"PnL total:   {outcome.total_pnl:+.2f}%")

    if outcome.trades:
        lines.append("-" * 60)
        lines.append(f"{'Vela':>6} {'Entrada':>10} {'Salida':>10} {'Motivo':>12} {'+N':>3} {'PnL':>8}")
        for trade in outcome.trades:
            lines.append(
                f"{trade.entry_index:>6} {trade.entry_price:>10.2f} {trade.exit_price:>10.2f} "
                f"{trade.exit_reason.value:>12} {trade.exit_offset:>3} {trade.pnl_percent:>+7.2f}%"
            )

    return "\n".join(lines)


async def run(args) -> int:
    params = build_params(args)
    params.validate()

    market_data = YahooChartService()
    await market_data.start()
    try:
        service = BacktestService(market_data, params=params)
        result = await service.run(args.ticker)

        if args.chart:
            feed = await market_data.fetch_candles(args.ticker)
            indicators = compute_indicator_series([c.close for c in feed.candles])
            chart = await asyncio.to_thread(
                generate_chart_base64, feed.candles, indicators, 60, f"{args.ticker} 1H"
            )
            save_chart_png(chart, args.chart)
    finally:
        await market_data.stop()

    if args.json:
        payload = {
            "ticker": result.ticker,
            "source": result.source,
            "candles": result.candle_count,
        }
        if isinstance(result.outcome, BacktestReport):
            payload["report"] = result.outcome.to_dict(decimals=2)
        else:
            payload["report"] = {
                "status": result.outcome.status,
                "required": result.outcome.required,
                "available": result.outcome.available,
            }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(format_report(result, params))

    return 0


def main():
    parser = argparse.ArgumentParser(description="Backtest of 1H downtrend reversal signals")
    parser.add_argument("--ticker", type=str, default=Config.SCANNER.tickers[0], help="Ticker symbol (e.g. AAPL)")
    parser.add_argument("--hold-bars", type=int, help="Max candles in position")
    parser.add_argument("--stop-pct", type=float, help="Stop loss fraction (0.02 = 2%%)")
    parser.add_argument("--take-pct", type=float, help="Take profit fraction (0.04 = 4%%)")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--chart", type=str, help="Save a PNG chart with RSI/MACD panels to this path")

    args = parser.parse_args()
    args.ticker = args.ticker.upper()

    try:
        sys.exit(asyncio.run(run(args)))
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
