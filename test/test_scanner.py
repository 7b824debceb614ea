"""
Tests - Signal Scanner
======================
Pipeline por ticker: velas -> análisis -> transición -> notificación.
"""

import asyncio

import main
from main import SignalScanner
from src.logic.alert_state import AlertType
from src.logic.models import DetectionResult

from conftest import candles_from_closes
from fakes import FakeMarketData


class RecordingNotifications:
    def __init__(self):
        self.transitions = []

    async def start(self):
        pass

    async def stop(self):
        pass

    async def handle_transition(self, transition):
        self.transitions.append(transition)


def _result(cond1, cond2):
    return DetectionResult(
        down=cond1, rsi_divergence=cond1, macd_bullish=cond1, engulfing=cond2,
        cond1=cond1, cond2=cond2, last_rsi=35.0, last_macd_histogram=0.1, indicators=None,
    )


def test_insufficient_history_emits_nothing():
    notifications = RecordingNotifications()
    scanner = SignalScanner(
        tickers=["AAPL"],
        market_data=FakeMarketData(candles_from_closes([100.0] * 10)),
        notifications=notifications,
    )

    transitions = asyncio.run(scanner.scan_once())

    assert transitions == []
    assert notifications.transitions == []


def test_alerts_only_on_rising_edge(monkeypatch):
    results = iter([_result(True, False), _result(True, False), _result(True, True)])
    monkeypatch.setattr(main, "analyze", lambda candles: next(results))

    candles = candles_from_closes([100.0 + i for i in range(40)])
    notifications = RecordingNotifications()
    scanner = SignalScanner(
        tickers=["AAPL"],
        market_data=FakeMarketData(candles),
        notifications=notifications,
    )

    async def scenario():
        return [await scanner.scan_once() for _ in range(3)]

    passes = asyncio.run(scenario())

    assert [len(p) for p in passes] == [1, 0, 1]
    assert [t.alert_type for t in notifications.transitions] == [AlertType.WATCH, AlertType.ENTRY]
    assert notifications.transitions[0].price == candles[-1].close


def test_scan_covers_every_ticker(mock_candles):
    market_data = FakeMarketData(mock_candles)
    scanner = SignalScanner(
        tickers=["AAPL", "TSLA", "NVDA"],
        market_data=market_data,
        notifications=RecordingNotifications(),
    )

    asyncio.run(scanner.scan_once())

    assert market_data.calls == ["AAPL", "TSLA", "NVDA"]


def test_stop_shuts_down_services(mock_candles):
    market_data = FakeMarketData(mock_candles)
    scanner = SignalScanner(tickers=["AAPL"], market_data=market_data, notifications=RecordingNotifications())

    async def scenario():
        await scanner.initialize()
        scanner.is_running = True
        await scanner.stop()

    asyncio.run(scenario())

    assert market_data.started is False
    assert scanner.shutdown_event.is_set()


class BrokenMarketData(FakeMarketData):
    """Falla con un error inesperado para un ticker concreto."""

    def __init__(self, candles, broken_ticker):
        super().__init__(candles)
        self.broken_ticker = broken_ticker

    async def fetch_candles(self, ticker):
        if ticker == self.broken_ticker:
            self.calls.append(ticker)
            raise TypeError("int() argument must be a string or a number, not 'NoneType'")
        return await super().fetch_candles(ticker)


def test_failing_ticker_does_not_stop_the_scan(monkeypatch):
    monkeypatch.setattr(main, "analyze", lambda candles: _result(True, True))

    market_data = BrokenMarketData(candles_from_closes([100.0 + i for i in range(40)]), "TSLA")
    notifications = RecordingNotifications()
    scanner = SignalScanner(
        tickers=["AAPL", "TSLA", "NVDA"],
        market_data=market_data,
        notifications=notifications,
    )

    transitions = asyncio.run(scanner.scan_once())

    assert market_data.calls == ["AAPL", "TSLA", "NVDA"]
    assert [t.ticker for t in transitions] == ["AAPL", "NVDA"]
    assert all(t.alert_type is AlertType.ENTRY for t in notifications.transitions)


def test_real_reversal_emits_entry_alert(traded_sequences):
    candles, report = traded_sequences[0]
    prefix = candles[:report.trades[0].entry_index + 1]
    notifications = RecordingNotifications()
    scanner = SignalScanner(
        tickers=["TSLA"],
        market_data=FakeMarketData(prefix),
        notifications=notifications,
    )

    transitions = asyncio.run(scanner.scan_once())

    assert [t.alert_type for t in transitions] == [AlertType.ENTRY]
    assert notifications.transitions[0].price == prefix[-1].close
