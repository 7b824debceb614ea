"""
Tests - Alert History Storage
=============================
Orden (más reciente primero), límite, ids crecientes y recuperación
de un archivo corrupto.
"""

import asyncio
import json

import pytest

from src.logic.alert_state import AlertType, SignalTransition
from src.services.alert_history_storage import AlertHistoryStorage


def _transition(ticker="AAPL", alert_type=AlertType.WATCH, price=187.2):
    return SignalTransition(ticker, alert_type, "mensaje", price)


def test_history_is_newest_first(tmp_path):
    storage = AlertHistoryStorage(history_file=str(tmp_path / "history.json"), limit=10)

    async def scenario():
        await storage.record(_transition("AAPL"))
        await storage.record(_transition("TSLA", AlertType.ENTRY))
        await storage.record(_transition("NVDA", price=None))
        return await storage.get_history()

    history = asyncio.run(scenario())

    assert [entry["id"] for entry in history] == [3, 2, 1]
    assert [entry["ticker"] for entry in history] == ["NVDA", "TSLA", "AAPL"]
    assert history[1]["type"] == "cond2"
    assert history[0]["price"] is None
    assert set(history[0]) == {"id", "ticker", "type", "message", "time", "price"}


def test_history_is_capped(tmp_path):
    storage = AlertHistoryStorage(history_file=str(tmp_path / "history.json"), limit=2)

    async def scenario():
        for ticker in ("A", "B", "C"):
            await storage.record(_transition(ticker))
        return await storage.get_history()

    history = asyncio.run(scenario())

    assert [entry["ticker"] for entry in history] == ["C", "B"]


def test_ids_continue_after_reopen(tmp_path):
    path = str(tmp_path / "history.json")
    asyncio.run(AlertHistoryStorage(history_file=path).record(_transition()))

    reopened = AlertHistoryStorage(history_file=path)
    entry = asyncio.run(reopened.record(_transition("MSFT")))

    assert entry["id"] == 2


def test_corrupt_file_is_reset(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{not valid json", encoding="utf-8")

    storage = AlertHistoryStorage(history_file=str(path))
    assert asyncio.run(storage.get_history()) == []

    asyncio.run(storage.record(_transition()))
    assert len(json.loads(path.read_text(encoding="utf-8"))) == 1


def test_creates_missing_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "history.json"
    AlertHistoryStorage(history_file=str(path))
    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_invalid_limit_raises(tmp_path):
    with pytest.raises(ValueError):
        AlertHistoryStorage(history_file=str(tmp_path / "h.json"), limit=0)
