"""Services package initialization."""

from .base_market_data_service import CandleFeed, MarketDataService
from .market_data_service import (
    MarketDataError,
    YahooChartService,
    generate_mock_candles,
    parse_chart_payload,
)
from .alert_history_storage import AlertHistoryStorage
from .notification_service import NotificationService, format_alert_text
from .backtest_service import BacktestRun, BacktestService

__all__ = [
    "CandleFeed",
    "MarketDataService",
    "MarketDataError",
    "YahooChartService",
    "generate_mock_candles",
    "parse_chart_payload",
    "AlertHistoryStorage",
    "NotificationService",
    "format_alert_text",
    "BacktestRun",
    "BacktestService",
]
