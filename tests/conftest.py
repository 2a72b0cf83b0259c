import pytest

from portal.sheets.cache import TableCache
from portal.sheets.fetcher import CachedFetcher
from portal.sheets.resolver import ConfigResolver


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSheetReader:
    """
    Stands in for GoogleClient.get_sheet_values and records every call.
    """

    def __init__(self, values=None, error=None):
        self.values = values if values is not None else [["Name", "Qty"], ["Bolt", "4"]]
        self.error = error
        self.calls = []

    async def __call__(self, sheet_id, range_):
        self.calls.append((sheet_id, range_))
        if self.error is not None:
            raise self.error
        return self.values


class ConfigTable:
    """
    In-memory `sheet_configs` lookup keyed by report key.
    """

    def __init__(self, rows=None):
        self.rows = dict(rows or {})

    async def get_active(self, report_key):
        row = self.rows.get(report_key)
        if row is None or not row.get("is_active", True):
            return None
        return row


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reader():
    return FakeSheetReader()


@pytest.fixture
def config_table():
    return ConfigTable()


@pytest.fixture
def fetcher(clock, reader, config_table):
    return CachedFetcher(
        resolver=ConfigResolver(
            lookup=config_table.get_active,
            static_configs={"stock_180": {"sheet_id": "static-sheet", "range": "Stock!A1:F"}},
        ),
        reader=reader,
        cache=TableCache(ttl_seconds=300, clock=clock),
    )
