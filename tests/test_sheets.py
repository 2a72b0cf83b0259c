import pytest

from portal.core.google import GoogleAPIError
from portal.sheets.cache import TableCache
from portal.sheets.fetcher import SheetFetchError
from portal.sheets.normalize import NormalizedTable, normalize_rows
from portal.sheets.resolver import ConfigNotFoundError, ConfigResolver


def _config_row(report_key, sheet_id, tab_name, range_, is_active=True):
    return {
        "report_key": report_key,
        "sheet_id": sheet_id,
        "tab_name": tab_name,
        "range": range_,
        "is_active": is_active,
    }


# --- normalize -------------------------------------------------------------

def test_normalize_pads_short_rows_and_drops_extra_cells():
    table = normalize_rows([["A", "B", "C"], ["1", "2"], ["x", "y", "z", "extra"]])

    assert table.headers == ["A", "B", "C"]
    assert table.rows == [
        {"A": "1", "B": "2", "C": ""},
        {"A": "x", "B": "y", "C": "z"},
    ]


def test_normalize_short_and_long_rows_example():
    table = normalize_rows([["A", "B"], ["1"], ["2", "3", "4"]])

    assert table.headers == ["A", "B"]
    assert table.rows == [{"A": "1", "B": ""}, {"A": "2", "B": "3"}]


def test_normalize_empty_result_is_an_empty_table():
    assert normalize_rows([]) == NormalizedTable()
    assert normalize_rows(None) == NormalizedTable(headers=[], rows=[])


def test_normalize_header_only():
    table = normalize_rows([["Only", "Headers"]])
    assert table.headers == ["Only", "Headers"]
    assert table.rows == []


def test_preview_reports_first_row():
    preview = normalize_rows([["A"], ["1"], ["2"]]).preview()
    assert preview == {"headers": ["A"], "row_count": 2, "first_row": {"A": "1"}}


# --- cache -----------------------------------------------------------------

def test_cache_entry_expires_after_ttl(clock):
    cache = TableCache(ttl_seconds=300, clock=clock)
    cache.set("ot_report", NormalizedTable(headers=["A"], rows=[]))

    clock.advance(299.5)
    assert cache.get("ot_report") is not None

    clock.advance(0.5)
    assert cache.get("ot_report") is None


def test_cache_invalidate_and_clear(clock):
    cache = TableCache(clock=clock)
    cache.set("a", NormalizedTable())
    cache.set("b", NormalizedTable())

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") is not None

    cache.clear()
    assert len(cache) == 0


# --- resolver --------------------------------------------------------------

@pytest.mark.asyncio
async def test_resolver_prefers_active_db_config(config_table):
    config_table.rows["stock_180"] = _config_row("stock_180", "db-sheet", "Data", "A1:C")
    resolver = ConfigResolver(
        lookup=config_table.get_active,
        static_configs={"stock_180": {"sheet_id": "static-sheet", "range": "Stock!A1:F"}},
    )

    location = await resolver.resolve("stock_180")

    assert (location.sheet_id, location.range, location.source) == ("db-sheet", "Data!A1:C", "db")


@pytest.mark.asyncio
async def test_resolver_falls_back_to_static_when_db_config_inactive(config_table):
    config_table.rows["stock_180"] = _config_row("stock_180", "db-sheet", "Data", "A1:C", is_active=False)
    resolver = ConfigResolver(
        lookup=config_table.get_active,
        static_configs={"stock_180": {"sheet_id": "static-sheet", "range": "Stock!A1:F"}},
    )

    location = await resolver.resolve("stock_180")

    assert (location.sheet_id, location.range, location.source) == ("static-sheet", "Stock!A1:F", "static")


@pytest.mark.asyncio
async def test_resolver_raises_not_found_naming_the_key(config_table):
    resolver = ConfigResolver(lookup=config_table.get_active, static_configs={})

    with pytest.raises(ConfigNotFoundError) as excinfo:
        await resolver.resolve("ot_report")

    assert excinfo.value.report_key == "ot_report"
    assert "ot_report" in str(excinfo.value)


# --- fetcher ---------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_within_ttl_calls_api_once(fetcher, reader):
    first = await fetcher.fetch("stock_180")
    second = await fetcher.fetch("stock_180")

    assert reader.calls == [("static-sheet", "Stock!A1:F")]
    assert first == second
    assert first.table.rows == [{"Name": "Bolt", "Qty": "4"}]


@pytest.mark.asyncio
async def test_fetch_after_ttl_refetches(fetcher, reader, clock):
    await fetcher.fetch("stock_180")
    clock.advance(300)
    await fetcher.fetch("stock_180")

    assert len(reader.calls) == 2


@pytest.mark.asyncio
async def test_invalidate_one_key_or_all(fetcher, reader, config_table):
    config_table.rows["ot_report"] = _config_row("ot_report", "ot-sheet", "OT", "A1:D")
    await fetcher.fetch("stock_180")
    await fetcher.fetch("ot_report")

    fetcher.invalidate("ot_report")
    await fetcher.fetch("stock_180")
    await fetcher.fetch("ot_report")
    assert len(reader.calls) == 3

    fetcher.invalidate()
    await fetcher.fetch("stock_180")
    await fetcher.fetch("ot_report")
    assert len(reader.calls) == 5


@pytest.mark.asyncio
async def test_fetch_unknown_key_does_not_call_api(fetcher, reader):
    with pytest.raises(ConfigNotFoundError):
        await fetcher.fetch("budget_vs_achievement")
    assert reader.calls == []


@pytest.mark.asyncio
async def test_fetch_failure_is_wrapped_and_stale_entry_not_served(fetcher, reader, clock):
    await fetcher.fetch("stock_180")
    clock.advance(301)
    reader.error = GoogleAPIError("Google API request failed: 503 backend error", status_code=503)

    with pytest.raises(SheetFetchError) as excinfo:
        await fetcher.fetch("stock_180")
    assert "Failed to fetch sheet data" in str(excinfo.value)

    with pytest.raises(SheetFetchError):
        await fetcher.fetch("stock_180")
    assert len(reader.calls) == 3


@pytest.mark.asyncio
async def test_config_change_needs_invalidation_to_take_effect(fetcher, reader, config_table):
    config_table.rows["x"] = _config_row("x", "S", "T", "A1:B2")

    await fetcher.fetch("x")
    assert reader.calls[-1] == ("S", "T!A1:B2")

    config_table.rows["x"] = _config_row("x", "S", "T", "A1:C3")
    await fetcher.fetch("x")
    assert len(reader.calls) == 1

    fetcher.invalidate("x")
    await fetcher.fetch("x")
    assert reader.calls[-1] == ("S", "T!A1:C3")
    assert len(reader.calls) == 2


@pytest.mark.asyncio
async def test_fetch_location_bypasses_cache(fetcher, reader):
    await fetcher.fetch("stock_180")
    location = await fetcher.resolver.resolve("stock_180")

    table = await fetcher.fetch_location(location)

    assert table.headers == ["Name", "Qty"]
    assert len(reader.calls) == 2
