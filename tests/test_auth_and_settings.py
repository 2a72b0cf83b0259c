import pytest
from fastapi import HTTPException

from portal.auth import security
from portal.auth.dependencies import _extract_bearer_token
from portal.core import settings


def test_password_hash_round_trip():
    hashed = security.hash_password("correct horse")

    assert security.verify_password("correct horse", hashed)
    assert not security.verify_password("wrong horse", hashed)
    assert not security.verify_password("correct horse", "not-a-bcrypt-hash")


def test_access_token_carries_role(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    token = security.build_access_token(user_id=5, email="a@example.com", role="admin")

    claims = security.decode_access_token(token)

    assert claims["sub"] == "5"
    assert claims["role"] == "admin"


def test_expired_access_token_is_rejected(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MIN", "-1")
    token = security.build_access_token(user_id=5, email="a@example.com", role="viewer")

    with pytest.raises(security.AuthSecurityError, match="expired"):
        security.decode_access_token(token)


def test_refresh_token_hash_is_stable():
    raw = security.build_refresh_token()
    assert security.hash_refresh_token(raw) == security.hash_refresh_token(raw)
    assert security.hash_refresh_token(raw) != raw


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer   "])
def test_bearer_header_is_required(header):
    with pytest.raises(HTTPException) as excinfo:
        _extract_bearer_token(header)
    assert excinfo.value.status_code == 401


def test_static_sheet_configs_accepts_both_key_styles(monkeypatch):
    monkeypatch.setenv(
        "GOOGLE_SHEETS_CONFIG",
        '{"stock_180": {"sheetId": "abc", "range": "Stock!A1:F"},'
        ' "ot_report": {"sheet_id": "def", "range": "OT!A:D"},'
        ' "broken": {"sheetId": "ghi"}}',
    )

    assert settings.static_sheet_configs() == {
        "stock_180": {"sheet_id": "abc", "range": "Stock!A1:F"},
        "ot_report": {"sheet_id": "def", "range": "OT!A:D"},
    }


def test_static_sheet_configs_tolerates_bad_json(monkeypatch):
    monkeypatch.setenv("GOOGLE_SHEETS_CONFIG", "{not json")
    assert settings.static_sheet_configs() == {}


def test_numeric_settings_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("SHEET_CACHE_TTL_SECONDS", "soon")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "0")

    assert settings.sheet_cache_ttl_seconds() == 300
    assert settings.max_upload_bytes() == 10 * 1024 * 1024


def test_service_account_info_is_required(monkeypatch):
    monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT_JSON", raising=False)
    with pytest.raises(RuntimeError):
        settings.service_account_info()


@pytest.mark.parametrize(("raw", "expected"), [("0", 1), ("-5", 1), ("60", 60), ("", 300)])
def test_sheet_cache_ttl_is_at_least_one_second(monkeypatch, raw, expected):
    monkeypatch.setenv("SHEET_CACHE_TTL_SECONDS", raw)
    assert settings.sheet_cache_ttl_seconds() == expected
