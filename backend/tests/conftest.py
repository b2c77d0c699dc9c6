from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest

from app.core.config import Settings
from app.db import create_db_engine, create_session_factory, init_db
from app.models import Fill, FillAsset, Relayer


@pytest.fixture
def test_settings(tmp_path, monkeypatch) -> Settings:
    settings = Settings(
        database_url=f"sqlite:///{tmp_path/'relay_fills.db'}",
        default_page_limit=20,
        max_page_limit=50,
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings


@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path/'fills.db'}")
    init_db(bind=engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def relayer(db_session) -> Relayer:
    record = Relayer(
        lookup_id=7,
        relayer_id="radarRelay",
        name="Radar Relay",
        slug="radar-relay",
        image_url="https://example.com/radar.png",
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def add_fill(db_session):
    """Insert a fill with sensible defaults; keyword overrides win."""

    counter = {"value": 0}

    def _add_fill(**overrides) -> Fill:
        counter["value"] += 1
        index = counter["value"]
        tokens = overrides.pop("tokens", ["0xweth"])
        fields = {
            "fill_id": f"fill-{index:03d}",
            "date": datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc),
            "transaction_hash": f"0xtx{index:03d}",
            "order_hash": f"0xorder{index:03d}",
            "maker_address": "0xmaker",
            "taker_address": "0xtaker",
            "transaction_from": "0xsender",
            "bridge_address": None,
            "bridged": False,
            "protocol_version": 3,
            "status": 1,
            "value": Decimal("100"),
            "trade_volume": Decimal("100"),
            "trade_count_contribution": Decimal("1"),
            "protocol_fee_eth": Decimal("1500000000000000"),
            "protocol_fee_usd": Decimal("0.5"),
            "search_text": f"0xtx{index:03d} 0xmaker 0xtaker",
        }
        fields.update(overrides)
        record = Fill(**fields)
        record.assets = [
            FillAsset(token_address=token, amount=Decimal("1000"), trader_type="maker")
            for token in tokens
        ]
        db_session.add(record)
        db_session.commit()
        return record

    return _add_fill
