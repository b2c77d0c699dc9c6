from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.domain import FilterCriteria
from app.errors import CollaboratorError
from app.repositories import FillRepository, RelayerRepository, SearchLogRepository
from app.services.query_compiler import StructuredQuery, TermClause, compile_filter


def _ids(page) -> list[str]:
    return [fill.fill_id for fill in page.fills]


def test_search_orders_newest_first(db_session, add_fill):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    add_fill(fill_id="old", date=base)
    add_fill(fill_id="new", date=base + timedelta(days=2))
    add_fill(fill_id="mid", date=base + timedelta(days=1))

    page = FillRepository(db_session).search(StructuredQuery(), page=1, limit=10)

    assert page.total == 3
    assert _ids(page) == ["new", "mid", "old"]


def test_search_paginates_and_keeps_total(db_session, add_fill):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for index in range(5):
        add_fill(fill_id=f"f{index}", date=base + timedelta(hours=index))

    repo = FillRepository(db_session)
    second = repo.search(StructuredQuery(), page=2, limit=2)
    beyond = repo.search(StructuredQuery(), page=4, limit=2)

    assert second.total == 5
    assert _ids(second) == ["f2", "f1"]
    assert beyond.total == 5
    assert beyond.fills == []


def test_address_matches_maker_taker_or_sender(db_session, add_fill):
    add_fill(fill_id="as-maker", maker_address="0xme")
    add_fill(fill_id="as-taker", taker_address="0xme")
    add_fill(fill_id="as-sender", transaction_from="0xme")
    add_fill(fill_id="other")

    page = FillRepository(db_session).search(
        compile_filter(FilterCriteria(address="0xme")), page=1, limit=10
    )

    assert sorted(_ids(page)) == ["as-maker", "as-sender", "as-taker"]


def test_token_matches_any_asset(db_session, add_fill):
    add_fill(fill_id="dai-weth", tokens=["0xdai", "0xweth"])
    add_fill(fill_id="usdc", tokens=["0xusdc"])

    page = FillRepository(db_session).search(
        compile_filter(FilterCriteria(token="0xdai")), page=1, limit=10
    )

    assert _ids(page) == ["dai-weth"]


def test_equality_and_range_filters(db_session, add_fill, relayer):
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    add_fill(fill_id="match", date=base, relayer_lookup_id=7, status=2, value=Decimal("50"), bridged=True)
    add_fill(fill_id="wrong-status", date=base, relayer_lookup_id=7, status=1, value=Decimal("50"), bridged=True)
    add_fill(fill_id="too-cheap", date=base, relayer_lookup_id=7, status=2, value=Decimal("5"), bridged=True)
    add_fill(fill_id="too-late", date=base + timedelta(days=3), relayer_lookup_id=7, status=2, value=Decimal("50"), bridged=True)
    add_fill(fill_id="not-bridged", date=base, relayer_lookup_id=7, status=2, value=Decimal("50"), bridged=False)

    criteria = FilterCriteria(
        relayer_id=7,
        status=2,
        bridged=True,
        value_from=10.0,
        value_to=50.0,
        date_from=base,
        date_to=base + timedelta(days=1),
    )
    page = FillRepository(db_session).search(compile_filter(criteria), page=1, limit=10)

    assert _ids(page) == ["match"]
    assert page.fills[0].relayer.name == "Radar Relay"


def test_full_text_requires_every_word(db_session, add_fill):
    add_fill(fill_id="both", search_text="weth dai swap 0xabc")
    add_fill(fill_id="one", search_text="weth only")
    add_fill(fill_id="percent", search_text="100% weth")

    repo = FillRepository(db_session)
    both = repo.search(compile_filter(FilterCriteria(search_term="WETH dai")), page=1, limit=10)
    literal = repo.search(compile_filter(FilterCriteria(search_term="100%")), page=1, limit=10)

    assert _ids(both) == ["both"]
    assert _ids(literal) == ["percent"]


def test_aggregate_sums_matching_fills(db_session, add_fill):
    add_fill(value=Decimal("100"), trade_volume=Decimal("200"), trade_count_contribution=Decimal("1"),
             protocol_fee_eth=Decimal("1000000000000000000"), protocol_fee_usd=Decimal("2.5"))
    add_fill(value=Decimal("50"), trade_volume=Decimal("50"), trade_count_contribution=Decimal("0.5"),
             protocol_fee_eth=Decimal("500000000000000000"), protocol_fee_usd=Decimal("1.25"))

    totals = FillRepository(db_session).aggregate(StructuredQuery())

    assert totals.fill_count == 2
    assert totals.fill_volume == Decimal("150")
    assert totals.trade_volume == Decimal("250")
    assert totals.trade_count == Decimal("1.5")
    assert totals.protocol_fees_eth == Decimal("1500000000000000000")
    assert totals.protocol_fees_usd == Decimal("3.75")


def test_aggregate_with_no_matches_reports_zero(db_session):
    totals = FillRepository(db_session).aggregate(StructuredQuery())

    assert totals.fill_count == 0
    assert totals.fill_volume == 0
    assert totals.protocol_fees_eth == 0
    assert totals.protocol_fees_usd == 0
    assert totals.trade_count == 0
    assert totals.trade_volume == 0


def test_unsupported_term_field_is_rejected(db_session):
    query = StructuredQuery(clauses=(TermClause("colour", "blue"),))

    with pytest.raises(ValueError, match="colour"):
        FillRepository(db_session).search(query, page=1, limit=10)


def test_database_errors_become_collaborator_errors():
    session = MagicMock()
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

    with pytest.raises(CollaboratorError) as excinfo:
        FillRepository(session).aggregate(StructuredQuery())

    assert excinfo.value.collaborator == "fill index"


def test_get_fill_returns_none_when_missing(db_session, add_fill):
    add_fill(fill_id="present")

    repo = FillRepository(db_session)

    assert repo.get_fill("present").fill_id == "present"
    assert repo.get_fill("absent") is None


def test_relayer_lookup(db_session, relayer):
    repo = RelayerRepository(db_session)

    assert repo.get_lookup_id("radarRelay") == 7
    assert repo.get_lookup_id("unknown") is None


def test_search_log_records_terms(db_session):
    repo = SearchLogRepository(db_session)
    repo.record("weth", datetime(2024, 1, 1, tzinfo=timezone.utc))
    repo.record("weth", datetime(2024, 1, 2, tzinfo=timezone.utc))
    db_session.commit()

    assert repo.count_term("weth") == 2
    assert repo.count_term("dai") == 0
