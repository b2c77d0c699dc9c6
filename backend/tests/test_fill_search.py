from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.domain import FilterCriteria
from app.repositories import SearchLogRepository
from app.services.background import BestEffortRunner
from app.services.fill_search import FillSearchService
from app.services.filter_validator import validate_and_build_filter
from app.services.search_log import SearchTermLog


@pytest.fixture
def runner():
    runner = BestEffortRunner(max_workers=1)
    yield runner
    runner.shutdown(wait=True)


def _seed(add_fill, count: int) -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for index in range(count):
        add_fill(fill_id=f"fill-{index:03d}", date=base + timedelta(minutes=index))


def test_pages_and_total_over_45_fills(db_session, add_fill):
    _seed(add_fill, 45)
    service = FillSearchService(db_session)

    third = service.search(FilterCriteria(), page=3, limit=20)
    fourth = service.search(FilterCriteria(), page=4, limit=20)

    assert (third.page, third.pages, third.total) == (3, 3, 45)
    assert len(third.docs) == 5
    assert third.docs[0].id == "fill-004"
    assert fourth.docs == []
    assert (fourth.pages, fourth.total) == (3, 45)


def test_no_matches_gives_zero_pages(db_session):
    result = FillSearchService(db_session).search(FilterCriteria(), page=1, limit=20)

    assert (result.docs, result.pages, result.total) == ([], 0, 0)


def test_rejects_non_positive_paging(db_session):
    with pytest.raises(ValueError):
        FillSearchService(db_session).search(FilterCriteria(), page=0, limit=20)


def test_docs_are_shaped_for_the_api(db_session, add_fill, relayer):
    add_fill(
        fill_id="abc",
        relayer_lookup_id=7,
        status=2,
        protocol_fee_eth=Decimal("1500000000000000000"),
        protocol_fee_usd=Decimal("3.25"),
        tokens=["0xdai"],
    )

    doc = FillSearchService(db_session).search(FilterCriteria(), page=1, limit=20).docs[0]

    assert doc.id == "abc"
    assert doc.status == "failed"
    assert doc.relayer.relayer_id == "radarRelay"
    assert doc.protocol_fee.ETH == "1.5"
    assert doc.protocol_fee.USD == 3.25
    assert [asset.token_address for asset in doc.assets] == ["0xdai"]


def test_unknown_status_code_is_reported_as_null(db_session, add_fill):
    add_fill(status=9)

    doc = FillSearchService(db_session).search(FilterCriteria(), page=1, limit=20).docs[0]

    assert doc.status is None


def test_search_term_is_logged_in_background(db_session, add_fill, runner):
    add_fill(search_text="weth dai")
    logged = threading.Event()
    calls: list[tuple[str, datetime]] = []
    now = datetime(2024, 5, 5, tzinfo=timezone.utc)

    def log_search_term(term: str, searched_at: datetime) -> None:
        calls.append((term, searched_at))
        logged.set()

    service = FillSearchService(
        db_session, log_search_term=log_search_term, runner=runner, clock=lambda: now
    )
    result = service.search(FilterCriteria(search_term="weth"), page=1, limit=20)

    assert result.total == 1
    assert logged.wait(timeout=5)
    assert calls == [("weth", now)]


def test_search_without_term_does_not_log(db_session, runner):
    log_search_term = MagicMock()
    service = FillSearchService(db_session, log_search_term=log_search_term, runner=runner)

    service.search(FilterCriteria(status=1), page=1, limit=20)
    runner.shutdown(wait=True)

    log_search_term.assert_not_called()


def test_logging_failure_does_not_fail_search(db_session, add_fill):
    add_fill(search_text="weth")
    failures: list[str] = []
    failed = threading.Event()

    def on_failure(name: str, exc: BaseException) -> None:
        failures.append(name)
        failed.set()

    runner = BestEffortRunner(max_workers=1, on_failure=on_failure)
    service = FillSearchService(
        db_session,
        log_search_term=MagicMock(side_effect=RuntimeError("analytics down")),
        runner=runner,
    )

    result = service.search(FilterCriteria(search_term="weth"), page=1, limit=20)
    assert failed.wait(timeout=5)
    runner.shutdown(wait=True)

    assert result.total == 1
    assert failures == ["log_search_term"]
    assert runner.failure_count == 1


def test_search_term_log_persists_entries(session_factory):
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)

    SearchTermLog(session_factory).log_search_term("0xabc", when)

    with session_factory() as session:
        assert SearchLogRepository(session).count_term("0xabc") == 1


def test_get_fill_detail(db_session, add_fill):
    add_fill(fill_id="detail", transaction_hash="0xhash", order_hash="0xorder")
    service = FillSearchService(db_session)

    detail = service.get_fill("detail")

    assert detail.transaction_hash == "0xhash"
    assert detail.order_hash == "0xorder"
    assert service.get_fill("missing") is None


def test_offset_date_window_matches_fills_stored_in_utc(db_session, add_fill):
    add_fill(fill_id="inside", date=datetime(2024, 1, 1, 2, 0, tzinfo=timezone.utc))
    add_fill(fill_id="outside", date=datetime(2024, 1, 1, 4, 0, tzinfo=timezone.utc))
    criteria = validate_and_build_filter(
        {"dateFrom": "2024-01-01T05:00:00+05:00", "dateTo": "2024-01-01T08:00:00+05:00"},
        lambda relayer_id: None,
    )

    result = FillSearchService(db_session).search(criteria, page=1, limit=20)

    assert result.total == 1
    assert [doc.id for doc in result.docs] == ["inside"]
