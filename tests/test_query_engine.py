from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from plaque_registry.models.plaque import Plaque
from plaque_registry.services.plaques import ListQuery, build_predicate, get_statistics, list_plaques, total_pages
from plaque_registry.utils.exceptions import StoreUnavailable
from plaque_registry.utils.time import to_utc_z

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def _add_plaques(db, rows):
    """Insert rows in order, each one second newer than the previous."""
    for i, row in enumerate(rows):
        stamp = to_utc_z(BASE_TIME + timedelta(seconds=i))
        db.add(Plaque(
            plate_number=row["plate"],
            owner_name=row.get("owner", "Jean Mukendi"),
            owner_email=row.get("email", f"owner{i}@example.cd"),
            owner_phone=row.get("phone"),
            registration_date=stamp,
            expiry_date=to_utc_z(BASE_TIME + timedelta(days=365)),
            status=row.get("status", "active"),
            created_at=stamp,
            updated_at=stamp,
        ))
    await db.commit()


def test_list_query_defaults():
    query = ListQuery.from_raw()
    assert query == ListQuery(page=1, limit=10, search=None, status=None)
    assert query.offset == 0


def test_list_query_clamps_page_and_limit():
    assert ListQuery.from_raw(page="0").page == 1
    assert ListQuery.from_raw(page="-4").page == 1
    assert ListQuery.from_raw(page="abc").page == 1
    assert ListQuery.from_raw(limit="0").limit == 1
    assert ListQuery.from_raw(limit="5000").limit == 100
    assert ListQuery.from_raw(limit="oops").limit == 10
    assert ListQuery.from_raw(page="3", limit="20").offset == 40


def test_list_query_drops_blank_search_and_unknown_status():
    query = ListQuery.from_raw(search="   ", status="archived")
    assert query.search is None
    assert query.status is None
    assert build_predicate(query) is None


def test_list_query_normalizes_status_case():
    assert ListQuery.from_raw(status=" Expired ").status == "expired"


def test_total_pages():
    assert total_pages(0, 10) == 0
    assert total_pages(1, 10) == 1
    assert total_pages(10, 10) == 1
    assert total_pages(11, 10) == 2


@pytest.mark.asyncio
async def test_list_returns_newest_first(db_session):
    await _add_plaques(db_session, [{"plate": "P1"}, {"plate": "P2"}, {"plate": "P3"}])

    result = await list_plaques(db_session, ListQuery.from_raw())

    assert [p.plate_number for p in result["records"]] == ["P3", "P2", "P1"]
    assert result["pagination"].total == 3
    assert result["pagination"].total_pages == 1


@pytest.mark.asyncio
async def test_page_sizes_follow_total(db_session):
    await _add_plaques(db_session, [{"plate": f"KIN-{i:03d}"} for i in range(23)])

    for page, expected in [(1, 10), (2, 10), (3, 3), (4, 0), (10, 0)]:
        result = await list_plaques(db_session, ListQuery(page=page, limit=10))
        assert len(result["records"]) == min(10, max(0, 23 - (page - 1) * 10))
        assert len(result["records"]) == expected
        assert result["pagination"].total == 23
        assert result["pagination"].total_pages == 3


@pytest.mark.asyncio
async def test_pages_do_not_overlap(db_session):
    await _add_plaques(db_session, [{"plate": f"LUB-{i:02d}"} for i in range(7)])

    first = await list_plaques(db_session, ListQuery(page=1, limit=4))
    second = await list_plaques(db_session, ListQuery(page=2, limit=4))

    plates = [p.plate_number for p in first["records"] + second["records"]]
    assert len(plates) == 7
    assert len(set(plates)) == 7


@pytest.mark.asyncio
async def test_empty_store_has_zero_pages(db_session):
    result = await list_plaques(db_session, ListQuery.from_raw())
    assert result["records"] == []
    assert result["pagination"].total == 0
    assert result["pagination"].total_pages == 0


@pytest.mark.asyncio
async def test_search_matches_email_only(db_session):
    await _add_plaques(db_session, [
        {"plate": "AA-100", "owner": "Paul Ilunga", "email": "paul@example.cd"},
        {"plate": "BB-200", "owner": "Marie Kabila", "email": "registry-desk@ministere.cd"},
    ])

    result = await list_plaques(db_session, ListQuery.from_raw(search="registry-desk"))

    assert [p.plate_number for p in result["records"]] == ["BB-200"]
    assert result["pagination"].total == 1


@pytest.mark.asyncio
async def test_search_is_case_insensitive_across_fields(db_session):
    await _add_plaques(db_session, [
        {"plate": "smt-001", "owner": "Alice Tshala"},
        {"plate": "XYZ-002", "owner": "John SMITH"},
        {"plate": "XYZ-003", "owner": "Other", "email": "asmith@example.cd"},
        {"plate": "XYZ-004", "owner": "Nobody"},
    ])

    result = await list_plaques(db_session, ListQuery.from_raw(search="Smith"))

    assert sorted(p.plate_number for p in result["records"]) == ["XYZ-002", "XYZ-003"]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(db_session):
    await _add_plaques(db_session, [{"plate": "100%-A"}, {"plate": "100-B"}])

    result = await list_plaques(db_session, ListQuery.from_raw(search="%"))

    assert [p.plate_number for p in result["records"]] == ["100%-A"]


@pytest.mark.asyncio
async def test_search_and_status_are_combined(db_session):
    await _add_plaques(db_session, [
        {"plate": "S-1", "owner": "Anna Smith", "status": "expired"},
        {"plate": "S-2", "owner": "Bob Smith", "status": "active"},
        {"plate": "S-3", "owner": "Carl Jones", "status": "expired"},
    ])

    result = await list_plaques(db_session, ListQuery.from_raw(search="smith", status="expired"))

    assert [p.plate_number for p in result["records"]] == ["S-1"]
    assert result["pagination"].total == 1


@pytest.mark.asyncio
async def test_unknown_status_is_ignored(db_session):
    await _add_plaques(db_session, [
        {"plate": "U-1", "status": "active"},
        {"plate": "U-2", "status": "suspended"},
    ])

    result = await list_plaques(db_session, ListQuery.from_raw(status="revoked"))

    assert result["pagination"].total == 2


class _BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT count(*) FROM plaques", {}, Exception("unable to open database file"))

    async def rollback(self):
        pass


@pytest.mark.asyncio
async def test_store_failure_surfaces_as_store_unavailable():
    with pytest.raises(StoreUnavailable) as exc_info:
        await list_plaques(_BrokenSession(), ListQuery.from_raw())
    assert exc_info.value.status_code == 503

    with pytest.raises(StoreUnavailable):
        await get_statistics(_BrokenSession())


@pytest.mark.asyncio
async def test_page_beyond_integer_range_is_empty(db_session):
    await _add_plaques(db_session, [{"plate": "BIG-1"}, {"plate": "BIG-2"}])

    query = ListQuery.from_raw(page=str(10**17), limit="100")
    result = await list_plaques(db_session, query)

    assert result["records"] == []
    assert result["pagination"].page == 10**17
    assert result["pagination"].total == 2
    assert result["pagination"].total_pages == 1
