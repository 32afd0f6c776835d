import pytest

from award_scraper.exceptions import ParserError
from award_scraper.models import Cabin, ErrorKind
from award_scraper.query import Query
from award_scraper.registry import default_registry
from award_scraper.results import Results

NH_KEY = "2019-09-18:ORD:NH111:2:HND:NH961"
AC_KEY = "2019-09-18:ORD:AC500:0:YYZ:AC31"
UA_KEY = "2019-09-18:ORD:UA851"
RETURN_KEY = "2019-09-25:PEK:AC32:0:YYZ:AC501"


def _results():
    query = Query("ORD", "PEK", "2019-09-18", "economy", return_date="2019-09-25")
    return Results("AC", query, default_registry())


async def _parse(payload):
    results = _results()
    await results.save_json("results", payload)
    return results


@pytest.mark.asyncio
async def test_flights_are_deduplicated_and_sorted(ac_payload):
    parsed = await _parse(ac_payload)
    assert parsed.ok
    assert [x.key for x in parsed.flights] == [AC_KEY, NH_KEY, UA_KEY, RETURN_KEY]
    assert len(parsed.awards) == 8
    counts = {x.key: len(x.awards) for x in parsed.flights}
    assert counts == {AC_KEY: 2, NH_KEY: 1, UA_KEY: 3, RETURN_KEY: 2}


@pytest.mark.asyncio
async def test_fares_and_mileage(ac_payload):
    parsed = await _parse(ac_payload)
    by_key = {x.key: x for x in parsed.flights}
    assert [(a.fare.code, a.mileage_cost) for a in by_key[UA_KEY].awards] == [
        ("XS", 75000),
        ("IS", 150000),
        ("XP", 110000),
    ]
    assert [(a.fare.code, a.mileage_cost) for a in by_key[RETURN_KEY].awards] == [
        ("XS", 75000),
        ("IP", 200000),
    ]

    nh = by_key[NH_KEY].awards[0]
    assert nh.fare.code == "OS"
    assert nh.cabins == (Cabin.FIRST, Cabin.BUSINESS)
    assert nh.mixed_cabin
    assert nh.mileage_cost == 210000


@pytest.mark.asyncio
async def test_partner_detection(ac_payload):
    parsed = await _parse(ac_payload)
    by_key = {x.key: x for x in parsed.flights}
    assert all(a.partner for a in by_key[UA_KEY].awards)
    assert all(a.partner for a in by_key[NH_KEY].awards)
    assert not any(a.partner for a in by_key[AC_KEY].awards)
    assert not any(a.partner for a in by_key[RETURN_KEY].awards)


@pytest.mark.asyncio
async def test_segment_details(ac_payload):
    parsed = await _parse(ac_payload)
    by_key = {x.key: x for x in parsed.flights}

    ua = by_key[UA_KEY]
    assert ua.duration == 830
    assert ua.overnight
    assert ua.segments[0].aircraft == "789"
    assert ua.segments[0].lag_days == 1

    ac = by_key[AC_KEY]
    assert [x.flight for x in ac.segments] == ["AC500", "AC31"]
    assert [x.duration for x in ac.segments] == [100, 825]
    assert ac.connections == (240,)
    assert ac.duration == 1165

    nh = by_key[NH_KEY]
    assert [x.duration for x in nh.segments] == [800, 235]
    assert nh.connections == (1105,)

    back = by_key[RETURN_KEY]
    assert [x.duration for x in back.segments] == [775, 120]
    assert [x.overnight for x in back.segments] == [True, False]
    assert back.connections == (145,)


@pytest.mark.asyncio
async def test_missing_results_record_parser_error():
    results = _results()
    await results.save_json("results", {"error": "session expired"})
    assert results.awards is None
    assert results.flights is None
    assert isinstance(results.error, ParserError)
    assert results.error_kind is ErrorKind.PARSER


@pytest.mark.asyncio
async def test_unknown_cabin_code_is_a_parser_error(ac_payload):
    option = ac_payload["NormalResults"]["product"][0]["tripComponent"][0]["ODoption"][0]
    option["segment"][0]["cabin"] = "Z"
    results = _results()
    await results.save_json("results", ac_payload)
    assert results.awards is None
    assert "Unknown Aeroplan cabin code" in str(results.error)


@pytest.mark.asyncio
async def test_parsing_is_repeatable(ac_payload):
    first = await _parse(ac_payload)
    second = await _parse(ac_payload)
    assert [x.key for x in first.flights] == [x.key for x in second.flights]
    assert [x.to_dict() for x in first.flights] == [x.to_dict() for x in second.flights]


@pytest.mark.asyncio
async def test_is_partner(ac_payload):
    module = default_registry()["AC"]
    parser = module.parser("AC", module.config)
    by_key = {x.key: x for x in (await _parse(ac_payload)).flights}

    assert not parser.is_partner(by_key[AC_KEY].segments)
    assert parser.is_partner(by_key[UA_KEY].segments)
    assert not parser.is_partner(by_key[UA_KEY].segments, others=["ua"])
    assert parser.is_partner(by_key[NH_KEY].segments, others=["UA"])
