import pytest

from award_scraper.award import Award
from award_scraper.exceptions import IntegrityError
from award_scraper.flight import Flight
from award_scraper.models import Cabin
from award_scraper.segment import Segment
from award_scraper.site_config import BookingClass

FIRST = BookingClass("OS", Cabin.FIRST)
ECONOMY = BookingClass("XS", Cabin.ECONOMY)


def nh_flight(first="first", second="business"):
    return Flight([
        Segment("NH111", "ORD", "HND", "2019-09-18", "11:15", "14:35", cabin=first, lag_days=1),
        Segment("NH961", "HND", "PEK", "2019-09-20", "09:00", "11:55", cabin=second),
    ])


def test_cabins_default_from_segments():
    award = Award("AC", FIRST, flight=nh_flight(), mileage_cost=210000)
    assert award.cabins == (Cabin.FIRST, Cabin.BUSINESS)
    assert award.mixed_cabin
    assert award.partner


def test_cabins_fall_back_to_fare_cabin():
    award = Award("AC", ECONOMY, flight=nh_flight(None, None))
    assert award.cabins == (Cabin.ECONOMY, Cabin.ECONOMY)
    assert not award.mixed_cabin


def test_explicit_partner_and_cabin_count():
    award = Award("ac", ECONOMY, cabins=["economy", "premium"], partner=False, flight=nh_flight())
    assert award.engine == "AC"
    assert award.partner is False
    with pytest.raises(IntegrityError):
        Award("AC", ECONOMY, cabins=["economy"], flight=nh_flight())


def test_partner_is_false_for_own_metal():
    flight = Flight([Segment("AC500", "ORD", "YYZ", "2019-09-18", "07:00", "09:40")])
    assert Award("AC", ECONOMY, flight=flight).partner is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"engine": ""},
        {"engine": "AIRCANADA"},
        {"engine": 7},
        {"fare": "XS"},
        {"quantity": 0},
        {"mileage_cost": -1},
        {"fees": "12.50"},
        {"cabins": "economy"},
        {"cabins": ["steerage"]},
    ],
)
def test_invalid_awards(kwargs):
    values = {"engine": "AC", "fare": ECONOMY}
    values.update(kwargs)
    with pytest.raises(IntegrityError):
        Award(**values)


def test_to_dict():
    award = Award("AC", FIRST, flight=nh_flight(), mileage_cost=210000, fees="1,234.50 USD")
    data = award.to_dict()
    assert data["fare"] == "OS"
    assert data["cabins"] == ["first", "business"]
    assert data["mixed_cabin"] is True
    assert data["fees"] == "1,234.50 USD"
