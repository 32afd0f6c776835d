"""Aeroplan (Air Canada)"""

from ...models import Cabin
from ...site_config import BookingClass, SiteConfig, ThrottleProfile
from .parser import AeroplanParser as Parser
from .searcher import AeroplanSearcher as Searcher

config = SiteConfig(
    name="Aeroplan",
    home_url="https://www.aeroplan.com/landing/process.do?lang=E",
    search_url="https://www.aeroplan.com/en/use-your-miles/travel.html",
    min_days=0,
    max_days=356,
    throttling=ThrottleProfile.named("fast"),
    fares=(
        BookingClass("OS", Cabin.FIRST, True, "First Fixed Mileage"),
        BookingClass("OP", Cabin.FIRST, False, "First Market Fare"),
        BookingClass("IS", Cabin.BUSINESS, True, "Business Fixed Mileage"),
        BookingClass("IP", Cabin.BUSINESS, False, "Business Market Fare"),
        BookingClass("NS", Cabin.PREMIUM, True, "Prem. Econ. Fixed Mileage"),
        BookingClass("NP", Cabin.PREMIUM, False, "Prem. Econ. Market Fare"),
        BookingClass("XS", Cabin.ECONOMY, True, "Economy Fixed Mileage"),
        BookingClass("XP", Cabin.ECONOMY, False, "Economy Market Fare"),
    ),
)

__all__ = ["config", "Parser", "Searcher"]
