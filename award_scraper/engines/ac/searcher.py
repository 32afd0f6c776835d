"""Aeroplan search automation"""

import asyncio

from ...exceptions import (
    BlockedAccountError,
    InvalidCredentialsError,
    InvalidRouteError,
    MissingCredentialsError,
    SearcherTimeoutError,
)
from ...models import Cabin, PollResult
from ...searcher import Searcher


class AeroplanSearcher(Searcher):
    async def is_logged_in(self, page) -> bool:
        await page.wait_for_selector(
            "button.header-login-btn, a.header-logout-btn", state="visible", timeout=30000
        )
        return await page.query_selector("a.header-logout-btn") is not None

    async def login(self, page, credentials) -> None:
        username, password = (tuple(credentials or ()) + (None, None))[:2]
        if not username or not password:
            raise MissingCredentialsError()

        await self.enter_text("#cust", username)
        await self.enter_text("#pin", password)
        await asyncio.sleep(0.25)

        # Remember me
        if await page.query_selector("div.checkbox input:checked") is None:
            await page.click("div.checkbox input")
            await asyncio.sleep(0.25)
        await self.click_and_wait("button.btn-primary.form-login-submit")

        message = await self.text_content("div.form-msg-box.has-error span.form-msg")
        if "does not match our records" in message:
            raise InvalidCredentialsError()
        message = await self.text_content("div.form-msg-box.error.form-main-msg span.form-msg")
        if "your account has been blocked" in message:
            raise BlockedAccountError()

    async def search(self, page, query, results) -> None:
        depart, ret = query.depart_date, query.return_date

        # Let the form auto-fill itself first
        await asyncio.sleep(3)

        if query.cabin in (Cabin.FIRST, Cabin.BUSINESS):
            cabin_text, cabin_value = "Business/First", "Business"
        else:
            cabin_text, cabin_value = "Eco/Prem", "Economy"
        quantity = str(query.quantity)

        if query.one_way:
            await self.fill_form({
                "tripTypeOneWay": "One-way",
                "currentTripTab": "oneway",
                "city1FromOnewayCode": query.from_city,
                "city1ToOnewayCode": query.to_city,
                "l1Oneway": depart.strftime("%m/%d/%Y"),
                "l1OnewayDate": depart.isoformat(),
                "OnewayCabinTextfield": cabin_text,
                "OnewayCabin": cabin_value,
                "OnewayAdultsNb": quantity,
                "OnewayChildrenNb": "0",
                "OnewayTotalPassengerNb": quantity,
                "OnewayFlexibleDatesHidden": "0",
            })
        else:
            await self.fill_form({
                "tripTypeRoundTrip": "Round-Trip",
                "currentTripTab": "return",
                "city1FromReturnCode": query.from_city,
                "city1ToReturnCode": query.to_city,
                "l1Return": depart.strftime("%m/%d/%Y"),
                "l1ReturnDate": depart.isoformat(),
                "r1Return": ret.strftime("%m/%d/%Y"),
                "r1ReturnDate": ret.isoformat(),
                "ReturnCabinTextfield": cabin_text,
                "ReturnCabin": cabin_value,
                "ReturnAdultsNb": quantity,
                "ReturnChildrenNb": "0",
                "ReturnTotalPassengerNb": quantity,
                "ReturnFlexibleDatesHidden": "0",
            })

        form = "travelFlightsOneWayTab" if query.one_way else "travelFlightsRoundTripTab"
        await self.submit_form(form, wait_until="none")
        await self.monitor(".waiting-spinner-inner")

        message = await self.text_content("div.errorContainer")
        if "itinerary is not eligible" in message or "itinerary cannot be booked" in message:
            raise InvalidRouteError()

        # The page computes prices into window.results, read it from there
        captured = {}

        async def results_ready() -> bool:
            captured["json"] = await page.evaluate("() => window.results ? window.results.results : null")
            return bool(captured["json"])

        if await self.poll(results_ready, timeout=15) is PollResult.TIMEOUT:
            raise SearcherTimeoutError("TIMEOUT: Timed out waiting for JSON results to be created")

        await results.save_json("results", captured["json"])
        await results.screenshot("results")
