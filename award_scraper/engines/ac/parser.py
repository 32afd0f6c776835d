"""Parses the results JSON Aeroplan builds in the browser"""

import datetime
from typing import Any, Dict, List

from ...award import Award
from ...exceptions import IntegrityError, ParserError
from ...flight import Flight
from ...models import Cabin
from ...parser import Parser
from ...segment import Segment

CABIN_CODES = {
    "E": Cabin.ECONOMY,
    "P": Cabin.PREMIUM,
    "B": Cabin.BUSINESS,
    "F": Cabin.FIRST,
}

# Product name -> saver (fixed mileage) tier
PRODUCTS = {
    "classic": True,
    "classicPlus": False,
}


class AeroplanParser(Parser):
    def parse(self, results) -> List[Award]:
        json = results.contents("json", "results")
        if not isinstance(json, dict) or "NormalResults" not in json:
            raise ParserError("Missing or malformed Aeroplan results JSON")

        awards = []
        for position in (0, 1):  # Outbound, then inbound
            for product, saver in PRODUCTS.items():
                for option in self._options(json, product, position):
                    awards.append(self._award(option, saver))
        return awards

    def _options(self, json: Dict[str, Any], product: str, position: int) -> List[Dict[str, Any]]:
        products = json["NormalResults"].get("product") or []
        ret = []
        for entry in products:
            if entry.get("name") != product:
                continue
            for component in entry.get("tripComponent") or []:
                if str(component.get("position")) == str(position):
                    ret.extend(component.get("ODoption") or [])
        return ret

    def _award(self, option: Dict[str, Any], saver: bool) -> Award:
        try:
            segments = [self._segment(x) for x in option["segment"]]
            mileage = int(option["startingMileage"])
        except (KeyError, TypeError, ValueError) as e:
            raise ParserError(f"Malformed Aeroplan flight option: {e}")

        flight = Flight(segments)
        return Award(
            engine=self.id,
            fare=self.find_fare(flight.highest_cabin(), saver),
            quantity=self.query.quantity,
            mileage_cost=mileage,
            flight=flight,
        )

    def _segment(self, data: Dict[str, Any]) -> Segment:
        departure = datetime.datetime.fromisoformat(data["departureDateTime"])
        arrival = datetime.datetime.fromisoformat(data["arrivalDateTime"])
        airline = data["airline"]
        flight = str(data["flightNo"])
        if flight.isdigit():
            flight = airline + flight
        cabin = CABIN_CODES.get(data.get("cabin"))
        if cabin is None:
            raise ParserError(f"Unknown Aeroplan cabin code: {data.get('cabin')!r}")
        try:
            return Segment(
                airline=airline,
                flight=flight,
                aircraft=data.get("product"),
                from_city=data["origin"],
                to_city=data["destination"],
                date=departure,
                departure=departure,
                arrival=arrival,
                cabin=cabin,
                stops=int(data.get("stop") or 0),
                lag_days=int(data.get("lagDays") or 0),
            )
        except IntegrityError as e:
            raise ParserError(f"Invalid Aeroplan segment {flight}: {e}")
