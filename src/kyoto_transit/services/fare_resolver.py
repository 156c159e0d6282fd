"""Fare lookup from GTFS fare_rules and fare_attributes."""

import logging
from dataclasses import dataclass

from kyoto_transit.services.schedule_index import ScheduleIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FareQuote:
    """Resolved fare for one ride. amount is 0 when no rule applies."""

    amount: float = 0.0
    currency: str | None = None
    fare_id: str | None = None
    ambiguous: bool = False


class FareResolver:
    """Resolves the fare of a route, optionally scoped to an origin/destination pair.

    When several rules match, the first rule in fare_rules table order wins
    and the quote is flagged as ambiguous for data-quality review.
    """

    def __init__(self, index: ScheduleIndex) -> None:
        self._index = index

    def resolve_fare(
        self,
        route_id: int,
        origin_stop_id: str | None = None,
        destination_stop_id: str | None = None,
    ) -> FareQuote:
        matching = [
            rule
            for rule in self._index.fare_rules_for_route(route_id)
            if (not rule.origin_id or rule.origin_id == origin_stop_id)
            and (not rule.destination_id or rule.destination_id == destination_stop_id)
        ]
        if not matching:
            return FareQuote()

        ambiguous = len(matching) > 1
        selected = matching[0]
        if ambiguous:
            logger.warning(
                f"AMBIGUOUS_FARE: {len(matching)} fare rules match route {route_id} "
                f"({origin_stop_id} -> {destination_stop_id}); using {selected.fare_id}"
            )

        attribute = self._index.fare_attribute(selected.fare_id)
        if attribute is None:
            logger.warning(f"Fare rule {selected.fare_id} has no fare attribute")
            return FareQuote(fare_id=selected.fare_id, ambiguous=ambiguous)

        return FareQuote(
            amount=max(attribute.price, 0.0),
            currency=attribute.currency_type,
            fare_id=selected.fare_id,
            ambiguous=ambiguous,
        )
