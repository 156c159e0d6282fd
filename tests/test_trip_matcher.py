"""Tests for single-trip matching between two stops."""

from kyoto_transit.models.gtfs import Route, Stop, StopTime, Trip
from kyoto_transit.services.schedule_index import ScheduleIndex
from kyoto_transit.services.time_utils import gtfs_time_to_seconds
from kyoto_transit.services.trip_matcher import TripMatcher


class TestFindTrip:
    """Tests for TripMatcher.find_trip."""

    def test_earliest_departure_after_reference(self, kyoto_index: ScheduleIndex) -> None:
        match = TripMatcher(kyoto_index).find_trip(
            "KINKAKU", "KYOTO_EKI", gtfs_time_to_seconds("10:00:00")
        )

        assert match is not None
        assert match.trip.trip_id == "T205_1005"
        assert match.route.route_id == 205
        assert [st.stop_id for st in match.stop_times] == ["KINKAKU", "SHIJO", "KYOTO_EKI"]
        assert match.departure_seconds == gtfs_time_to_seconds("10:05:00")
        assert match.arrival_seconds == gtfs_time_to_seconds("10:35:00")

    def test_departure_equal_to_reference_qualifies(self, kyoto_index: ScheduleIndex) -> None:
        match = TripMatcher(kyoto_index).find_trip(
            "KINKAKU", "KYOTO_EKI", gtfs_time_to_seconds("10:05:00")
        )
        assert match is not None
        assert match.trip.trip_id == "T205_1005"

    def test_direction_matters(self, kyoto_index: ScheduleIndex) -> None:
        """The reverse trip visits KINKAKU after KYOTO_EKI, so it only matches that way."""
        matcher = TripMatcher(kyoto_index)

        reverse = matcher.find_trip("KYOTO_EKI", "KINKAKU", 0)
        assert reverse is not None
        assert reverse.trip.trip_id == "T205_R1000"
        assert reverse.origin.stop_sequence < reverse.destination.stop_sequence

        forward = matcher.find_trip("KINKAKU", "KYOTO_EKI", 0)
        assert forward is not None
        assert forward.trip.trip_id != "T205_R1000"

    def test_partial_segment(self, kyoto_index: ScheduleIndex) -> None:
        match = TripMatcher(kyoto_index).find_trip("SHIJO", "KYOTO_EKI", gtfs_time_to_seconds("10:00"))
        assert match is not None
        assert match.trip.trip_id == "T205_1005"
        assert match.origin.departure_time == "10:21:00"

    def test_service_ended(self, kyoto_index: ScheduleIndex) -> None:
        assert (
            TripMatcher(kyoto_index).find_trip("KINKAKU", "KYOTO_EKI", gtfs_time_to_seconds("23:50"))
            is None
        )

    def test_same_stop_never_matches(self, kyoto_index: ScheduleIndex) -> None:
        assert TripMatcher(kyoto_index).find_trip("KINKAKU", "KINKAKU", 0) is None

    def test_route_restriction(self, kyoto_index: ScheduleIndex) -> None:
        matcher = TripMatcher(kyoto_index)
        reference = gtfs_time_to_seconds("10:00")

        unrestricted = matcher.find_trip("KINKAKU_W", "EKI_KARASUMA", reference)
        assert unrestricted is not None
        assert unrestricted.trip.trip_id == "T101_1010"

        only_12 = matcher.find_trip("KINKAKU_W", "EKI_KARASUMA", reference, route_ids=[12])
        assert only_12 is not None
        assert only_12.trip.trip_id == "T12_1020"

        assert matcher.find_trip("KINKAKU_W", "EKI_KARASUMA", reference, route_ids=[205]) is None


class TestLoopTrips:
    """Trips calling at the boarding stop more than once."""

    def test_boards_at_later_visit_of_origin(self) -> None:
        index = ScheduleIndex(
            routes=[Route(route_id=9, route_type=3)],
            stops=[
                Stop(stop_id="LOOP_A", stop_name="A", stop_lat=35.00, stop_lon=135.70),
                Stop(stop_id="LOOP_B", stop_name="B", stop_lat=35.01, stop_lon=135.70),
                Stop(stop_id="LOOP_C", stop_name="C", stop_lat=35.02, stop_lon=135.70),
            ],
            trips=[Trip(trip_id="LOOP", route_id=9, service_id="S")],
            stop_times=[
                StopTime(trip_id="LOOP", stop_id=stop_id, arrival_time=t, departure_time=t, stop_sequence=seq)
                for seq, (stop_id, t) in enumerate(
                    [
                        ("LOOP_A", "09:00:00"),
                        ("LOOP_B", "09:10:00"),
                        ("LOOP_A", "09:20:00"),
                        ("LOOP_C", "09:30:00"),
                    ],
                    start=1,
                )
            ],
        )

        match = TripMatcher(index).find_trip("LOOP_A", "LOOP_C", gtfs_time_to_seconds("09:15"))

        assert match is not None
        assert match.origin.stop_sequence == 3
        assert match.origin.departure_time == "09:20:00"
        assert [st.stop_id for st in match.stop_times] == ["LOOP_A", "LOOP_C"]

    def test_first_visit_used_when_it_qualifies(self) -> None:
        index = ScheduleIndex(
            routes=[Route(route_id=9, route_type=3)],
            stops=[
                Stop(stop_id="LOOP_A", stop_name="A", stop_lat=35.00, stop_lon=135.70),
                Stop(stop_id="LOOP_B", stop_name="B", stop_lat=35.01, stop_lon=135.70),
            ],
            trips=[Trip(trip_id="LOOP", route_id=9, service_id="S")],
            stop_times=[
                StopTime(trip_id="LOOP", stop_id="LOOP_A", arrival_time="09:00:00", departure_time="09:00:00", stop_sequence=1),
                StopTime(trip_id="LOOP", stop_id="LOOP_B", arrival_time="09:10:00", departure_time="09:10:00", stop_sequence=2),
                StopTime(trip_id="LOOP", stop_id="LOOP_A", arrival_time="09:20:00", departure_time="09:20:00", stop_sequence=3),
            ],
        )

        match = TripMatcher(index).find_trip("LOOP_A", "LOOP_B", gtfs_time_to_seconds("08:55"))

        assert match is not None
        assert match.origin.stop_sequence == 1
        assert match.destination.stop_sequence == 2
