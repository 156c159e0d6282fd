"""Shared Kyoto bus fixtures.

Line 205 runs 金閣寺道 -> 四条河原町 -> 京都駅前 several times a day, with one
trip in the opposite direction. Lines 101 and 12 serve the neighbouring stops
金閣寺前西 and 京都駅烏丸口. Line 205 has no fare rule (fare 0); 101 costs
230 yen and 12 costs 350 yen.
"""

import csv
import io
from pathlib import Path

import pytest

from kyoto_transit.models.gtfs import FareAttribute, FareRule, Route, Stop, StopTime, Trip
from kyoto_transit.models.responses import Endpoint
from kyoto_transit.services.schedule_index import ScheduleIndex

KYOTO_GTFS: dict[str, str] = {
    "agency.txt": (
        "agency_id,agency_name,agency_url,agency_timezone\n"
        "KCB,京都市交通局,https://www.city.kyoto.lg.jp/kotsu/,Asia/Tokyo\n"
    ),
    "routes.txt": (
        "route_id,agency_id,route_short_name,route_long_name,route_type,route_color\n"
        "205,KCB,205,市バス205系統,3,\n"
        "101,KCB,101,市バス101系統,3,\n"
        "12,KCB,12,市バス12系統,3,\n"
    ),
    "stops.txt": (
        "stop_id,stop_code,stop_name,stop_lat,stop_lon,location_type,parent_station,wheelchair_boarding\n"
        "KINKAKU,1001,金閣寺道,35.0412,135.7292,0,,1\n"
        "KINKAKU_W,1002,金閣寺前西,35.0420,135.7280,0,,1\n"
        "SHIJO,2001,四条河原町,35.0038,135.7690,0,,1\n"
        "KYOTO_EKI,3001,京都駅前,34.9885,135.7588,0,,1\n"
        "EKI_KARASUMA,3002,京都駅烏丸口,34.9890,135.7600,0,,1\n"
    ),
    "trips.txt": (
        "trip_id,route_id,service_id,trip_headsign,direction_id,shape_id\n"
        "T205_0905,205,WEEKDAY,京都駅前,0,\n"
        "T205_1005,205,WEEKDAY,京都駅前,0,\n"
        "T205_1035,205,WEEKDAY,京都駅前,0,\n"
        "T205_2300,205,WEEKDAY,京都駅前,0,\n"
        "T205_R1000,205,WEEKDAY,金閣寺道,1,\n"
        "T101_1010,101,WEEKDAY,京都駅,0,\n"
        "T12_1020,12,WEEKDAY,京都駅,0,\n"
    ),
    "stop_times.txt": (
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence,pickup_type\n"
        "T205_0905,09:05:00,09:05:00,KINKAKU,1,0\n"
        "T205_0905,09:20:00,09:20:00,SHIJO,2,0\n"
        "T205_0905,09:35:00,09:35:00,KYOTO_EKI,3,0\n"
        "T205_1005,10:05:00,10:05:00,KINKAKU,1,0\n"
        "T205_1005,10:20:00,10:21:00,SHIJO,2,0\n"
        "T205_1005,10:35:00,10:35:00,KYOTO_EKI,3,0\n"
        "T205_1035,10:35:00,10:35:00,KINKAKU,1,0\n"
        "T205_1035,10:50:00,10:50:00,SHIJO,2,0\n"
        "T205_1035,11:05:00,11:05:00,KYOTO_EKI,3,0\n"
        "T205_2300,23:00:00,23:00:00,KINKAKU,1,0\n"
        "T205_2300,23:15:00,23:15:00,SHIJO,2,0\n"
        "T205_2300,23:30:00,23:30:00,KYOTO_EKI,3,0\n"
        "T205_R1000,10:00:00,10:00:00,KYOTO_EKI,1,0\n"
        "T205_R1000,10:15:00,10:15:00,SHIJO,2,0\n"
        "T205_R1000,10:30:00,10:30:00,KINKAKU,3,0\n"
        "T101_1010,10:10:00,10:10:00,KINKAKU_W,1,0\n"
        "T101_1010,10:30:00,10:30:00,EKI_KARASUMA,2,0\n"
        "T12_1020,10:20:00,10:20:00,KINKAKU_W,1,0\n"
        "T12_1020,10:40:00,10:40:00,SHIJO,2,0\n"
        "T12_1020,10:55:00,10:55:00,EKI_KARASUMA,3,0\n"
    ),
    "fare_attributes.txt": (
        "fare_id,price,currency_type,payment_method,transfers\n"
        "F230,230,JPY,0,0\n"
        "F350,350,JPY,0,0\n"
    ),
    "fare_rules.txt": (
        "fare_id,route_id,origin_id,destination_id,contains_id\n"
        "F230,101,,,\n"
        "F350,12,,,\n"
    ),
}

# Endpoints ~200 m from 金閣寺道 and ~300 m from 京都駅前
KINKAKUJI_ENDPOINT = Endpoint(id="kinkakuji", name="金閣寺", lat=35.0394, lon=135.7292)
KYOTO_STATION_ENDPOINT = Endpoint(id="kyoto-station", name="京都駅", lat=34.9858, lon=135.7588)
# Open countryside far north of the city
COUNTRYSIDE_ENDPOINT = Endpoint(id="countryside", name="山間部", lat=35.2500, lon=135.7292)


def _records(filename: str) -> list[dict[str, str]]:
    reader = csv.DictReader(io.StringIO(KYOTO_GTFS[filename]))
    return [{k: v for k, v in row.items() if v != ""} for row in reader]


def build_kyoto_index() -> ScheduleIndex:
    """ScheduleIndex over the fixture feed, without going through SQLite."""
    return ScheduleIndex(
        routes=[Route.model_validate(r) for r in _records("routes.txt")],
        stops=[Stop.model_validate(r) for r in _records("stops.txt")],
        trips=[Trip.model_validate(r) for r in _records("trips.txt")],
        stop_times=[StopTime.model_validate(r) for r in _records("stop_times.txt")],
        fare_rules=[FareRule.model_validate(r) for r in _records("fare_rules.txt")],
        fare_attributes=[FareAttribute.model_validate(r) for r in _records("fare_attributes.txt")],
    )


@pytest.fixture
def kyoto_index() -> ScheduleIndex:
    return build_kyoto_index()


@pytest.fixture
def kyoto_gtfs_dir(tmp_path: Path) -> Path:
    """Write the fixture feed as a GTFS directory."""
    gtfs_dir = tmp_path / "gtfs"
    gtfs_dir.mkdir()
    for filename, content in KYOTO_GTFS.items():
        (gtfs_dir / filename).write_text(content, encoding="utf-8")
    return gtfs_dir


@pytest.fixture
def kinkakuji() -> Endpoint:
    return KINKAKUJI_ENDPOINT


@pytest.fixture
def kyoto_station() -> Endpoint:
    return KYOTO_STATION_ENDPOINT


@pytest.fixture
def countryside() -> Endpoint:
    return COUNTRYSIDE_ENDPOINT
