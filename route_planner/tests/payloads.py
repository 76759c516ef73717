"""Realistic routing backend responses used across the test suite."""

from __future__ import annotations

# Reference polyline from Google's encoding documentation
GOOGLE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
GOOGLE_POLYLINE_POINTS = [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


def _lng_lat_legs() -> list[dict]:
    return [
        {
            "distance": 1200.0,
            "duration": 300.0,
            "steps": [
                {
                    "distance": 1000.0,
                    "duration": 250.0,
                    "name": "Neftchilar Avenue",
                    "maneuver": {
                        "type": "depart",
                        "location": [49.8671, 40.4093],
                        "instruction": "Head south on Neftchilar Avenue",
                    },
                },
                {
                    "distance": 200.0,
                    "duration": 50.0,
                    "name": "",
                    "maneuver": {
                        "type": "arrive",
                        "location": [49.8352, 40.3667],
                        "instruction": "You have arrived at your destination",
                    },
                },
            ],
        },
        {
            "distance": 800.0,
            "duration": 240.0,
            "steps": [
                {
                    "distance": 800.0,
                    "duration": 240.0,
                    "name": "Istiglaliyyat Street",
                    "maneuver": {
                        "type": "turn",
                        "modifier": "left",
                        "location": [49.8352, 40.3667],
                        "instruction": "Turn left onto Istiglaliyyat Street",
                    },
                }
            ],
        },
    ]


def mapbox_payload(legs: list[dict] | None = None) -> dict:
    legs = _lng_lat_legs() if legs is None else legs
    return {
        "code": "Ok",
        "uuid": "cjd4x5j9g0f8a2wqm0y5xv0e1",
        "waypoints": [],
        "routes": [
            {
                "distance": sum(leg["distance"] for leg in legs),
                "duration": sum(leg["duration"] for leg in legs),
                "weight": 600.0,
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[49.8671, 40.4093], [49.8352, 40.3667], [49.8822, 40.3953]],
                },
                "legs": legs,
            }
        ],
    }


def osrm_payload(legs: list[dict] | None = None) -> dict:
    """OSRM public server style: maneuvers carry no text instruction."""
    if legs is None:
        legs = _lng_lat_legs()
        for leg in legs:
            for step in leg["steps"]:
                step["maneuver"].pop("instruction", None)
    return {
        "code": "Ok",
        "waypoints": [],
        "routes": [
            {
                "distance": sum(leg["distance"] for leg in legs),
                "duration": sum(leg["duration"] for leg in legs),
                "weight_name": "routability",
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[49.8671, 40.4093], [49.8352, 40.3667], [49.8822, 40.3953]],
                },
                "legs": legs,
            }
        ],
    }


def google_payload() -> dict:
    return {
        "status": "OK",
        "geocoded_waypoints": [],
        "routes": [
            {
                "summary": "Neftchilar Ave",
                "overview_polyline": {"points": GOOGLE_POLYLINE},
                "legs": [
                    {
                        "distance": {"text": "1.2 km", "value": 1200},
                        "duration": {"text": "5 mins", "value": 300},
                        "steps": [
                            {
                                "html_instructions": "Head <b>south</b> on <b>Neftchilar Ave</b>",
                                "distance": {"text": "1.0 km", "value": 1000},
                                "duration": {"text": "4 mins", "value": 250},
                                "start_location": {"lat": 40.4093, "lng": 49.8671},
                                "end_location": {"lat": 40.3667, "lng": 49.8352},
                            },
                            {
                                "html_instructions": (
                                    "Turn <b>left</b> onto <b>Istiglaliyyat St</b>"
                                    '<div style="font-size:0.9em">Destination will be on the right'
                                    "</div>"
                                ),
                                "distance": {"text": "0.2 km", "value": 200},
                                "duration": {"text": "1 min", "value": 50},
                                "maneuver": "turn-left",
                                "start_location": {"lat": 40.3667, "lng": 49.8352},
                                "end_location": {"lat": 40.3953, "lng": 49.8822},
                            },
                        ],
                    },
                    {
                        "distance": {"text": "0.8 km", "value": 800},
                        "duration": {"text": "4 mins", "value": 240},
                        "steps": [
                            {
                                "html_instructions": "Continue straight &amp; keep right",
                                "distance": {"text": "0.8 km", "value": 800},
                                "duration": {"text": "4 mins", "value": 240},
                                "maneuver": "straight",
                                "start_location": {"lat": 40.3953, "lng": 49.8822},
                                "end_location": {"lat": 40.3775, "lng": 49.8531},
                            }
                        ],
                    },
                ],
            }
        ],
    }
