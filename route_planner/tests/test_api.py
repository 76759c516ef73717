import httpx
import pytest
from route_planner.tests.payloads import google_payload, mapbox_payload, osrm_payload

STOPS = [
    {"lat": 40.4093, "lng": 49.8671, "label": "Fountain Square"},
    {"lat": 40.3667, "lng": 49.8352, "label": "Old City", "address": "Icherisheher"},
    {"lat": 40.3953, "lng": 49.8822, "label": "Flame Towers"},
]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["service"] == "route-planner"
    assert body["provider"] == "osrm"
    assert body["provider_configured"] is True
    assert resp.headers.get("X-Request-ID")


def test_health_reports_missing_credentials(client):
    from route_planner.engine.settings import settings

    settings.MAP_PROVIDER = "mapbox"
    settings.MAPBOX_ACCESS_TOKEN = None

    body = client.get("/health").json()

    assert body["provider"] == "mapbox"
    assert body["provider_configured"] is False


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_malformed_request_id_is_replaced(client):
    resp = client.get("/health", headers={"X-Request-ID": "bad id <script>"})
    request_id = resp.headers["X-Request-ID"]
    assert request_id != "bad id <script>"
    assert len(request_id) == 32


def test_metrics_exposes_route_counters(client, backend):
    backend.queue(httpx.Response(200, json=osrm_payload()))
    client.post("/v1/routes", json={"waypoints": STOPS})

    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "route_backend_requests_total" in resp.text
    assert "route_results_total" in resp.text


class TestComputeRoute:
    def test_osrm_route(self, client, backend):
        backend.queue(httpx.Response(200, json=osrm_payload()))

        resp = client.post("/v1/routes", json={"waypoints": STOPS})

        assert resp.status_code == 200
        body = resp.json()
        assert body["state"] == "route_ready"
        assert body["provider"] == "osrm"
        assert body["summary"]["distance"] == "2.0 km"
        assert body["summary"]["duration"] == "9 min"
        assert body["summary"]["stops"] == 3
        assert [(s["leg_index"], s["step_index"]) for s in body["steps"]] == [
            (0, 0),
            (0, 1),
            (1, 0),
        ]
        assert body["steps"][0]["instruction"] == "Continue on Neftchilar Avenue"
        assert body["geometry"][0] == [40.4093, 49.8671]
        assert body["waypoints"][0]["is_start"] is True
        assert [wp["marker_label"] for wp in body["waypoints"]] == ["1", "2", "3"]
        assert body["links"]["google_maps"].startswith("https://www.google.com/maps/dir/?api=1")
        assert body["links"]["apple_maps"].endswith("&dirflg=d")
        assert body["error"] is None

        request = backend.requests[0]
        assert request.url.path == (
            "/route/v1/car/49.8671,40.4093;49.8352,40.3667;49.8822,40.3953"
        )
        assert request.url.params["steps"] == "true"

    def test_camel_case_options(self, client, backend):
        backend.queue(httpx.Response(200, json=mapbox_payload()))

        resp = client.post(
            "/v1/routes",
            json={
                "waypoints": STOPS,
                "options": {
                    "provider": "mapbox",
                    "travelMode": "walking",
                    "distanceUnit": "imperial",
                    "markerStyle": "lettered",
                    "startMarkerColor": "#000000",
                },
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["provider"] == "mapbox"
        assert body["travel_mode"] == "walking"
        assert body["summary"]["distance"] == "1.2 mi"
        assert [wp["marker_label"] for wp in body["waypoints"]] == ["A", "B", "C"]
        assert body["waypoints"][0]["marker_color"] == "#000000"
        request = backend.requests[0]
        assert "/mapbox/walking/" in request.url.path
        assert request.url.params["access_token"] == "test-mapbox-token"

    def test_google_route(self, client, backend):
        backend.queue(httpx.Response(200, json=google_payload()))

        resp = client.post(
            "/v1/routes", json={"waypoints": STOPS, "options": {"provider": "google"}}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["provider"] == "google"
        assert body["steps"][0]["instruction"] == "Head south on Neftchilar Ave"
        assert body["steps"][1]["icon"].startswith("<svg")
        assert body["overview_polyline"]
        assert backend.requests[0].url.params["key"] == "test-google-key"

    def test_optimized_order_is_sent_and_returned(self, client, backend):
        backend.queue(httpx.Response(200, json=osrm_payload()))
        stops = [
            {"lat": 0.0, "lng": 0.0, "label": "A"},
            {"lat": 0.0, "lng": 10.0, "label": "B"},
            {"lat": 0.0, "lng": 1.0, "label": "C"},
        ]

        resp = client.post(
            "/v1/routes", json={"waypoints": stops, "options": {"optimizeRoute": True}}
        )

        assert [wp["label"] for wp in resp.json()["waypoints"]] == ["A", "C", "B"]
        assert backend.requests[0].url.path.endswith("/car/0,0;1,0;10,0")

    def test_user_location_start(self, client, backend):
        backend.queue(httpx.Response(200, json=osrm_payload()))

        resp = client.post(
            "/v1/routes",
            json={
                "waypoints": STOPS,
                "options": {"startPointMode": "user_location"},
                "userLocation": {"lat": 40.42, "lng": 49.95},
            },
        )

        waypoints = resp.json()["waypoints"]
        assert len(waypoints) == 4
        assert waypoints[0]["is_user_location"] is True
        assert waypoints[0]["label"] == "Your location"

    def test_single_waypoint_is_empty_route(self, client, backend):
        resp = client.post("/v1/routes", json={"waypoints": STOPS[:1]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["state"] == "empty_route"
        assert body["summary"] is None
        assert body["steps"] == []
        assert body["links"] == {"google_maps": None, "apple_maps": None}
        assert backend.requests == []

    @pytest.mark.parametrize(
        ("response", "status", "kind"),
        [
            (
                httpx.Response(400, json={"code": "NoRoute", "message": "Impossible route"}),
                404,
                "no_route_found",
            ),
            (httpx.Response(400, json={"code": "InvalidQuery"}), 400, "invalid_request"),
            (httpx.Response(503, text="upstream down"), 502, "service_unavailable"),
            (
                httpx.Response(429, json={"message": "Too Many Requests"}),
                502,
                "service_unavailable",
            ),
        ],
    )
    def test_backend_errors(self, client, backend, response, status, kind):
        backend.queue(response)

        resp = client.post("/v1/routes", json={"waypoints": STOPS})

        assert resp.status_code == status
        body = resp.json()
        assert body["state"] == "route_error"
        assert body["error"]["kind"] == kind
        assert body["summary"] is None
        assert body["steps"] == []

    def test_missing_google_key_is_invalid_request(self, client, backend):
        from route_planner.engine.settings import settings

        settings.GOOGLE_MAPS_API_KEY = None

        resp = client.post(
            "/v1/routes", json={"waypoints": STOPS, "options": {"provider": "google"}}
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["kind"] == "invalid_request"
        assert backend.requests == []

    def test_invalid_coordinates_rejected(self, client):
        resp = client.post(
            "/v1/routes", json={"waypoints": [{"lat": 91, "lng": 0}, {"lat": 0, "lng": 0}]}
        )
        assert resp.status_code == 422

    def test_invalid_gpx_filename_rejected(self, client):
        resp = client.post(
            "/v1/routes", json={"waypoints": STOPS, "options": {"gpxFilename": "../etc"}}
        )
        assert resp.status_code == 422


class TestExports:
    def test_links(self, client, backend):
        resp = client.post(
            "/v1/routes/export/links",
            json={"waypoints": STOPS, "options": {"travelMode": "cycling"}},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["google_maps"] == (
            "https://www.google.com/maps/dir/?api=1"
            "&origin=40.4093%2C49.8671"
            "&destination=40.3953%2C49.8822"
            "&travelmode=bicycling"
            "&waypoints=40.3667%2C49.8352"
        )
        assert body["apple_maps"].endswith("&dirflg=w")
        assert backend.requests == []

    def test_links_need_two_waypoints(self, client):
        resp = client.post("/v1/routes/export/links", json={"waypoints": STOPS[:1]})
        assert resp.json() == {"google_maps": None, "apple_maps": None}

    def test_gpx_download(self, client):
        resp = client.post(
            "/v1/routes/export/gpx",
            json={"waypoints": STOPS, "options": {"gpxFilename": "baku-walk"}},
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/gpx+xml")
        assert resp.headers["content-disposition"] == (
            "attachment; filename=\"baku-walk.gpx\"; filename*=UTF-8''baku-walk.gpx"
        )
        assert "<name>Fountain Square</name>" in resp.text
        assert "<name>baku-walk</name>" in resp.text

    def test_gpx_with_custom_start(self, client):
        resp = client.post(
            "/v1/routes/export/gpx",
            json={
                "waypoints": STOPS[:1],
                "options": {
                    "startPointMode": "custom",
                    "customStart": {"lat": 40.38, "lng": 49.85, "address": "Railway Station"},
                },
            },
        )

        assert resp.status_code == 200
        assert 'lat="40.38"' in resp.text
        assert 'lon="49.85"' in resp.text
        assert "<name>Start</name>" in resp.text
        assert "<name>Fountain Square</name>" in resp.text
        assert "<name>Old City</name>" not in resp.text
        start_at = resp.text.index("<name>Start</name>")
        assert start_at < resp.text.index("<name>Fountain Square</name>")

    def test_gpx_non_ascii_filename(self, client):
        resp = client.post(
            "/v1/routes/export/gpx",
            json={"waypoints": STOPS, "options": {"gpxFilename": "東京ツアー"}},
        )

        assert resp.status_code == 200
        disposition = resp.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="route.gpx"; ')
        encoded = "%E6%9D%B1%E4%BA%AC%E3%83%84%E3%82%A2%E3%83%BC.gpx"
        assert disposition.endswith(f"filename*=UTF-8''{encoded}")
        assert "<name>東京ツアー</name>" in resp.text

    def test_gpx_nothing_to_export(self, client):
        resp = client.post("/v1/routes/export/gpx", json={"waypoints": STOPS[:1]})

        assert resp.status_code == 204
        assert resp.content == b""
