"""App-wide behaviour: health, headers, error envelope, auth and rate limiting."""
from jewelshop.core.rate_limiter import RateLimiter, rate_limiter
from jewelshop.core.security import create_access_token, decode_access_token


class TestHealth:
    def test_health_needs_no_auth(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_security_headers_and_request_id(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"

    def test_request_id_is_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]


class TestErrorEnvelope:
    def test_unknown_route(self, client, auth):
        resp = client.get("/no-such-thing", headers=auth)
        assert resp.status_code == 404
        assert "error" in resp.json()

    def test_expired_token(self, client):
        token = create_access_token("user-x", expires_minutes=-1)
        resp = client.get("/customers", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}


class TestTokens:
    def test_round_trip(self):
        assert decode_access_token(create_access_token("user-42")) == "user-42"

    def test_garbage(self):
        assert decode_access_token("a.b.c") is None


class TestRateLimiting:
    def test_window_counts_requests(self):
        limiter = RateLimiter(requests=2, window=60)
        assert limiter.is_allowed("a") == (True, 1)
        assert limiter.is_allowed("a") == (True, 0)
        assert limiter.is_allowed("a") == (False, 0)
        assert limiter.is_allowed("b")[0] is True

    def test_middleware_answers_429(self, client, auth, monkeypatch):
        monkeypatch.setattr(rate_limiter, "requests", 1)
        assert client.get("/customers", headers=auth).status_code == 200
        resp = client.get("/customers", headers=auth)
        assert resp.status_code == 429
        assert resp.json()["error"].startswith("Rate limit exceeded")

    def test_health_is_not_limited(self, client, monkeypatch):
        monkeypatch.setattr(rate_limiter, "requests", 1)
        for _ in range(3):
            assert client.get("/health").status_code == 200
