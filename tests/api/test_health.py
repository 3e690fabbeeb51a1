"""
Tests for the /health endpoint.
"""

from sqlalchemy.exc import OperationalError


def test_health_is_up(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "service": "trade-ledger",
        "database": "healthy",
    }


def test_unreachable_database_reports_degraded(client, db_session, monkeypatch):
    """The endpoint itself stays up when the database does not answer."""
    def refuse(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(db_session, "execute", refuse)

    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["database"] == "unhealthy"
