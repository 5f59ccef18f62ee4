"""Shared fixtures: a throwaway SQLite app, profile factories, per-user HTTP clients."""

import pytest
from sqlalchemy import and_, or_

from pulse import create_app
from pulse.extensions import db
from pulse.models import Profile, Relationship, RELATIONSHIP_PENDING, RELATIONSHIP_ACCEPTED
from pulse.routes import register_blueprints
from pulse.helpers import email as email_helpers
from pulse.helpers.ids import new_id
from pulse.helpers.inflight import FRIENDSHIP_LOCKS, CHALLENGE_LOCKS
from pulse.helpers.rate_limit import reset_friend_request_limiter


@pytest.fixture
def app(tmp_path, monkeypatch):
    class TestConfig:
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'pulse_test.db'}"
        SQLALCHEMY_TRACK_MODIFICATIONS = False
        SECRET_KEY = "test-secret"
        FRIEND_REQUEST_RATE_LIMIT = 20
        FRIEND_REQUEST_RATE_WINDOW_SECONDS = 3600
        CHALLENGE_MESSAGE_MAX_LENGTH = 200
        APP_TIMEZONE = "UTC"

    # Emails always take the dev (stderr) path under test
    monkeypatch.setattr(email_helpers, "RESEND_API_KEY", None)

    app = create_app(TestConfig)
    register_blueprints(app)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def reset_registries():
    FRIENDSHIP_LOCKS.clear()
    CHALLENGE_LOCKS.clear()
    reset_friend_request_limiter()
    yield
    FRIENDSHIP_LOCKS.clear()
    CHALLENGE_LOCKS.clear()
    reset_friend_request_limiter()


@pytest.fixture
def make_profile(app):
    def _make(name, email=None):
        profile = Profile(id=new_id(), name=name, email=email, daily_streak=0)
        db.session.add(profile)
        db.session.commit()
        return profile
    return _make


@pytest.fixture
def alice(make_profile):
    return make_profile("Alice")


@pytest.fixture
def bob(make_profile):
    return make_profile("Bob")


@pytest.fixture
def carol(make_profile):
    return make_profile("Carol")


@pytest.fixture
def signup(app):
    """Sign a new user up over HTTP; returns (client, profile_id)."""
    def _signup(name, email=None):
        client = app.test_client()
        payload = {"name": name}
        if email:
            payload["email"] = email
        resp = client.post("/api/profiles", json=payload)
        assert resp.status_code == 201, resp.get_data(as_text=True)
        return client, resp.get_json()["profile"]["id"]
    return _signup


def edges_between(a_id, b_id):
    return (
        Relationship.query
        .filter(
            or_(
                and_(Relationship.from_user_id == a_id, Relationship.to_user_id == b_id),
                and_(Relationship.from_user_id == b_id, Relationship.to_user_id == a_id),
            )
        )
        .all()
    )


def assert_valid_pair(a_id, b_id):
    """Edge set is empty, one pending edge, or two accepted edges one each way."""
    edges = edges_between(a_id, b_id)
    if not edges:
        return
    if len(edges) == 1:
        assert edges[0].status == RELATIONSHIP_PENDING, edges
        return
    assert len(edges) == 2, edges
    assert {e.status for e in edges} == {RELATIONSHIP_ACCEPTED}
    assert {(e.from_user_id, e.to_user_id) for e in edges} == {(a_id, b_id), (b_id, a_id)}
