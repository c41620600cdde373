"""
Movie endpoints through the HTTP surface
"""
import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from app.main import trusted_hosts_from_env
from app.repositories.movie_repository import SqlMovieRepository
from app.repositories.rating_repository import SqlRatingRepository
from conftest import create_movie

INCEPTION = {"title": "Inception", "year_of_release": 2010, "genres": ["Sci-Fi", "Action"]}


class TestCreateMovie:

    def test_trusted_member_creates_movie(self, client, member_headers):
        response = client.post("/movies", json=INCEPTION, headers=member_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "inception-2010"
        assert body["genres"] == ["Sci-Fi", "Action"]
        assert body["rating"] is None
        assert response.headers["Location"] == f"/movies/{body['id']}"

        fetched = client.get("/movies/inception-2010").json()
        assert fetched["id"] == body["id"]
        assert fetched["genres"] == ["Sci-Fi", "Action"]

    def test_admin_may_create(self, client, admin_headers):
        assert client.post("/movies", json=INCEPTION, headers=admin_headers).status_code == 201

    def test_anonymous_rejected(self, client):
        assert client.post("/movies", json=INCEPTION).status_code == 401

    def test_plain_user_forbidden(self, client, user_headers):
        assert client.post("/movies", json=INCEPTION, headers=user_headers).status_code == 403

    def test_invalid_token_rejected(self, client):
        headers = {"Authorization": "Bearer not-a-token"}
        assert client.post("/movies", json=INCEPTION, headers=headers).status_code == 401

    def test_validation_errors_listed(self, client, member_headers):
        payload = {"title": " ", "year_of_release": datetime.now(timezone.utc).year + 1, "genres": []}

        response = client.post("/movies", json=payload, headers=member_headers)

        assert response.status_code == 400
        properties = {e["property_name"] for e in response.json()["errors"]}
        assert properties == {"title", "year_of_release", "genres"}

    def test_malformed_body_uses_same_shape(self, client, member_headers):
        payload = {"title": "Heat", "year_of_release": "nineteen ninety-five", "genres": ["Crime"]}

        response = client.post("/movies", json=payload, headers=member_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["property_name"] == "year_of_release"

    def test_year_out_of_range_is_bad_request(self, client, member_headers):
        for year in (-10**19, 10**19, 1000):
            payload = {**INCEPTION, "year_of_release": year}
            response = client.post("/movies", json=payload, headers=member_headers)

            assert response.status_code == 400, year
            assert response.json()["errors"][0]["property_name"] == "year_of_release"

    def test_duplicate_slug_is_validation_error(self, client, member_headers):
        client.post("/movies", json=INCEPTION, headers=member_headers)

        response = client.post("/movies", json=INCEPTION, headers=member_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "This movie already exists in the system"

    def test_slug_race_maps_to_conflict(self, client, member_headers, monkeypatch):
        client.post("/movies", json=INCEPTION, headers=member_headers)
        # Simulate a concurrent insert the pre-check could not see
        monkeypatch.setattr(SqlMovieRepository, "get_by_slug", lambda self, slug, user_id=None: None)

        response = client.post("/movies", json=INCEPTION, headers=member_headers)

        assert response.status_code == 409
        assert "inception-2010" in response.json()["detail"]


class TestGetMovie:

    def test_by_id_and_slug(self, client, db_session):
        movie = create_movie(db_session)

        by_id = client.get(f"/movies/{movie.id}")
        by_slug = client.get("/movies/inception-2010")

        assert by_id.status_code == 200
        assert by_id.json() == by_slug.json()

    def test_not_found(self, client):
        assert client.get(f"/movies/{uuid.uuid4()}").status_code == 404
        assert client.get("/movies/no-such-movie-1900").status_code == 404

    def test_user_rating_for_signed_in_caller(self, client, db_session, member_id, member_headers):
        movie = create_movie(db_session)
        ratings = SqlRatingRepository(db_session)
        ratings.rate(movie.id, member_id, 4)
        ratings.rate(movie.id, uuid.uuid4(), 5)

        anonymous = client.get(f"/movies/{movie.id}").json()
        signed_in = client.get(f"/movies/{movie.id}", headers=member_headers).json()

        assert anonymous["rating"] == 4.5
        assert anonymous["user_rating"] is None
        assert signed_in["user_rating"] == 4


class TestListMovies:

    def seed(self, session):
        for title, year in [("Heat", 1995), ("Alien", 1979), ("Arrival", 2016), ("The Matrix", 1999)]:
            create_movie(session, title=title, year=year, genres=["Drama"])

    def test_default_page(self, client, db_session):
        self.seed(db_session)

        body = client.get("/movies").json()

        assert body["page"] == 1
        assert body["page_size"] == 10
        assert body["total"] == 4
        assert body["has_next_page"] is False
        assert len(body["items"]) == 4

    def test_sort_descending_by_year(self, client, db_session):
        self.seed(db_session)

        body = client.get("/movies", params={"sortBy": "-year"}).json()

        assert [m["year_of_release"] for m in body["items"]] == [2016, 1999, 1995, 1979]

    def test_sort_ascending_by_title(self, client, db_session):
        self.seed(db_session)

        body = client.get("/movies", params={"sortBy": "title"}).json()

        assert [m["title"] for m in body["items"]] == ["Alien", "Arrival", "Heat", "The Matrix"]

    def test_pagination_metadata(self, client, db_session):
        self.seed(db_session)

        first = client.get("/movies", params={"page": 1, "pageSize": 3}).json()
        second = client.get("/movies", params={"page": 2, "pageSize": 3}).json()

        assert first["has_next_page"] is True
        assert second["has_next_page"] is False
        assert len(first["items"]) == 3
        assert len(second["items"]) == 1
        assert first["total"] == second["total"] == 4

    def test_filters_apply_to_total(self, client, db_session):
        self.seed(db_session)

        body = client.get("/movies", params={"title": "A", "year": 1979}).json()

        assert body["total"] == 1
        assert [m["title"] for m in body["items"]] == ["Alien"]

    def test_unknown_sort_field(self, client):
        response = client.get("/movies", params={"sortBy": "budget"})

        assert response.status_code == 400
        assert "budget" in response.json()["errors"][0]["message"]

    def test_page_size_bounds(self, client):
        assert client.get("/movies", params={"pageSize": 1}).status_code == 200
        assert client.get("/movies", params={"pageSize": 25}).status_code == 200
        assert client.get("/movies", params={"pageSize": 26}).status_code == 400
        assert client.get("/movies", params={"page": 0}).status_code == 400

    def test_out_of_range_integers_are_bad_requests(self, client):
        for params in ({"page": 10**19}, {"year": -10**19}, {"year": 10**19}, {"pageSize": 10**19}):
            response = client.get("/movies", params=params)

            assert response.status_code == 400, params
            assert response.json()["errors"]


class TestUpdateMovie:

    def test_update_returns_movie_with_ratings(self, client, db_session, member_id, member_headers):
        movie = create_movie(db_session)
        SqlRatingRepository(db_session).rate(movie.id, member_id, 3)
        payload = {"title": "Inception", "year_of_release": 2010, "genres": ["Thriller"]}

        response = client.put(f"/movies/{movie.id}", json=payload, headers=member_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["genres"] == ["Thriller"]
        assert body["rating"] == 3.0
        assert body["user_rating"] == 3

    def test_rename_changes_slug(self, client, db_session, member_headers):
        movie = create_movie(db_session)
        payload = {"title": "Inception Director's Cut", "year_of_release": 2010, "genres": ["Sci-Fi"]}

        body = client.put(f"/movies/{movie.id}", json=payload, headers=member_headers).json()

        assert body["slug"] == "inception-directors-cut-2010"
        assert client.get("/movies/inception-2010").status_code == 404

    def test_year_out_of_range_is_bad_request(self, client, db_session, member_headers):
        movie = create_movie(db_session)
        payload = {**INCEPTION, "year_of_release": -10**19}

        response = client.put(f"/movies/{movie.id}", json=payload, headers=member_headers)

        assert response.status_code == 400
        assert client.get(f"/movies/{movie.id}").json()["year_of_release"] == 2010

    def test_missing_movie_is_not_created(self, client, member_headers):
        missing = uuid.uuid4()

        response = client.put(f"/movies/{missing}", json=INCEPTION, headers=member_headers)

        assert response.status_code == 404
        assert client.get("/movies").json()["total"] == 0

    def test_cannot_take_another_movies_slug(self, client, db_session, member_headers):
        create_movie(db_session, title="Heat", year=1995, genres=["Crime"])
        other = create_movie(db_session)
        payload = {"title": "Heat", "year_of_release": 1995, "genres": ["Crime"]}

        response = client.put(f"/movies/{other.id}", json=payload, headers=member_headers)

        assert response.status_code == 400

    def test_plain_user_forbidden(self, client, db_session, user_headers):
        movie = create_movie(db_session)
        assert client.put(f"/movies/{movie.id}", json=INCEPTION, headers=user_headers).status_code == 403

    def test_update_integrity_error_maps_to_conflict(self, client, db_session, member_headers, monkeypatch):
        movie = create_movie(db_session)

        def racing_update(self, movie):
            raise IntegrityError("UPDATE movies", {}, Exception("duplicate slug"))

        monkeypatch.setattr(SqlMovieRepository, "update", racing_update)

        response = client.put(f"/movies/{movie.id}", json=INCEPTION, headers=member_headers)

        assert response.status_code == 409


class TestDeleteMovie:

    def test_admin_deletes(self, client, db_session, admin_headers):
        movie = create_movie(db_session)

        assert client.delete(f"/movies/{movie.id}", headers=admin_headers).status_code == 200
        assert client.get(f"/movies/{movie.id}").status_code == 404

    def test_api_key_deletes(self, client, db_session):
        movie = create_movie(db_session)

        response = client.delete(f"/movies/{movie.id}", headers={"x-api-key": "test-api-key"})

        assert response.status_code == 200

    def test_wrong_api_key(self, client, db_session):
        movie = create_movie(db_session)
        assert client.delete(f"/movies/{movie.id}", headers={"x-api-key": "nope"}).status_code == 401

    def test_trusted_member_forbidden(self, client, db_session, member_headers):
        movie = create_movie(db_session)
        assert client.delete(f"/movies/{movie.id}", headers=member_headers).status_code == 403

    def test_missing_movie(self, client, admin_headers):
        assert client.delete(f"/movies/{uuid.uuid4()}", headers=admin_headers).status_code == 404


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.parametrize("value, hosts", [
    ("", []),
    (" , ", []),
    ("api.example.com", ["api.example.com"]),
    ("api.example.com, www.example.com,", ["api.example.com", "www.example.com"]),
])
def test_trusted_hosts_from_env(monkeypatch, value, hosts):
    monkeypatch.setenv("TRUSTED_HOSTS", value)
    assert trusted_hosts_from_env() == hosts
