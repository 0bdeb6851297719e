"""
Real Estate API - HTTP Endpoint Tests
======================================

What:  End-to-end tests through FastAPI: status codes, camelCase payloads,
       auth enforcement and the shared error body.
How:   HTTPX AsyncClient over ASGITransport against create_app() with an
       in-memory database (see conftest.py).
"""

from decimal import Decimal

import pytest

from realestate.services.version_token import encode_version_token


async def create_property(client, auth_headers, payload):
    response = await client.post("/api/properties", json=payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_login_returns_token(self, client):
        response = await client.post(
            "/api/auth/login", json={"username": "admin", "password": "admin123"}
        )
        assert response.status_code == 200
        assert response.json()["token"].count(".") == 2

    @pytest.mark.asyncio
    async def test_login_rejects_bad_password(self, client):
        response = await client.post(
            "/api/auth/login", json={"username": "admin", "password": "wrong"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_token_from_login_authorizes_writes(self, client, property_payload):
        login = await client.post(
            "/api/auth/login", json={"username": "user", "password": "user123"}
        )
        headers = {"Authorization": f"Bearer {login.json()['token']}"}

        response = await client.post("/api/properties", json=property_payload, headers=headers)

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_write_without_token(self, client, property_payload):
        response = await client.post("/api/properties", json=property_payload)
        assert response.status_code == 401
        assert response.json()["message"] == "Missing bearer token."

    @pytest.mark.asyncio
    async def test_write_with_invalid_token(self, client, property_payload):
        response = await client.post(
            "/api/properties",
            json=property_payload,
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_reads_are_anonymous(self, client):
        response = await client.get("/api/properties")
        assert response.status_code == 200


class TestPropertyRoutes:

    @pytest.mark.asyncio
    async def test_create_and_get(self, client, auth_headers, property_payload):
        response = await client.post("/api/properties", json=property_payload, headers=auth_headers)

        assert response.status_code == 201
        created = response.json()
        assert response.headers["Location"] == f"/api/properties/{created['id']}"
        assert created["codeInternal"] == "PROP-001"
        assert created["price"] == 250000
        assert created["imageCount"] == 0
        assert created["versionToken"] == encode_version_token(1)
        assert created["ownerId"] is None

        fetched = await client.get(f"/api/properties/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Casa Azul"

    @pytest.mark.asyncio
    async def test_get_unknown_property(self, client):
        response = await client.get("/api/properties/999")
        body = response.json()
        assert response.status_code == 404
        assert body["error"] == "not_found"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_duplicate_code_conflict(self, client, auth_headers, property_payload):
        await create_property(client, auth_headers, property_payload)
        response = await client.post("/api/properties", json=property_payload, headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_key"

    @pytest.mark.asyncio
    async def test_invalid_body_is_400(self, client, auth_headers, property_payload):
        property_payload["codeInternal"] = "X"
        property_payload["price"] = -1
        response = await client.post("/api/properties", json=property_payload, headers=auth_headers)
        body = response.json()
        assert response.status_code == 400
        assert body["error"] == "validation_error"
        assert len(body["details"]["errors"]) == 2

    @pytest.mark.asyncio
    async def test_future_year_is_400(self, client, auth_headers, property_payload):
        property_payload["year"] = 2099
        response = await client.post("/api/properties", json=property_payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "year"

    @pytest.mark.asyncio
    async def test_unknown_owner_is_404(self, client, auth_headers, property_payload):
        property_payload["ownerId"] = 321
        response = await client.post("/api/properties", json=property_payload, headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_then_stale_update(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        url = f"/api/properties/{created['id']}"
        update = {
            "name": "Casa Roja",
            "address": "Carrera 7",
            "year": 2001,
            "versionToken": created["versionToken"],
        }

        first = await client.put(url, json=update, headers=auth_headers)
        assert first.status_code == 204

        second = await client.put(url, json=update, headers=auth_headers)
        assert second.status_code == 409
        assert second.json()["error"] == "concurrency_conflict"

        current = (await client.get(url)).json()
        assert current["name"] == "Casa Roja"
        assert current["versionToken"] == encode_version_token(2)

    @pytest.mark.asyncio
    async def test_update_requires_token(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        response = await client.put(
            f"/api/properties/{created['id']}",
            json={"name": "Casa Roja", "address": "Carrera 7", "year": 2001},
            headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_with_malformed_token(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        response = await client.put(
            f"/api/properties/{created['id']}",
            json={"name": "Casa Roja", "address": "Carrera 7", "year": 2001, "versionToken": "@@"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "versionToken"

    @pytest.mark.asyncio
    async def test_price_change_and_history(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        url = f"/api/properties/{created['id']}"

        response = await client.patch(
            f"{url}/price", json={"newPrice": 275000.5}, headers=auth_headers
        )
        assert response.status_code == 204

        current = (await client.get(url)).json()
        assert current["price"] == 275000.5

        traces = (await client.get(f"{url}/traces")).json()
        assert len(traces) == 1
        assert traces[0]["value"] == 275000.5
        assert traces[0]["label"] == "Price change"
        assert traces[0]["tax"] == 0

    @pytest.mark.asyncio
    async def test_price_change_with_stale_token(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        url = f"/api/properties/{created['id']}/price"

        await client.patch(url, json={"newPrice": 1000}, headers=auth_headers)
        response = await client.patch(
            url,
            json={"newPrice": 2000, "changedBy": "Ana", "versionToken": created["versionToken"]},
            headers=auth_headers,
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unchanged_price_with_old_token_succeeds(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        url = f"/api/properties/{created['id']}"

        await client.patch(f"{url}/price", json={"newPrice": 1000}, headers=auth_headers)
        response = await client.patch(
            f"{url}/price",
            json={"newPrice": 1000, "versionToken": created["versionToken"]},
            headers=auth_headers,
        )

        assert response.status_code == 204
        traces = (await client.get(f"{url}/traces")).json()
        assert len(traces) == 1

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        response = await client.patch(
            f"/api/properties/{created['id']}/price",
            json={"newPrice": -5},
            headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_traces_of_unknown_property(self, client):
        response = await client.get("/api/properties/55/traces")
        assert response.status_code == 404


class TestImageRoutes:

    @pytest.mark.asyncio
    async def test_upload_is_anonymous_by_default(
        self, client, auth_headers, property_payload, sample_image_bytes
    ):
        created = await create_property(client, auth_headers, property_payload)

        response = await client.post(
            f"/api/properties/{created['id']}/images",
            files={"file": ("house.jpg", sample_image_bytes, "image/jpeg")},
            data={"enabled": "true"},
        )

        assert response.status_code == 204
        current = (await client.get(f"/api/properties/{created['id']}")).json()
        assert current["imageCount"] == 1
        assert current["versionToken"] == created["versionToken"]

    @pytest.mark.asyncio
    async def test_upload_requires_token_when_configured(
        self, app, client, auth_headers, property_payload, sample_image_bytes
    ):
        created = await create_property(client, auth_headers, property_payload)
        app.state.settings.images_require_auth = True
        url = f"/api/properties/{created['id']}/images"
        files = {"file": ("house.jpg", sample_image_bytes, "image/jpeg")}

        anonymous = await client.post(url, files=files)
        authorized = await client.post(url, files=files, headers=auth_headers)

        assert anonymous.status_code == 401
        assert authorized.status_code == 204

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        response = await client.post(
            f"/api/properties/{created['id']}/images",
            files={"file": ("empty.jpg", b"", "image/jpeg")},
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "file"

    @pytest.mark.asyncio
    async def test_oversized_file_rejected(self, app, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        too_big = b"x" * (app.state.settings.max_image_size + 1)
        response = await client.post(
            f"/api/properties/{created['id']}/images",
            files={"file": ("big.jpg", too_big, "image/jpeg")},
        )
        assert response.status_code == 400
        assert "exceeds maximum" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_upload_to_unknown_property(self, client, sample_image_bytes):
        response = await client.post(
            "/api/properties/404/images",
            files={"file": ("house.jpg", sample_image_bytes, "image/jpeg")},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_file_part(self, client, auth_headers, property_payload):
        created = await create_property(client, auth_headers, property_payload)
        response = await client.post(
            f"/api/properties/{created['id']}/images", data={"enabled": "true"}
        )
        assert response.status_code == 400


class TestListRoute:

    @pytest.mark.asyncio
    async def test_paged_listing(self, app, client, make_property):
        async with app.state.database.session() as session:
            for i in range(1, 36):
                await make_property(session, code=f"L-{i:03d}", price=Decimal(1000 * i))
            await session.commit()

        response = await client.get(
            "/api/properties",
            params={"sortBy": "price", "desc": "true", "page": 2, "pageSize": 10},
        )

        body = response.json()
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "35"
        assert body["total"] == 35
        assert body["page"] == 2
        assert body["pageSize"] == 10
        assert [item["codeInternal"] for item in body["items"]] == [
            f"L-{i:03d}" for i in range(25, 15, -1)
        ]

    @pytest.mark.asyncio
    async def test_filters_from_query_string(self, app, client, make_property):
        async with app.state.database.session() as session:
            await make_property(session, code="Q-OLD", year=1950, price=Decimal("50000"))
            await make_property(session, code="Q-NEW", year=2020, price=Decimal("500000"))
            await session.commit()

        response = await client.get(
            "/api/properties",
            params={"yearFrom": 2000, "minPrice": 100000, "withImages": "false", "search": "q-"},
        )

        assert [item["codeInternal"] for item in response.json()["items"]] == ["Q-NEW"]

    @pytest.mark.asyncio
    async def test_malformed_query_parameter(self, client):
        response = await client.get("/api/properties", params={"page": "two"})
        assert response.status_code == 400


class TestOwnerRoutes:

    @pytest.mark.asyncio
    async def test_create_and_get_owner(self, client, auth_headers):
        response = await client.post(
            "/api/owners",
            json={"name": "Ana Gómez", "address": "Av. 1", "birthday": "1980-05-17"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        owner = response.json()
        assert response.headers["Location"] == f"/api/owners/{owner['id']}"

        fetched = await client.get(f"/api/owners/{owner['id']}")
        assert fetched.json() == {
            "id": owner["id"],
            "name": "Ana Gómez",
            "address": "Av. 1",
            "birthday": "1980-05-17",
        }

    @pytest.mark.asyncio
    async def test_property_reports_owner_name(self, client, auth_headers, property_payload):
        owner = (
            await client.post("/api/owners", json={"name": "Ana"}, headers=auth_headers)
        ).json()
        property_payload["ownerId"] = owner["id"]

        created = await create_property(client, auth_headers, property_payload)

        assert created["ownerId"] == owner["id"]
        assert created["ownerName"] == "Ana"

    @pytest.mark.asyncio
    async def test_create_owner_requires_token(self, client):
        response = await client.post("/api/owners", json={"name": "Ana"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_owner(self, client):
        response = await client.get("/api/owners/8")
        assert response.status_code == 404


class TestServiceRoutes:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_root_redirects_to_docs(self, client):
        response = await client.get("/")
        assert response.status_code == 307
        assert response.headers["Location"] == "/docs"

    @pytest.mark.asyncio
    async def test_client_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
