"""Integration tests for company endpoints."""

import pytest

pytestmark = pytest.mark.asyncio

NEW_COMPANY = {
    "company_name": "Umbrella Corp",
    "contact_person": "Albert Wesker",
    "email": "hq@umbrella.example.com",
    "phone": "+14165550199",
    "address": "3 Hive Rd, Raccoon City",
}


class TestCompanyAccess:
    async def test_creator_owns_and_others_are_denied(self, client, bearer, world, audit_recorder):
        """Accountant X creates C; Y is denied by direct fetch and sees nothing in the list."""
        response = await client.post("/companies", json=NEW_COMPANY, headers=bearer(world.as_accountant_a))
        assert response.status_code == 201
        company = response.json()
        assert company["accountant_id"] == world.accountant_a.accountant_id
        assert ("company.create", str(company["company_id"])) in audit_recorder.actions

        response = await client.get(f"/companies/{company['company_id']}", headers=bearer(world.as_accountant_b))
        assert response.status_code == 403

        response = await client.get("/companies", headers=bearer(world.as_accountant_b))
        ids = [c["company_id"] for c in response.json()["companies"]]
        assert company["company_id"] not in ids

    async def test_client_reads_own_company(self, client, bearer, world):
        response = await client.get(
            f"/companies/{world.company_a.company_id}", headers=bearer(world.as_client_a)
        )
        assert response.status_code == 200
        assert response.json()["company_name"] == "Acme Ltd"

    async def test_client_cannot_read_other_company(self, client, bearer, world):
        response = await client.get(
            f"/companies/{world.company_b.company_id}", headers=bearer(world.as_client_a)
        )
        assert response.status_code == 403

    async def test_client_cannot_list_or_create(self, client, bearer, world):
        headers = bearer(world.as_client_a)
        assert (await client.get("/companies", headers=headers)).status_code == 403
        assert (await client.post("/companies", json=NEW_COMPANY, headers=headers)).status_code == 403

    async def test_missing_company(self, client, bearer, world):
        response = await client.get("/companies/99999", headers=bearer(world.as_accountant_a))
        assert response.status_code == 404
        assert response.json() == {"error": "Company not found"}


class TestCompanyListing:
    async def test_page_shape(self, client, bearer, world):
        response = await client.get("/companies", headers=bearer(world.as_accountant_a))

        assert response.status_code == 200
        body = response.json()
        assert body["currentPage"] == 1
        assert body["totalPages"] == 1
        assert body["total"] == 1
        assert [c["company_name"] for c in body["companies"]] == ["Acme Ltd"]

    async def test_search(self, client, bearer, world):
        headers = bearer(world.as_accountant_a)
        response = await client.get("/companies", params={"search": "coyote"}, headers=headers)
        assert response.json()["total"] == 1

        response = await client.get("/companies", params={"search": "globex"}, headers=headers)
        assert response.json()["total"] == 0

    async def test_invalid_limit(self, client, bearer, world):
        response = await client.get(
            "/companies", params={"limit": 500}, headers=bearer(world.as_accountant_a)
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "limit"


class TestCompanyUpdate:
    async def test_partial_update(self, client, bearer, world):
        response = await client.put(
            f"/companies/{world.company_a.company_id}",
            json={"contact_person": "Road Runner"},
            headers=bearer(world.as_client_a),
        )
        assert response.status_code == 200
        assert response.json()["contact_person"] == "Road Runner"
        assert response.json()["company_name"] == "Acme Ltd"

    async def test_unknown_fields_are_rejected(self, client, bearer, world):
        """The owning accountant cannot be reassigned through an update."""
        response = await client.put(
            f"/companies/{world.company_a.company_id}",
            json={"accountant_id": world.accountant_b.accountant_id},
            headers=bearer(world.as_accountant_a),
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "accountant_id"

    async def test_email_taken_by_another_company(self, client, bearer, world):
        response = await client.put(
            f"/companies/{world.company_a.company_id}",
            json={"email": world.company_b.email},
            headers=bearer(world.as_accountant_a),
        )
        assert response.status_code == 409
        assert response.json() == {"error": "A company with this email already exists"}

    async def test_invalid_phone(self, client, bearer, world):
        response = await client.put(
            f"/companies/{world.company_a.company_id}",
            json={"phone": "call me"},
            headers=bearer(world.as_accountant_a),
        )
        assert response.status_code == 400


class TestAssociation:
    async def test_associate_unclaimed_company(self, client, bearer, world):
        path = f"/companies/associate/{world.unassociated.company_id}"

        response = await client.post(path, headers=bearer(world.as_accountant_b))
        assert response.status_code == 200
        assert response.json()["accountant_id"] == world.accountant_b.accountant_id

        response = await client.post(path, headers=bearer(world.as_accountant_a))
        assert response.status_code == 404
        assert response.json() == {
            "error": "Company not found or already associated with an accountant"
        }

    async def test_clients_cannot_associate(self, client, bearer, world):
        response = await client.post(
            f"/companies/associate/{world.unassociated.company_id}",
            headers=bearer(world.as_client_a),
        )
        assert response.status_code == 403


class TestCompanyDeletion:
    async def test_company_with_employees_is_kept(self, client, bearer, world):
        response = await client.delete(
            f"/companies/{world.company_a.company_id}", headers=bearer(world.as_accountant_a)
        )
        assert response.status_code == 409

    async def test_delete_empty_company(self, client, bearer, world):
        headers = bearer(world.as_accountant_a)
        created = (await client.post("/companies", json=NEW_COMPANY, headers=headers)).json()

        response = await client.delete(f"/companies/{created['company_id']}", headers=headers)
        assert response.status_code == 200

        response = await client.get(f"/companies/{created['company_id']}", headers=headers)
        assert response.status_code == 404

    async def test_other_accountant_cannot_delete(self, client, bearer, world):
        response = await client.delete(
            f"/companies/{world.company_a.company_id}", headers=bearer(world.as_accountant_b)
        )
        assert response.status_code == 403
