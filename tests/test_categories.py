from database import init_db


class TestCategories:
    def test_create_and_list_sorted_by_name(self, client, auth_headers, make_category):
        make_category("Salary", "income")
        make_category("Food", "expense")

        response = client.get("/api/categories", headers=auth_headers)

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Food", "Salary"]

    def test_created_category_is_owned_by_user(self, client, auth_headers, make_category):
        me = client.get("/api/auth/me", headers=auth_headers).json()

        category = make_category("Salary", "income")

        assert category["user_id"] == me["id"]
        assert category["type"] == "income"

    def test_type_must_be_income_or_expense(self, client, auth_headers):
        response = client.post("/api/categories", json={"name": "Gifts", "type": "other"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == "type"

    def test_blank_name_is_rejected(self, client, auth_headers):
        response = client.post("/api/categories", json={"name": "  ", "type": "income"}, headers=auth_headers)

        assert response.status_code == 400

    def test_list_filters_by_type(self, client, auth_headers, make_category):
        make_category("Salary", "income")
        make_category("Food", "expense")

        response = client.get("/api/categories", params={"type": "expense"}, headers=auth_headers)

        assert [c["name"] for c in response.json()] == ["Food"]

    def test_users_do_not_see_each_others_categories(self, client, auth_headers, other_auth_headers, make_category):
        mine = make_category("Mine", "expense")

        theirs = client.get("/api/categories", headers=other_auth_headers).json()

        assert mine["id"] not in [c["id"] for c in theirs]
        assert client.get(f"/api/categories/{mine['id']}", headers=other_auth_headers).status_code == 404

    def test_shared_categories_are_listed_for_everyone(self, client, app, auth_headers, other_auth_headers):
        init_db(app.state.engine, seed_defaults=True)

        mine = client.get("/api/categories", headers=auth_headers).json()
        theirs = client.get("/api/categories", headers=other_auth_headers).json()

        assert mine == theirs
        assert {"Salary", "Food"} <= {c["name"] for c in mine}
        assert all(c["user_id"] is None for c in mine)

    def test_seeding_shared_categories_is_idempotent(self, client, app, auth_headers):
        init_db(app.state.engine, seed_defaults=True)
        first = client.get("/api/categories", headers=auth_headers).json()

        init_db(app.state.engine, seed_defaults=True)
        second = client.get("/api/categories", headers=auth_headers).json()

        assert len(first) == len(second)


class TestUpdateCategory:
    def test_owner_can_update(self, client, auth_headers, make_category):
        category = make_category("Salary", "income")

        response = client.put(
            f"/api/categories/{category['id']}",
            json={"name": "Wages", "type": "income"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Wages"

    def test_other_user_gets_not_found(self, client, auth_headers, other_auth_headers, make_category):
        category = make_category("Salary", "income")

        response = client.put(
            f"/api/categories/{category['id']}",
            json={"name": "Hijacked", "type": "expense"},
            headers=other_auth_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Category not found or not owned by user"}
        unchanged = client.get(f"/api/categories/{category['id']}", headers=auth_headers).json()
        assert unchanged["name"] == "Salary"

    def test_missing_category_gets_not_found(self, client, auth_headers):
        response = client.put("/api/categories/999", json={"name": "X", "type": "income"}, headers=auth_headers)

        assert response.status_code == 404

    def test_shared_category_cannot_be_updated(self, client, app, auth_headers):
        init_db(app.state.engine, seed_defaults=True)
        shared = client.get("/api/categories", headers=auth_headers).json()[0]

        response = client.put(
            f"/api/categories/{shared['id']}",
            json={"name": "Mine now", "type": shared["type"]},
            headers=auth_headers,
        )

        assert response.status_code == 404


class TestDeleteCategory:
    def test_unused_category_can_be_deleted(self, client, auth_headers, make_category):
        category = make_category("Salary", "income")

        response = client.delete(f"/api/categories/{category['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Category deleted"}
        assert client.get(f"/api/categories/{category['id']}", headers=auth_headers).status_code == 404

    def test_category_in_use_cannot_be_deleted(self, client, auth_headers, make_category, make_transaction):
        category = make_category("Food", "expense")
        make_transaction(category["id"])

        response = client.delete(f"/api/categories/{category['id']}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"message": "Cannot delete category that is being used by transactions"}
        assert client.get(f"/api/categories/{category['id']}", headers=auth_headers).status_code == 200

    def test_category_becomes_deletable_once_unreferenced(self, client, auth_headers, make_category, make_transaction):
        category = make_category("Food", "expense")
        transaction = make_transaction(category["id"])
        client.delete(f"/api/transactions/{transaction['id']}", headers=auth_headers)

        response = client.delete(f"/api/categories/{category['id']}", headers=auth_headers)

        assert response.status_code == 200

    def test_other_user_gets_not_found(self, client, auth_headers, other_auth_headers, make_category):
        category = make_category("Food", "expense")

        response = client.delete(f"/api/categories/{category['id']}", headers=other_auth_headers)

        assert response.status_code == 404
        assert client.get(f"/api/categories/{category['id']}", headers=auth_headers).status_code == 200

    def test_in_use_is_reported_before_ownership(self, client, auth_headers, other_auth_headers, make_category, make_transaction):
        category = make_category("Food", "expense")
        make_transaction(category["id"])

        response = client.delete(f"/api/categories/{category['id']}", headers=other_auth_headers)

        assert response.status_code == 400

    def test_non_integer_id_is_a_validation_error(self, client, auth_headers):
        response = client.delete("/api/categories/abc", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["location"] == "path"
