"""Tests for profile, preferences, subscriptions and purchases."""


class TestProfile:
    def test_update_profile(self, listener):
        response = listener.patch("/api/me", json={"city": "Lyon", "displayName": "L"})

        assert response.status_code == 200
        assert response.json()["city"] == "Lyon"
        assert response.json()["displayName"] == "L"

    def test_email_taken(self, listener, other_listener):
        response = listener.patch("/api/me", json={"email": "someone@example.com"})

        assert response.status_code == 400
        assert response.json() == {"message": "Email already exists"}

    def test_preferences_round_trip(self, listener):
        assert listener.get("/api/me/preferences").json()["theme"] == "dark"

        body = {
            "language": "fr",
            "theme": "light",
            "audioQuality": "high",
            "autoplay": False,
            "notifications": {"email": False, "push": True, "newReleases": False, "playlists": True},
        }
        assert listener.put("/api/me/preferences", json=body).json() == body
        assert listener.get("/api/me/preferences").json() == body

    def test_invalid_preference_value(self, listener):
        response = listener.put("/api/me/preferences", json={"theme": "neon"})

        assert response.status_code == 400


class TestSubscriptions:
    def test_plans_are_public(self, client):
        plans = client.get("/api/subscription-plans").json()

        assert [(p["name"], p["price"]) for p in plans] == [
            ("Free", 0),
            ("Premium", 999),
            ("Ultimate", 1499),
        ]

    def test_no_subscription(self, listener):
        assert listener.get("/api/me/subscription").json() == {
            "active": False,
            "id": None,
            "planId": None,
            "startDate": None,
            "endDate": None,
            "paymentMethod": None,
            "autoRenew": None,
            "plan": None,
        }

    def test_subscribe_upgrades_tier(self, listener):
        premium = listener.get("/api/subscription-plans").json()[1]

        response = listener.post(
            "/api/me/subscription", json={"planId": premium["id"], "paymentMethod": "card"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["active"] is True
        assert data["plan"]["name"] == "Premium"
        assert listener.get("/api/user").json()["subscriptionTier"] == "premium"

    def test_change_subscription(self, listener):
        plans = listener.get("/api/subscription-plans").json()
        listener.post("/api/me/subscription", json={"planId": plans[1]["id"]})

        data = listener.patch(
            "/api/me/subscription", json={"planId": plans[2]["id"], "autoRenew": False}
        ).json()

        assert data["plan"]["name"] == "Ultimate"
        assert data["autoRenew"] is False

    def test_unknown_plan(self, listener):
        response = listener.post("/api/me/subscription", json={"planId": 999})

        assert response.status_code == 404
        assert response.json() == {"message": "Subscription plan not found"}


class TestPurchases:
    def test_checkout_album(self, listener, catalog):
        response = listener.post(
            "/api/me/purchases",
            json={"items": [{"itemType": "album", "itemId": catalog["album"].id}]},
        )

        assert response.status_code == 201
        purchase = response.json()
        assert purchase["totalAmount"] == 999
        assert purchase["receiptUrl"] == f"/api/me/purchases/{purchase['id']}"
        assert purchase["items"][0]["title"] == "Night Drive"
        assert [p["id"] for p in listener.get("/api/me/purchases").json()] == [purchase["id"]]

    def test_checkout_mixed_cart(self, listener, catalog):
        response = listener.post(
            "/api/me/purchases",
            json={
                "items": [
                    {"itemType": "track", "itemId": catalog["tracks"][0].id},
                    {"itemType": "track", "itemId": catalog["tracks"][2].id},
                ]
            },
        )

        assert response.json()["totalAmount"] == 129 + 99

    def test_track_not_for_sale(self, listener, catalog):
        response = listener.post(
            "/api/me/purchases",
            json={"items": [{"itemType": "track", "itemId": catalog["tracks"][1].id}]},
        )

        assert response.status_code == 400

    def test_empty_cart(self, listener):
        assert listener.post("/api/me/purchases", json={"items": []}).status_code == 400
