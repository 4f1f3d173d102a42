"""Customer records, health notes and loyalty points."""
from decimal import Decimal

from conftest import fresh
from pharmatrust.models import Customer, Sale


def test_create_customer_with_nested_details(client, cashier_headers):
    resp = client.post(
        "/api/customers",
        json={
            "name": "Meera Iyer",
            "phone": "9988776655",
            "email": "meera@pharmatrust.in",
            "gender": "Female",
            "dateOfBirth": "1990-04-12",
            "address": {"city": "Chennai", "pincode": "600001"},
            "allergies": [{"allergen": "Penicillin", "reaction": "Rash"}],
            "emergencyContact": {"name": "Arun", "phone": "9876501234", "relation": "Brother"},
        },
        headers=cashier_headers,
    )

    assert resp.status_code == 201, resp.text
    customer = resp.json()["data"]["customer"]
    assert customer["customerType"] == "Regular"
    assert customer["loyaltyPoints"] == 0
    assert customer["totalPurchases"] == 0
    assert customer["address"]["city"] == "Chennai"
    assert customer["allergies"] == [{"allergen": "Penicillin", "reaction": "Rash"}]
    assert customer["emergencyContact"]["relation"] == "Brother"
    assert customer["age"] >= 30


def test_phone_must_have_ten_digits(client, cashier_headers):
    resp = client.post("/api/customers", json={"name": "Short", "phone": "12345"}, headers=cashier_headers)
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Validation error")


def test_loyalty_points_adjustment(client, db, cashier_headers, make_customer):
    customer = make_customer(loyalty_points=10)
    url = f"/api/customers/{customer.id}/loyalty-points"

    added = client.put(url, json={"points": 5, "operation": "add"}, headers=cashier_headers)
    assert added.status_code == 200
    assert added.json()["message"] == "Loyalty points added successfully"
    assert added.json()["data"]["previousPoints"] == 10
    assert added.json()["data"]["newPoints"] == 15
    assert added.json()["data"]["pointsChanged"] == 5

    redeemed = client.put(url, json={"points": 15, "operation": "subtract"}, headers=cashier_headers)
    assert redeemed.json()["data"]["newPoints"] == 0


def test_loyalty_over_redemption_rejected(client, db, cashier_headers, make_customer):
    customer = make_customer(loyalty_points=3)

    resp = client.put(
        f"/api/customers/{customer.id}/loyalty-points",
        json={"points": 4, "operation": "subtract"},
        headers=cashier_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "Insufficient loyalty points"
    assert fresh(db, Customer, customer.id).loyalty_points == 3


def test_medical_history_and_allergies_append(client, cashier_headers, make_customer):
    customer = make_customer()

    client.post(
        f"/api/customers/{customer.id}/medical-history",
        json={"condition": "Diabetes", "diagnosedDate": "2019-06-01"},
        headers=cashier_headers,
    )
    resp = client.post(
        f"/api/customers/{customer.id}/medical-history",
        json={"condition": "Hypertension"},
        headers=cashier_headers,
    )
    assert resp.json()["message"] == "Medical history added successfully"
    history = resp.json()["data"]["customer"]["medicalHistory"]
    assert [h["condition"] for h in history] == ["Diabetes", "Hypertension"]
    assert history[0]["diagnosedDate"] == "2019-06-01"

    allergy = client.post(
        f"/api/customers/{customer.id}/allergies",
        json={"allergen": "Sulfa"},
        headers=cashier_headers,
    )
    assert allergy.json()["data"]["customer"]["allergies"][0]["allergen"] == "Sulfa"

    missing = client.post("/api/customers/999/allergies", json={"allergen": "Dust"}, headers=cashier_headers)
    assert missing.status_code == 404


def test_list_filters(client, cashier_headers, make_customer):
    make_customer(name="Rahul Sharma", customer_type="VIP", gender="Male")
    make_customer(name="Rita Sharma", gender="Female")
    make_customer(name="Zoya Khan", is_active=False)

    sharmas = client.get("/api/customers", params={"search": "sharma"}, headers=cashier_headers).json()["data"]
    assert sharmas["pagination"]["totalItems"] == 2

    vip = client.get("/api/customers", params={"customerType": "VIP"}, headers=cashier_headers).json()["data"]
    assert [c["name"] for c in vip["customers"]] == ["Rahul Sharma"]

    inactive = client.get("/api/customers", params={"isActive": "false"}, headers=cashier_headers).json()["data"]
    assert [c["name"] for c in inactive["customers"]] == ["Zoya Khan"]


def test_update_does_not_touch_loyalty(client, cashier_headers, make_customer):
    customer = make_customer(loyalty_points=7)
    resp = client.put(
        f"/api/customers/{customer.id}",
        json={"name": "Renamed", "loyaltyPoints": 1000},
        headers=cashier_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["customer"]["name"] == "Renamed"
    assert resp.json()["data"]["customer"]["loyaltyPoints"] == 7


def test_stats(client, cashier_headers, make_customer):
    make_customer(customer_type="VIP", total_purchases=Decimal("900.00"))
    make_customer(total_purchases=Decimal("50.00"), is_active=False)

    data = client.get("/api/customers/stats", headers=cashier_headers).json()["data"]
    assert data["overview"] == {"totalCustomers": 2, "activeCustomers": 1, "inactiveCustomers": 1}
    assert data["topCustomers"][0]["totalPurchases"] == 900.0
    assert {"customerType": "VIP", "count": 1} in data["customerTypeDistribution"]


def test_delete_keeps_sales_history(client, db, admin_headers, cashier_headers, make_customer, make_medicine):
    customer = make_customer()
    medicine = make_medicine(quantity=5)
    sale = client.post(
        "/api/sales",
        json={
            "customer": customer.id,
            "items": [{"medicine": medicine.id, "quantity": 1, "unitPrice": 10}],
            "paymentMethod": "Cash",
            "paidAmount": 20,
        },
        headers=cashier_headers,
    ).json()["data"]["sale"]

    assert client.delete(f"/api/customers/{customer.id}", headers=cashier_headers).status_code == 403
    assert client.delete(f"/api/customers/{customer.id}", headers=admin_headers).status_code == 200

    kept = fresh(db, Sale, sale["id"])
    assert kept is not None
    assert kept.customer_id is None
