"""Supplier directory: validation, uniqueness, activation and stats."""
from conftest import fresh
from pharmatrust.models import Medicine


def supplier_body(**overrides):
    body = {
        "name": "Sai Pharma Distributors",
        "email": "Orders@SaiPharma.in",
        "phone": "9876543210",
        "address": {"street": "12 MG Road", "city": "Pune", "state": "Maharashtra", "pincode": "411001"},
        "contactPerson": "Ramesh Kulkarni",
        "gstNumber": "27AAPFU0939F1ZV",
        "licenseNumber": "MH-PUN-20B-4411",
        "bankDetails": {"bankName": "HDFC", "accountNumber": "50100012345", "ifscCode": "HDFC0001234"},
        "paymentTerms": "Credit-30",
    }
    body.update(overrides)
    return body


def test_create_supplier(client, pharmacist_headers):
    resp = client.post("/api/suppliers", json=supplier_body(), headers=pharmacist_headers)

    assert resp.status_code == 201, resp.text
    supplier = resp.json()["data"]["supplier"]
    assert supplier["email"] == "orders@saipharma.in"
    assert supplier["rating"] == 5
    assert supplier["isActive"] is True
    assert supplier["bankDetails"]["ifscCode"] == "HDFC0001234"
    assert supplier["address"]["city"] == "Pune"


def test_invalid_gst_and_ifsc_rejected(client, pharmacist_headers):
    bad_gst = client.post("/api/suppliers", json=supplier_body(gstNumber="12345"), headers=pharmacist_headers)
    assert bad_gst.status_code == 400

    bad_ifsc = client.post(
        "/api/suppliers",
        json=supplier_body(bankDetails={"ifscCode": "HDFC1234"}),
        headers=pharmacist_headers,
    )
    assert bad_ifsc.status_code == 400


def test_duplicate_unique_fields_conflict(client, pharmacist_headers):
    assert client.post("/api/suppliers", json=supplier_body(), headers=pharmacist_headers).status_code == 201

    same_email = client.post(
        "/api/suppliers",
        json=supplier_body(gstNumber="29ABCDE1234F1Z5", licenseNumber="KA-1"),
        headers=pharmacist_headers,
    )
    assert same_email.status_code == 409
    assert same_email.json()["message"] == "Email already registered to another supplier"

    same_gst = client.post(
        "/api/suppliers",
        json=supplier_body(email="other@saipharma.in", licenseNumber="KA-2"),
        headers=pharmacist_headers,
    )
    assert same_gst.status_code == 409


def test_cashier_cannot_write(client, cashier_headers):
    assert client.post("/api/suppliers", json=supplier_body(), headers=cashier_headers).status_code == 403


def test_toggle_status(client, pharmacist_headers, make_supplier):
    supplier = make_supplier()

    off = client.put(f"/api/suppliers/{supplier.id}/toggle-status", headers=pharmacist_headers)
    assert off.json()["message"] == "Supplier deactivated successfully"
    assert off.json()["data"]["supplier"]["isActive"] is False

    on = client.put(f"/api/suppliers/{supplier.id}/toggle-status", headers=pharmacist_headers)
    assert on.json()["message"] == "Supplier activated successfully"


def test_search_by_city_and_filters(client, cashier_headers, make_supplier):
    make_supplier(name="Pune Meds")
    make_supplier(
        name="Chennai Health",
        address={"street": "1 Anna Salai", "city": "Chennai", "state": "Tamil Nadu", "pincode": "600002"},
        payment_terms="Credit-15",
    )

    chennai = client.get("/api/suppliers", params={"search": "chennai"}, headers=cashier_headers).json()["data"]
    assert [s["name"] for s in chennai["suppliers"]] == ["Chennai Health"]

    credit = client.get("/api/suppliers", params={"paymentTerms": "Credit-15"}, headers=cashier_headers).json()["data"]
    assert credit["pagination"]["totalItems"] == 1


def test_update_supplier(client, pharmacist_headers, make_supplier):
    supplier = make_supplier()
    resp = client.put(
        f"/api/suppliers/{supplier.id}",
        json={"rating": 3, "notes": "Late deliveries"},
        headers=pharmacist_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["supplier"]["rating"] == 3

    out_of_range = client.put(f"/api/suppliers/{supplier.id}", json={"rating": 9}, headers=pharmacist_headers)
    assert out_of_range.status_code == 400


def test_stats(client, cashier_headers, make_supplier):
    make_supplier(rating=4)
    make_supplier(is_active=False)

    data = client.get("/api/suppliers/stats", headers=cashier_headers).json()["data"]
    assert data["overview"] == {"totalSuppliers": 2, "activeSuppliers": 1, "inactiveSuppliers": 1}
    assert {"rating": 4, "count": 1} in data["ratingDistribution"]


def test_delete_detaches_medicines(client, db, admin_headers, pharmacist_headers, make_supplier, make_medicine):
    supplier_id = make_supplier().id
    medicine_id = make_medicine(supplier_id=supplier_id).id

    assert client.delete(f"/api/suppliers/{supplier_id}", headers=pharmacist_headers).status_code == 403
    resp = client.delete(f"/api/suppliers/{supplier_id}", headers=admin_headers)
    assert resp.status_code == 200

    assert fresh(db, Medicine, medicine_id).supplier_id is None
    assert client.get(f"/api/suppliers/{supplier_id}", headers=admin_headers).status_code == 404
