"""Seed a development database with staff, a supplier, common Indian medicines and customers."""
from datetime import date, timedelta
from decimal import Decimal

from pharmatrust.db.init_db import init_db
from pharmatrust.db.session import SessionLocal
from pharmatrust.core.security import get_password_hash
from pharmatrust.models.medicine import Medicine
from pharmatrust.models.user import User
from pharmatrust.schemas.customer import CustomerCreate
from pharmatrust.schemas.supplier import SupplierCreate
from pharmatrust.services.customer_service import create_customer
from pharmatrust.services.supplier_service import create_supplier

STAFF = [
    ("Asha Admin", "admin.demo@pharmatrust.in", "admin"),
    ("Prakash Pharmacist", "pharmacist@pharmatrust.in", "pharmacist"),
    ("Chitra Cashier", "cashier@pharmatrust.in", "cashier"),
]
DEMO_PASSWORD = "Pharma@123"

MEDICINES = [
    # name, generic, category, manufacturer, qty, min, cost, sell
    ("Paracetamol 500mg", "Paracetamol", "Tablet", "Cipla", 200, 30, "1.50", "2.50"),
    ("Dolo 650", "Paracetamol", "Tablet", "Micro Labs", 180, 30, "2.00", "3.00"),
    ("Azithral 500", "Azithromycin", "Tablet", "Alembic", 60, 15, "18.00", "24.00"),
    ("Benadryl Cough Syrup", "Diphenhydramine", "Syrup", "Johnson & Johnson", 40, 10, "85.00", "110.00"),
    ("Pan 40", "Pantoprazole", "Tablet", "Alkem", 120, 20, "6.00", "9.50"),
    ("Otrivin Nasal Spray", "Xylometazoline", "Spray", "GSK", 8, 10, "70.00", "95.00"),
    ("Betadine Ointment", "Povidone Iodine", "Ointment", "Win-Medicare", 25, 5, "55.00", "75.00"),
    ("Asthalin Inhaler", "Salbutamol", "Inhaler", "Cipla", 0, 5, "110.00", "145.00"),
]


def seed():
    init_db()
    db = SessionLocal()
    try:
        for name, email, role in STAFF:
            if not db.query(User).filter(User.email == email).first():
                db.add(User(name=name, email=email, role=role, hashed_password=get_password_hash(DEMO_PASSWORD)))
        db.commit()
        print(f"✅ Staff accounts ready (password: {DEMO_PASSWORD})")

        supplier = create_supplier(db, SupplierCreate(
            name="Sai Pharma Distributors",
            email="orders@saipharma.in",
            phone="9876543210",
            address={"street": "12 MG Road", "city": "Pune", "state": "Maharashtra", "pincode": "411001"},
            contact_person="Ramesh Kulkarni",
            gst_number="27AAPFU0939F1ZV",
            license_number="MH-PUN-20B-4411",
            payment_terms="Credit-30",
        ))
        print(f"✅ Supplier: {supplier.name}")

        today = date.today()
        for name, generic, category, maker, qty, min_level, cost, sell in MEDICINES:
            db.add(Medicine(
                name=name,
                generic_name=generic,
                category=category,
                manufacturer=maker,
                batch_number=f"B{today:%y%m}-{len(name):03d}",
                manufacturing_date=today - timedelta(days=180),
                expiry_date=today + timedelta(days=540),
                quantity=qty,
                min_stock_level=min_level,
                cost_price=Decimal(cost),
                selling_price=Decimal(sell),
                supplier_id=supplier.id,
            ))
        db.commit()
        print(f"✅ Medicines: {len(MEDICINES)}")

        for name, phone, kind in [
            ("Rahul Sharma", "9123456780", "Regular"),
            ("Meera Iyer", "9988776655", "VIP"),
            ("Infosys Wellness Desk", "8022334455", "Corporate"),
        ]:
            create_customer(db, CustomerCreate(name=name, phone=phone, customer_type=kind))
        print("✅ Customers: 3")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
