"""
Sample records for a fresh database: three employees, three items, three vehicles.

Idempotent: rows are matched on their unique field (email, serial number,
plate) and only missing ones are inserted.
"""
from datetime import date
from typing import Dict

from sqlalchemy.orm import Session

from .models.models import InventoryItem, Personnel, Vehicle
from .services.vehicle_inventory import set_vehicle_inventory


SAMPLE_PERSONNEL = [
    ("Ahmet", "Yılmaz", "ahmet.yilmaz@company.com", "0532-123-4567", "IT", "Yazılım Geliştirici", date(2023, 1, 15)),
    ("Ayşe", "Kaya", "ayse.kaya@company.com", "0533-234-5678", "İnsan Kaynakları", "İK Uzmanı", date(2023, 2, 1)),
    ("Mehmet", "Demir", "mehmet.demir@company.com", "0534-345-6789", "Muhasebe", "Mali Müşavir", date(2023, 3, 10)),
]

SAMPLE_INVENTORY = [
    ("Laptop", "Bilgisayar", "Dell", "Latitude 5520", "DL123456789", date(2023, 1, 1), 15000),
    ("Yazıcı", "Ofis Ekipmanı", "HP", "LaserJet Pro", "HP987654321", date(2023, 1, 15), 2500),
    ("Telefon", "İletişim", "Samsung", "Galaxy S21", "SM123456789", date(2023, 2, 1), 8000),
]

# Carried inventory refers to SAMPLE_INVENTORY by serial number
SAMPLE_VEHICLES = [
    ("Toyota", "Corolla", 2022, "34 ABC 123", "Otomobil", ["DL123456789"]),
    ("Ford", "Transit", 2021, "06 XYZ 456", "Kamyonet", ["HP987654321", "SM123456789"]),
    ("Volkswagen", "Crafter", 2023, "35 DEF 789", "Kamyonet", []),
]


def ensure_personnel(session: Session, name, surname, email, phone, department, position, start_date) -> bool:
    if session.query(Personnel).filter(Personnel.email == email).first():
        return False
    session.add(Personnel(
        name=name,
        surname=surname,
        email=email,
        phone=phone,
        department=department,
        position=position,
        start_date=start_date,
    ))
    session.flush()
    return True


def ensure_inventory(session: Session, name, category, brand, model, serial_number, purchase_date, value) -> bool:
    if session.query(InventoryItem).filter(InventoryItem.serial_number == serial_number).first():
        return False
    session.add(InventoryItem(
        name=name,
        category=category,
        brand=brand,
        model=model,
        serial_number=serial_number,
        purchase_date=purchase_date,
        value=value,
        quantity=1,
    ))
    session.flush()
    return True


def ensure_vehicle(session: Session, brand, model, year, plate, type_, serials) -> bool:
    if session.query(Vehicle).filter(Vehicle.plate == plate).first():
        return False
    vehicle = Vehicle(brand=brand, model=model, year=year, plate=plate, type=type_)
    session.add(vehicle)
    session.flush()
    ids = [
        row.id
        for serial in serials
        for row in session.query(InventoryItem).filter(InventoryItem.serial_number == serial).all()
    ]
    set_vehicle_inventory(session, vehicle, ids)
    return True


def seed_sample_data(session: Session) -> Dict[str, int]:
    """Insert whatever sample rows are missing and commit. Returns counts of inserted rows."""
    created = {
        "personnel": sum(ensure_personnel(session, *row) for row in SAMPLE_PERSONNEL),
        "inventory": sum(ensure_inventory(session, *row) for row in SAMPLE_INVENTORY),
        "vehicles": sum(ensure_vehicle(session, *row) for row in SAMPLE_VEHICLES),
    }
    session.commit()
    return created
