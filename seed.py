"""Seed script: popula o banco com dados de demonstração."""
import os
import sys

# Ensure we're in the project root
sys.path.insert(0, os.path.dirname(__file__))

from decimal import Decimal

from patrimonio.database import Base, engine, SessionLocal
from patrimonio.main import ensure_first_user
from patrimonio.models.user import User
from patrimonio.schemas.asset import AssetCreate
from patrimonio.schemas.category import CategoryCreate
from patrimonio.schemas.location import LocationCreate
from patrimonio.services import asset_service, category_service, location_service
from patrimonio.config import settings


def seed():
    os.makedirs("data", exist_ok=True)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    ensure_first_user(db)
    user = db.query(User).filter_by(email=settings.FIRST_USER_EMAIL.lower()).first() or db.query(User).first()

    categories = {}
    for name in ["Informática", "Mobiliário", "Veículos", "Telefonia"]:
        cat = category_service.find_by_name(db, user.id, name)
        categories[name] = cat or category_service.create_category(db, user.id, CategoryCreate(name=name))

    for name in ["São Paulo", "Rio de Janeiro", "Belo Horizonte", "Curitiba"]:
        if not location_service.find_by_name(db, user.id, name):
            location_service.create_location(db, user.id, LocationCreate(name=name))

    assets_data = [
        ("Notebook Dell Latitude", "NTB-001", "Informática", "São Paulo", "4500.00", None),
        ("Notebook Lenovo ThinkPad", "NTB-002", "Informática", "Rio de Janeiro", "5200.00", None),
        ("Monitor LG 27\"", "MON-001", "Informática", "São Paulo", "1800.00", None),
        ("Mesa de escritório", "MOB-001", "Mobiliário", "Curitiba", "950.00", "Sala de reuniões"),
        ("Cadeira ergonômica", "MOB-002", "Mobiliário", "Curitiba", "1200.00", None),
        ("Fiat Strada", "VEI-001", "Veículos", "Belo Horizonte", "98000.00", "Placa ABC-1D23"),
        ("Telefone IP Cisco", "TEL-001", "Telefonia", "São Paulo", "650.00", None),
        ("Servidor Dell PowerEdge", "SRV-001", "Informática", "São Paulo", "450000.00", "Valor a conferir"),
    ]

    existing_codes = {a.code_id for a in asset_service.list_assets(db, user.id)}
    rows = [
        AssetCreate(
            name=name,
            code_id=code,
            category_id=categories[cat].id,
            city=city,
            value=Decimal(value),
            observation=obs,
        )
        for name, code, cat, city, value, obs in assets_data
        if code not in existing_codes
    ]
    created = asset_service.add_assets(db, user, rows, "Item novo adicionado ao inventário.")

    # One item already in the trash
    phone = next((a for a in created if a.code_id == "TEL-001"), None)
    if phone:
        asset_service.deactivate_asset(db, user, phone.id)

    db.close()
    print(f"Seed concluído: {len(created)} itens criados para {user.email}")


if __name__ == "__main__":
    seed()
