from datetime import date, datetime, timezone
from typing import Optional, List

from sqlalchemy import (
    String,
    DateTime,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    JSON,
    Text,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def int_pk() -> Mapped[int]:
    return mapped_column(Integer, primary_key=True, autoincrement=True)


class Personnel(Base):
    __tablename__ = "personnel"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    position: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class InventoryItem(Base):
    __tablename__ = "inventory"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    value: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    movements = relationship("StockMovement", back_populates="item", cascade="all, delete-orphan", order_by="StockMovement.created_at.desc()")

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_inventory_value_non_negative"),
    )


class VehicleInventoryLink(Base):
    """Ordered membership of an inventory item in a vehicle's carried set"""
    __tablename__ = "vehicle_inventory_items"

    vehicle_id: Mapped[int] = mapped_column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), primary_key=True)
    inventory_id: Mapped[int] = mapped_column(Integer, ForeignKey("inventory.id", ondelete="CASCADE"), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[int] = int_pk()
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    plate: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    inventory_links: Mapped[List[VehicleInventoryLink]] = relationship(
        VehicleInventoryLink,
        cascade="all, delete-orphan",
        order_by=VehicleInventoryLink.position,
        passive_deletes=True,
    )

    @property
    def inventory_items(self) -> List[int]:
        return [link.inventory_id for link in self.inventory_links]


class Assignment(Base):
    """Vehicle handed to an employee, with the vehicle's inventory frozen at hand-over"""
    __tablename__ = "assignments"

    id: Mapped[int] = int_pk()
    vehicle_id: Mapped[int] = mapped_column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    personnel_id: Mapped[int] = mapped_column(Integer, ForeignKey("personnel.id"), nullable=False, index=True)
    assign_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[Optional[date]] = mapped_column(Date)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)  # active|returned
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    snapshot_items: Mapped[List["AssignmentInventoryItem"]] = relationship(
        "AssignmentInventoryItem",
        cascade="all, delete-orphan",
        order_by="AssignmentInventoryItem.position",
    )

    @property
    def inventory_items(self) -> List[int]:
        return [row.inventory_id for row in self.snapshot_items]

    __table_args__ = (
        Index('idx_assignment_vehicle_status', 'vehicle_id', 'status'),
        Index('idx_assignment_personnel_status', 'personnel_id', 'status'),
    )


class AssignmentInventoryItem(Base):
    """Point-in-time copy of a vehicle's inventory ids; not a live reference to inventory"""
    __tablename__ = "assignment_inventory_items"

    assignment_id: Mapped[int] = mapped_column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    inventory_id: Mapped[int] = mapped_column(Integer, nullable=False)


class StockMovement(Base):
    """Ledger of signed stock adjustments"""
    __tablename__ = "stock_movements"

    id: Mapped[int] = int_pk()
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # in|out
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(255))
    reference_number: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    item = relationship("InventoryItem", back_populates="movements")

    @property
    def product_name(self) -> Optional[str]:
        return self.item.name if self.item is not None else None

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movement_quantity_positive"),
    )


class HistoryRecord(Base):
    """Append-only audit entry, one per successful mutation"""
    __tablename__ = "history"

    id: Mapped[int] = int_pk()
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # personnel_create|assignment|return|...
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    changes: Mapped[dict] = mapped_column(JSON, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    user: Mapped[str] = mapped_column(String(100), nullable=False, default="System")

    __table_args__ = (
        Index('idx_history_type_entity', 'type', 'entity_id'),
    )
