"""
Vehicle and maintenance database models.
"""

from sqlalchemy import Column, Integer, String, Float, Text, Date, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rentaldesk.app.db.session import Base
from rentaldesk.app.models.enums import VehicleStatus


class Vehicle(Base):
    """
    Rental fleet vehicle.

    Vehicles with booking history are never hard-deleted; they are retired.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    type = Column(String(50), nullable=False, index=True)
    model = Column(String(100), nullable=False)
    number_plate = Column(String(50), unique=True, index=True, nullable=False)
    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)

    # Rates
    hourly_rate = Column(Float, nullable=True)
    daily_rate = Column(Float, nullable=False)
    weekly_rate = Column(Float, nullable=True)

    manufacturer = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    color = Column(String(50), nullable=True)
    last_maintenance_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    bookings = relationship(
        "Booking",
        back_populates="vehicle",
        order_by="Booking.created_at.desc()",
        passive_deletes=True,
    )
    maintenance_records = relationship(
        "MaintenanceRecord",
        back_populates="vehicle",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MaintenanceRecord.service_date.desc()",
    )

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.number_plate}', status='{self.status.value}')>"


class MaintenanceRecord(Base):
    """Service history entry for a vehicle."""
    __tablename__ = "maintenance_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    service_type = Column(String(100), nullable=False)
    service_date = Column(Date, nullable=False)
    cost = Column(Float, nullable=False, default=0.0)
    vendor = Column(String(200), nullable=True)
    invoice_number = Column(String(100), nullable=True)
    odometer_reading = Column(Integer, nullable=True)
    performed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    vehicle = relationship("Vehicle", back_populates="maintenance_records")
    performer = relationship("User")

    def __repr__(self):
        return f"<MaintenanceRecord(id={self.id}, vehicle_id={self.vehicle_id}, service='{self.service_type}')>"
