"""
Customer database model.
"""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rentaldesk.app.db.session import Base


class Customer(Base):
    """
    Renting customer.

    The phone number is the natural key: booking submissions look customers
    up by phone and update the existing record instead of inserting a copy.
    """
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(20), unique=True, index=True, nullable=False)

    # Address
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)

    # Family / emergency contacts
    father_phone = Column(String(20), nullable=True)
    mother_phone = Column(String(20), nullable=True)
    emergency_contact1 = Column(String(20), nullable=True)
    emergency_contact2 = Column(String(20), nullable=True)

    # Identity documents
    dl_number = Column(String(50), nullable=True)
    dl_expiry = Column(Date, nullable=True)
    dob = Column(Date, nullable=True)
    aadhar_number = Column(String(20), nullable=True)
    photo_url = Column(Text, nullable=True)
    dl_front_url = Column(Text, nullable=True)
    dl_back_url = Column(Text, nullable=True)
    aadhar_front_url = Column(Text, nullable=True)
    aadhar_back_url = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    bookings = relationship(
        "Booking",
        back_populates="customer",
        order_by="Booking.created_at.desc()",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.full_name}', phone='{self.phone}')>"
