"""SQLAlchemy ORM models for the catalog.

Every table uses an opaque 32-char hex id. Products keep their image list and
feature flags in JSON columns so a row reads like the listing it describes.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Integer, Float, Boolean, TIMESTAMP, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from .db import Base

FUEL_TYPES = ("Gasoline", "Diesel", "Electric", "Hybrid", "CNG", "LPG", "Other")
MILEAGE_UNITS = ("km/l", "mpg", "l/100km")
PRODUCT_TAGS = ("Trucks",)
CATEGORY_TYPES = ("product", "truck")
CONTACT_STATUSES = ("new", "read", "responded")
CATEGORY_PLACEHOLDER = "/placeholder-category.png"

FEATURE_FLAGS = (
    "airBags", "sunRoof", "navigation", "powerSteering", "powerWindows",
    "powerMirrors", "airConditioning", "absBrakes", "alloyWheels", "keylessEntry",
    "pushStart", "rearCamera", "parkingSensors", "cruiseControl", "leatherSeats",
    "heatedSeats", "bluetooth", "usbPort", "cdPlayer", "radio",
    "fogLights", "tractionControl", "centralLocking", "immobilizer",
)


def new_id():
    return uuid.uuid4().hex


def utcnow():
    return datetime.now(timezone.utc)


def default_features():
    return {name: False for name in FEATURE_FLAGS}


class TimestampMixin:
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Brand(TimestampMixin, Base):
    __tablename__ = "brands"
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(50), nullable=False)
    thumbnail = Column(Text, nullable=False)


class Category(TimestampMixin, Base):
    __tablename__ = "categories"
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(50), nullable=False)
    type = Column(String(10), nullable=False, default="product")
    thumbnail = Column(Text, nullable=False, default=CATEGORY_PLACEHOLDER)


class Product(TimestampMixin, Base):
    __tablename__ = "products"
    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    model = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    discount_percentage = Column(Float, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)
    weight = Column(Float, nullable=False)
    description = Column(Text, nullable=False, default="")
    fuel_type = Column(String(20))
    mileage = Column(Float)
    mileage_unit = Column(String(10), nullable=False, default="km/l")
    chassis = Column(Text, nullable=False, default="")
    color = Column(Text, nullable=False, default="")
    axle_configuration = Column(Text, nullable=False, default="")
    vehicle_grade = Column(Text, nullable=False, default="")
    tag = Column(String(20))
    features = Column(JSON, nullable=False, default=default_features)
    thumbnail = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)

    category_id = Column(String(32), ForeignKey("categories.id"), nullable=False, index=True)
    make_id = Column(String(32), ForeignKey("brands.id"), nullable=False, index=True)
    category = relationship(Category, lazy="joined")
    make = relationship(Brand, lazy="joined")

    @property
    def discounted_price(self):
        if not self.discount_percentage:
            return self.unit_price
        return self.unit_price * (1 - self.discount_percentage / 100)

Index("idx_products_unit_price", Product.unit_price)
Index("idx_products_year", Product.year)


class Blog(TimestampMixin, Base):
    __tablename__ = "blogs"
    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    thumbnail = Column(Text)


class Faq(TimestampMixin, Base):
    __tablename__ = "faqs"
    id = Column(String(32), primary_key=True, default=new_id)
    question = Column(String(500), nullable=False)
    answer = Column(String(2000), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=0)


class HeroSlide(TimestampMixin, Base):
    __tablename__ = "hero_slides"
    id = Column(String(32), primary_key=True, default=new_id)
    media_url = Column(Text, nullable=False)
    media_type = Column(String(10), nullable=False, default="image")
    position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)


class ContactMessage(Base):
    __tablename__ = "contact_messages"
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text)
    message = Column(Text, nullable=False)
    status = Column(String(10), nullable=False, default="new")
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)


class AdminUser(TimestampMixin, Base):
    __tablename__ = "admin_users"
    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(String(20), nullable=False, default="admin")
