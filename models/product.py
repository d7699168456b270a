"""
Catalog product models exchanged with the /products endpoints.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator

from models.enums import ProductStatus
from utils.classification import classify_product

DEFAULT_THRESHOLD = 5


def _not_blank(value: str | None) -> str | None:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


class Product(BaseModel):
    """Cached client copy of a server-owned catalog product."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    sku: str
    barcode: str
    category: str
    price: Decimal = Field(ge=0)
    stock: int = Field(ge=0)
    threshold: int = Field(default=DEFAULT_THRESHOLD, ge=0)
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        # Some backends emit integer primary keys
        return str(value) if isinstance(value, int) else value

    @field_validator("description", mode="before")
    @classmethod
    def none_description(cls, value):
        return "" if value is None else value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> ProductStatus:
        return classify_product(self.stock, self.threshold)


class ProductCreate(BaseModel):
    """Payload for POST /products. Validated before any network call."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    barcode: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    stock: int = Field(ge=0)
    threshold: int = Field(default=DEFAULT_THRESHOLD, ge=0)
    description: str | None = None

    check_blank = field_validator("name", "sku", "barcode", "category")(_not_blank)

    @field_serializer("price")
    def serialize_price(self, value: Decimal | None) -> float | None:
        return None if value is None else float(value)


class ProductUpdate(BaseModel):
    """Partial payload for PUT /products/{id}; only set fields are sent."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    sku: str | None = Field(default=None, min_length=1)
    barcode: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    price: Decimal | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    threshold: int | None = Field(default=None, ge=0)
    description: str | None = None

    check_blank = field_validator("name", "sku", "barcode", "category")(_not_blank)

    @field_serializer("price")
    def serialize_price(self, value: Decimal | None) -> float | None:
        return None if value is None else float(value)
