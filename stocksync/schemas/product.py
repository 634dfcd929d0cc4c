from pydantic import BaseModel, field_validator

from stocksync.services.product_service import coerce_quantity


class ProductOut(BaseModel):
    sku: str
    name: str
    location: str | None = ""
    quantity: int
    image: str | None = ""

    model_config = {"from_attributes": True}


class InventoryUpdate(BaseModel):
    """Stock movement sent by the mobile app.

    Parsing is deliberately lenient: the app sends numbers as strings and
    omits fields freely.
    """

    sku: str = ""
    quantity: int = 0
    is_inbound: bool = False
    name: str | None = None
    user: str | None = None
    location: str | None = None

    @field_validator("sku", mode="before")
    @classmethod
    def normalize_sku(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def parse_quantity(cls, v):
        return coerce_quantity(v)

    @field_validator("is_inbound", mode="before")
    @classmethod
    def parse_is_inbound(cls, v):
        return bool(v)

    @field_validator("name", "user", "location", mode="before")
    @classmethod
    def stringify(cls, v):
        if v is None:
            return None
        return str(v)
