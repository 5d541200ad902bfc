from decimal import Decimal

from pydantic import BaseModel, Field


class CreateListingRequest(BaseModel):
    external_product_id: str = Field(min_length=1, max_length=32)
    condition: str | None = None
    quantity: int = Field(default=1, ge=1)
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    publish: bool = True
