from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


CellValue = Union[float, str]


# Required inputs are checked by the service layer so that a missing or odd
# value still comes back as an {ok: false} envelope.
class SortModel(BaseModel):
    field: Optional[str] = None
    direction: str = "asc"


class ProductOptionsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search: str = ""
    only_favorites: bool = Field(default=False, alias="onlyFavorites")
    sort: Optional[SortModel] = None


class ProductListRequest(BaseModel):
    tab: Optional[str] = None
    options: ProductOptionsModel = Field(default_factory=ProductOptionsModel)


class ProductUpdateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tab: Optional[str] = None
    sku: Optional[str] = None
    sales_price: Optional[CellValue] = Field(default=None, alias="salesPrice")
    qty: Optional[CellValue] = None
    market: Optional[CellValue] = None
    retail: Optional[CellValue] = None
    note: Optional[str] = None


class FavoriteModel(BaseModel):
    sku: Optional[str] = None
    favorite: Union[bool, str, int] = True
