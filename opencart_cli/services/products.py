"""Product listing and creation."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.exceptions import ValidationError
from ..database.base import escape_like, quote_identifier
from ..database.gateway import DatabaseGateway
from .language import default_language_id

logger = logging.getLogger(__name__)

PRODUCT_STATUSES = ("enabled", "disabled")
DEFAULT_LIST_LIMIT = 50
# OpenCart's stock status "2-3 Days"
DEFAULT_STOCK_STATUS_ID = 7


class ProductInput(BaseModel):
    """Validated data for a new product."""
    name: str
    model: str
    price: Decimal = Field(ge=0)
    description: str = ""
    category: Optional[str] = None
    quantity: int = 0
    status: str = "enabled"
    weight: float = 0.0
    sku: str = ""

    @field_validator('name', 'model')
    @classmethod
    def not_blank(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"Product {info.field_name} is required.")
        return v.strip()

    @field_validator('price', mode='before')
    @classmethod
    def numeric_price(cls, v):
        try:
            price = Decimal(str(v))
        except (InvalidOperation, TypeError, ValueError):
            raise ValueError("Price must be a valid positive number.")
        if not price.is_finite():
            raise ValueError("Price must be a valid positive number.")
        return price

    @field_validator('status')
    @classmethod
    def known_status(cls, v):
        if v not in PRODUCT_STATUSES:
            raise ValueError('Status must be either "enabled" or "disabled".')
        return v

    @field_validator('description', 'sku', mode='before')
    @classmethod
    def empty_string(cls, v):
        return v or ""


def format_price(value: Any) -> str:
    try:
        return f"{Decimal(str(value or 0)):,.2f}"
    except InvalidOperation:
        return "0.00"


class ProductService:
    """Queries and inserts against the product tables."""

    def __init__(self, gateway: DatabaseGateway):
        self.gateway = gateway
        self._language_id: Optional[int] = None

    def _table(self, name: str) -> str:
        return quote_identifier(self.gateway.table(name))

    @property
    def language_id(self) -> int:
        if self._language_id is None:
            self._language_id = default_language_id(self.gateway)
        return self._language_id

    def list_products(
        self,
        category: Optional[str] = None,
        status: str = "all",
        limit: int = DEFAULT_LIST_LIMIT,
        search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        List products, newest first.

        Args:
            category: Category id, or a fragment of its name
            status: ``enabled``, ``disabled`` or ``all``
            limit: Maximum rows; 0 or less means no limit
            search: Fragment matched against product name and model
        """
        sql = (
            f"SELECT DISTINCT p.product_id, pd.name, p.model, p.price, p.status, "
            f"cd.name AS category_name, p.quantity, p.date_added "
            f"FROM {self._table('product')} p "
            f"LEFT JOIN {self._table('product_description')} pd "
            f"ON (p.product_id = pd.product_id AND pd.language_id = ?) "
            f"LEFT JOIN {self._table('product_to_category')} ptc ON (p.product_id = ptc.product_id) "
            f"LEFT JOIN {self._table('category_description')} cd "
            f"ON (ptc.category_id = cd.category_id AND cd.language_id = ?) "
            f"WHERE 1=1"
        )
        params: List[Any] = [self.language_id, self.language_id]

        if status != "all":
            sql += " AND p.status = ?"
            params.append(1 if status == "enabled" else 0)

        if category:
            if str(category).isdigit():
                sql += " AND ptc.category_id = ?"
                params.append(int(category))
            else:
                sql += " AND cd.name LIKE ?"
                params.append(f"%{escape_like(category)}%")

        if search:
            pattern = f"%{escape_like(search)}%"
            sql += " AND (pd.name LIKE ? OR p.model LIKE ?)"
            params.extend([pattern, pattern])

        sql += " ORDER BY p.product_id DESC"

        if limit and limit > 0:
            sql += " LIMIT ?"
            params.append(int(limit))

        result = self.gateway.execute(sql, params)
        return [
            {
                "product_id": row["product_id"],
                "name": row["name"] or "N/A",
                "model": row["model"] or "N/A",
                "price": format_price(row["price"]),
                "status": "enabled" if row["status"] else "disabled",
                "category": row["category_name"] or "N/A",
                "quantity": row["quantity"],
                "date_added": row["date_added"],
            }
            for row in result.rows
        ]

    def model_exists(self, model: str) -> bool:
        result = self.gateway.execute(
            f"SELECT COUNT(*) AS count FROM {self._table('product')} WHERE model = ?",
            [model]
        )
        return int(result.scalar("count", 0) or 0) > 0

    def find_category_id(self, category: str) -> Optional[int]:
        """Category id by numeric id or exact name in the default language."""
        if str(category).isdigit():
            result = self.gateway.execute(
                f"SELECT category_id FROM {self._table('category')} WHERE category_id = ?",
                [int(category)]
            )
        else:
            result = self.gateway.execute(
                f"SELECT category_id FROM {self._table('category_description')} "
                f"WHERE name = ? AND language_id = ?",
                [category, self.language_id]
            )
        value = result.scalar("category_id")
        return int(value) if value is not None else None

    def create_product(self, product: ProductInput) -> int:
        """Insert a product with its description and category link.

        All inserts run in one transaction.

        Raises:
            ValidationError: If the model is already used by another product
        """
        if self.model_exists(product.model):
            raise ValidationError(f"Product with model '{product.model}' already exists.")

        language_id = self.language_id
        category_id = self.find_category_id(product.category) if product.category else None
        if product.category and category_id is None:
            logger.warning(f"Category '{product.category}' not found; product left uncategorized")

        with self.gateway.transaction():
            self.gateway.execute(
                f"INSERT INTO {self._table('product')} ("
                f"model, sku, upc, ean, jan, isbn, mpn, location, "
                f"price, quantity, status, weight, manufacturer_id, "
                f"stock_status_id, shipping, tax_class_id, "
                f"date_available, date_added, date_modified"
                f") VALUES (?, ?, '', '', '', '', '', '', ?, ?, ?, ?, 0, ?, 1, 0, CURDATE(), NOW(), NOW())",
                [product.model, product.sku, str(product.price), product.quantity,
                 1 if product.status == "enabled" else 0, product.weight,
                 DEFAULT_STOCK_STATUS_ID]
            )
            product_id = self.gateway.last_insert_id()

            self.gateway.execute(
                f"INSERT INTO {self._table('product_description')} ("
                f"product_id, language_id, name, description, tag, "
                f"meta_title, meta_description, meta_keyword"
                f") VALUES (?, ?, ?, ?, '', ?, '', '')",
                [product_id, language_id, product.name, product.description, product.name]
            )

            if category_id is not None:
                self.gateway.execute(
                    f"INSERT INTO {self._table('product_to_category')} (product_id, category_id) "
                    f"VALUES (?, ?)",
                    [product_id, category_id]
                )

        logger.info(f"Created product {product_id} ({product.model})")
        return product_id
