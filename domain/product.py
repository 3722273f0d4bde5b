"""
Domain: Product -> PDF template mapping.

Each storefront product id maps to the template document that gets stamped
for the buyer and the display name used in the confirmation email. Unknown
products fall back to a generic default template.

The catalog is plain configuration data: it is built once, injected into the
fulfillment pipeline and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class ProductTemplate:
    """Template descriptor for a single product."""

    template_key: str
    display_name: str

    def __post_init__(self) -> None:
        if not self.template_key:
            raise ValueError("template_key cannot be empty")
        if not self.display_name:
            raise ValueError("display_name cannot be empty")


DEFAULT_TEMPLATE = ProductTemplate(
    template_key="templates/default-template.pdf",
    display_name="Furniture Plans",
)


@dataclass(frozen=True, slots=True)
class ProductCatalog:
    """
    Read-only product_id -> ProductTemplate mapping with a default entry.

    Example:
        catalog = ProductCatalog({"796585": ProductTemplate("templates/workbench-plans.pdf", "Workbench")})
        catalog.resolve("796585").display_name   # "Workbench"
        catalog.resolve("unknown").display_name  # "Furniture Plans"
    """

    products: Mapping[str, ProductTemplate] = field(default_factory=dict)
    default: ProductTemplate = DEFAULT_TEMPLATE

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(k): v for k, v in self.products.items()})
        object.__setattr__(self, "products", frozen)

    def resolve(self, product_id: str | None) -> ProductTemplate:
        if product_id is None:
            return self.default
        return self.products.get(str(product_id), self.default)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProductCatalog":
        """
        Build a catalog from decoded JSON configuration.

        Expected shape:
            {
              "default": {"template": "templates/default-template.pdf", "name": "Furniture Plans"},
              "products": {
                "796585": {"template": "templates/workbench-plans.pdf", "name": "Workbench"}
              }
            }

        `default` is optional.
        """

        def _entry(raw: Any, where: str) -> ProductTemplate:
            if not isinstance(raw, Mapping):
                raise ValueError(f"{where} must be an object with 'template' and 'name'")
            try:
                return ProductTemplate(
                    template_key=str(raw["template"]),
                    display_name=str(raw["name"]),
                )
            except KeyError as exc:
                raise ValueError(f"{where} is missing {exc.args[0]!r}") from exc

        products_raw = data.get("products", {})
        if not isinstance(products_raw, Mapping):
            raise ValueError("'products' must be an object keyed by product id")

        products = {
            str(product_id): _entry(raw, f"products[{product_id}]")
            for product_id, raw in products_raw.items()
        }
        default = _entry(data["default"], "default") if "default" in data else DEFAULT_TEMPLATE
        return cls(products=products, default=default)


# Storefront products live today.
BUILTIN_CATALOG = ProductCatalog(
    products={
        "796585": ProductTemplate(
            template_key="templates/workbench-plans.pdf",
            display_name="Workbench",
        ),
    }
)


__all__ = ["BUILTIN_CATALOG", "DEFAULT_TEMPLATE", "ProductCatalog", "ProductTemplate"]
