"""
Modelos Pydantic para el archivo de configuración de bundles.

Formato esperado del JSON:
{
    "CANDLE-BUNDLE": [
        {"sku": "CANDLE-SKU", "title": "Floating Candle", "quantity": 1},
        {"sku": "BATTERY-SKU", "title": "LED Battery Pack", "quantity": 1}
    ]
}
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, RootModel, StrictInt, field_validator

from app.domain.models import BundleMapping, ComponentSpec


class BundleComponentConfig(BaseModel):
    """Componente de un bundle tal como se escribe en la configuración."""

    model_config = ConfigDict(extra="forbid")

    sku: str = Field(min_length=1)
    title: str
    quantity: StrictInt = Field(default=1, gt=0)

    @field_validator("sku")
    @classmethod
    def strip_sku(cls, v: str) -> str:
        """Elimina espacios y rechaza SKUs vacíos."""
        v = v.strip()
        if not v:
            raise ValueError("component sku cannot be blank")
        return v

    def to_domain(self) -> ComponentSpec:
        """Convierte a ComponentSpec."""
        return ComponentSpec(sku=self.sku, title=self.title, quantity_per_bundle=self.quantity)


class BundleMappingConfig(RootModel[Dict[str, List[BundleComponentConfig]]]):
    """Mapeo completo bundle SKU -> componentes."""

    @field_validator("root")
    @classmethod
    def validate_bundle_keys(cls, v):
        """Rechaza bundle SKUs vacíos."""
        for bundle_sku in v:
            if not bundle_sku.strip():
                raise ValueError("bundle sku cannot be blank")
        return v

    def to_domain(self) -> BundleMapping:
        """Convierte a BundleMapping inmutable."""
        return BundleMapping.from_dict(
            {bundle_sku: [component.to_domain() for component in components] for bundle_sku, components in self.root.items()}
        )
