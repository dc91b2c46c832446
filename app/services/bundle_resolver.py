"""
Resolución de bundles en líneas de pedido.

Transformación pura: recibe las líneas de una orden y el mapeo de bundles y
devuelve las líneas nuevas, sustituyendo cada bundle por sus componentes en el
mismo lugar que ocupaba. No hace I/O ni modifica las entradas.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from app.domain.models import BundleMapping, ComponentSpec, LineItem


@dataclass(frozen=True)
class SplitResult:
    """
    Resultado de resolver una orden.

    Attributes:
        new_line_items: Líneas resultantes, en el orden original
        changed: True si al menos una línea era un bundle
    """

    new_line_items: tuple[LineItem, ...]
    changed: bool

    @property
    def items_count(self) -> int:
        return len(self.new_line_items)


def expand_bundle(item: LineItem, components: Sequence[ComponentSpec]) -> list[LineItem]:
    """
    Genera las líneas de componentes para una línea de bundle.

    Cantidad: quantity_per_bundle * cantidad original.
    Precio: precio unitario original / número de componentes, redondeado a
    centavos de forma independiente para cada componente.

    Args:
        item: Línea original del bundle
        components: Componentes configurados para su SKU

    Returns:
        List[LineItem]: Una línea por componente, en orden de configuración
    """
    if not components:
        return []

    component_price = item.unit_price.divide(len(components)).to_shopify()

    return [
        LineItem(
            sku=component.sku,
            quantity=component.quantity_per_bundle * item.quantity,
            title=component.title,
            price=component_price,
            grams=item.grams,
            taxable=item.taxable,
            id=None,
            variant_id=None,
        )
        for component in components
    ]


def resolve(line_items: Sequence[LineItem], mapping: BundleMapping) -> SplitResult:
    """
    Sustituye las líneas de bundle por sus componentes.

    Las líneas que no son bundle (incluidas las que no tienen SKU) pasan sin
    cambios, conservando id y variant_id.

    Args:
        line_items: Líneas de la orden
        mapping: Mapeo bundle SKU -> componentes

    Returns:
        SplitResult: Líneas nuevas y si hubo cambios
    """
    new_line_items: list[LineItem] = []
    changed = False

    for item in line_items:
        components = mapping.get(item.sku) if item.sku is not None else None
        if components is None:
            new_line_items.append(item)
            continue

        changed = True
        new_line_items.extend(expand_bundle(item, components))

    return SplitResult(new_line_items=tuple(new_line_items), changed=changed)
