"""
Bundle mapping domain models.

A bundle SKU is sold as one product but fulfilled as several components.
The mapping is loaded once at startup and never mutated afterwards.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class ComponentSpec:
    """
    One component of a bundle.

    Attributes:
        sku: Component SKU
        title: Title used for the generated line item
        quantity_per_bundle: Units of this component in one bundle
    """

    sku: str
    title: str
    quantity_per_bundle: int = 1

    def __post_init__(self) -> None:
        """Validate component data after initialization."""
        if not self.sku or not self.sku.strip():
            raise ValueError("Component SKU is required")

        if (
            isinstance(self.quantity_per_bundle, bool)
            or not isinstance(self.quantity_per_bundle, int)
            or self.quantity_per_bundle <= 0
        ):
            raise ValueError(
                f"Quantity per bundle must be a positive integer for {self.sku}: {self.quantity_per_bundle!r}"
            )


@dataclass(frozen=True)
class BundleMapping(Mapping):
    """
    Read-only mapping from bundle SKU to its ordered components.

    Example:
        >>> mapping = BundleMapping.from_dict(
        ...     {"CANDLE-BUNDLE": [ComponentSpec("CANDLE-SKU", "Floating Candle")]}
        ... )
        >>> "CANDLE-BUNDLE" in mapping
        True
    """

    bundles: Mapping[str, tuple[ComponentSpec, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Freeze the underlying dict and component lists."""
        frozen = {sku: tuple(components) for sku, components in self.bundles.items()}
        object.__setattr__(self, "bundles", MappingProxyType(frozen))

    @classmethod
    def from_dict(cls, bundles: Mapping[str, list[ComponentSpec] | tuple[ComponentSpec, ...]]) -> "BundleMapping":
        """Create a mapping from a plain dict."""
        return cls(bundles=dict(bundles))

    def __getitem__(self, sku: str) -> tuple[ComponentSpec, ...]:
        return self.bundles[sku]

    def __iter__(self) -> Iterator[str]:
        return iter(self.bundles)

    def __len__(self) -> int:
        return len(self.bundles)

    def __hash__(self) -> int:
        return hash(tuple(self.bundles.items()))

    @property
    def bundle_skus(self) -> list[str]:
        """Configured bundle SKUs, in configuration order."""
        return list(self.bundles.keys())

    @property
    def component_skus(self) -> set[str]:
        """Every SKU that appears as a component of some bundle."""
        return {component.sku for components in self.bundles.values() for component in components}

    def overlapping_skus(self) -> set[str]:
        """
        SKUs that are both a bundle key and a component.

        A non-empty result means a split output could be split again.
        """
        return set(self.bundles.keys()) & self.component_skus

    def empty_bundles(self) -> list[str]:
        """Bundle SKUs configured without any component."""
        return [sku for sku, components in self.bundles.items() if not components]
