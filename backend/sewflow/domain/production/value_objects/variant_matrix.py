"""
Variant Matrix Value Objects

The color x size demand grid of an order. A matrix is only ever built
through validate_matrix, so a VariantMatrix instance always sums to the
order's total quantity.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import Field

from ...shared.base import ValueObject
from ...shared.exceptions import ValidationError
from ...shared.validation import BusinessRuleValidators, DataSanitizer


class VariantKey(ValueObject):
    """(color, size) pair identifying a demand cell."""

    color: str
    size: str

    def __str__(self) -> str:
        return f"{self.color}/{self.size}"


class VariantCell(ValueObject):
    """One cell of the demand grid."""

    color: str
    size: str
    quantity: int = Field(ge=0)

    @property
    def key(self) -> VariantKey:
        return VariantKey(color=self.color, size=self.size)


class VariantMatrix(ValueObject):
    """Validated demand grid of an order."""

    total_quantity: int
    sizes: tuple[str, ...]
    colors: tuple[str, ...] = ()
    cells: tuple[VariantCell, ...]

    def keys(self) -> list[VariantKey]:
        return [cell.key for cell in self.cells]

    def quantity_for(self, color: str, size: str) -> int:
        for cell in self.cells:
            if cell.color == color and cell.size == size:
                return cell.quantity
        return 0

    def row_total(self, color: str) -> int:
        return sum(cell.quantity for cell in self.cells if cell.color == color)

    def stored_cells(self) -> list[VariantCell]:
        """Cells worth persisting; empty cells carry no demand."""
        return [cell for cell in self.cells if cell.quantity > 0]

    @property
    def grand_total(self) -> int:
        return sum(cell.quantity for cell in self.cells)


def _coerce_cell(raw: VariantCell | Mapping[str, Any]) -> tuple[str, str, Any]:
    if isinstance(raw, VariantCell):
        return raw.color, raw.size, raw.quantity
    color = DataSanitizer.sanitize_label("color", raw.get("color"))
    size = DataSanitizer.sanitize_label("size", raw.get("size"))
    return color, size, raw.get("quantity", 0)


def validate_matrix(
    cells: Iterable[VariantCell | Mapping[str, Any]],
    total_quantity: int,
    sizes: Sequence[str],
    colors: Sequence[str] = (),
) -> VariantMatrix:
    """
    Validate a demand grid against the order's declared total.

    The cells are returned unchanged; a grid whose sum differs from
    total_quantity is rejected rather than balanced.

    Raises:
        ValidationError: negative quantity, duplicate key, unknown size or
            color, empty grid for a positive total, or sum mismatch.
    """
    BusinessRuleValidators.validate_non_negative_int("total_quantity", total_quantity)
    size_list = tuple(str(size).strip() for size in sizes)
    color_list = tuple(str(color).strip() for color in colors)

    validated: list[VariantCell] = []
    seen: set[tuple[str, str]] = set()
    for raw in cells:
        color, size, quantity = _coerce_cell(raw)
        quantity = BusinessRuleValidators.validate_non_negative_int(
            f"quantity[{color}/{size}]", quantity
        )
        if (color, size) in seen:
            raise ValidationError(
                "cells",
                f"{color}/{size}",
                f"Duplicate variant: color '{color}' and size '{size}'",
                "DUPLICATE_VARIANT",
            )
        if size not in size_list:
            raise ValidationError(
                "size", size, f"Size '{size}' is not in the order size list", "UNKNOWN_SIZE"
            )
        if color_list and color not in color_list:
            raise ValidationError(
                "color", color, f"Color '{color}' is not in the order color list", "UNKNOWN_COLOR"
            )
        seen.add((color, size))
        validated.append(VariantCell(color=color, size=size, quantity=quantity))

    if not validated and total_quantity > 0:
        raise ValidationError(
            "cells", None, "Variant matrix is empty", "EMPTY_MATRIX",
            {"total_quantity": total_quantity},
        )

    matrix_sum = sum(cell.quantity for cell in validated)
    if matrix_sum != total_quantity:
        raise ValidationError(
            "cells",
            matrix_sum,
            f"Matrix sum ({matrix_sum}) does not equal total quantity ({total_quantity})",
            "MATRIX_SUM_MISMATCH",
            {"matrix_sum": matrix_sum, "total_quantity": total_quantity},
        )

    return VariantMatrix(
        total_quantity=total_quantity,
        sizes=size_list,
        colors=color_list,
        cells=tuple(validated),
    )


def split_evenly(total: int, slots: int) -> list[int]:
    """Split an integer total into `slots` parts; leading parts take the remainder."""
    base, remainder = divmod(total, slots)
    return [base + 1 if index < remainder else base for index in range(slots)]


def distribute_row_total(color: str, row_total: int, sizes: Sequence[str]) -> list[VariantCell]:
    """Spread a color's row total across sizes as evenly as possible, in size order."""
    color = DataSanitizer.sanitize_label("color", color)
    BusinessRuleValidators.validate_non_negative_int("row_total", row_total)
    if not sizes:
        raise ValidationError("sizes", sizes, "At least one size is required", "NO_SIZES")

    return [
        VariantCell(color=color, size=str(size).strip(), quantity=quantity)
        for size, quantity in zip(sizes, split_evenly(row_total, len(sizes)))
    ]
