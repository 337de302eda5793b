from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass
class OrderDraftItem:
    menu_item_id: str
    quantity: int
    customizations: List[Dict[str, Any]] = field(default_factory=list)
    special_instructions: str = ""


@dataclass
class OrderDraft:
    """
    Order creation request. Produced by CartService.convert_to_order_draft
    or built from API input; prices are never taken from it.
    """

    items: List[OrderDraftItem]
    order_type: str
    delivery_address: Optional[Dict[str, Any]] = None
    special_instructions: str = ""
    scheduled_for: Any = None
    tip: Decimal = Decimal("0.00")
    loyalty_points_to_use: int = 0

    @classmethod
    def from_data(cls, data):
        """Build a draft from validated serializer data."""
        return cls(
            items=[
                OrderDraftItem(
                    menu_item_id=str(item["menu_item_id"]),
                    quantity=item["quantity"],
                    customizations=item.get("customizations") or [],
                    special_instructions=item.get("special_instructions") or "",
                )
                for item in data["items"]
            ],
            order_type=data["order_type"],
            delivery_address=data.get("delivery_address"),
            special_instructions=data.get("special_instructions") or "",
            scheduled_for=data.get("scheduled_for"),
            tip=data.get("tip") or Decimal("0.00"),
            loyalty_points_to_use=data.get("loyalty_points_to_use") or 0,
        )
