"""
Add-on services and fixed-price packages.

A package item is either a room-type line or a service line. The row stores
an explicit ``item_kind`` discriminator with exactly one target column set;
code works with the ``RoomItem | ServiceItem`` union returned by
``PackageItem.as_line()``.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import Boolean, CheckConstraint, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.db.base import Base
from budget_hotel.models.base import IntegerIdMixin, SoftDeleteMixin, TimestampMixin
from budget_hotel.models.enums import PackageItemKind
from budget_hotel.models.hotel import RoomType


@dataclass(frozen=True)
class RoomItem:
    room_type_id: int
    quantity: int = 1


@dataclass(frozen=True)
class ServiceItem:
    service_id: int
    quantity: int = 1


PackageLine = Union[RoomItem, ServiceItem]


class Service(IntegerIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))


class Package(IntegerIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Fixed-price bundle of room nights and services."""

    __tablename__ = "packages"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Price charged for the whole booking when this package is chosen",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    items: Mapped[List["PackageItem"]] = relationship(
        back_populates="package",
        cascade="all, delete-orphan",
        order_by="PackageItem.id",
    )

    @property
    def lines(self) -> List[PackageLine]:
        return [item.as_line() for item in self.items]

    @property
    def room_type_id(self) -> Optional[int]:
        """Room type of the first room line, if any."""
        for line in self.lines:
            if isinstance(line, RoomItem):
                return line.room_type_id
        return None


class PackageItem(IntegerIdMixin, Base):
    __tablename__ = "package_items"
    __table_args__ = (
        CheckConstraint(
            "(item_kind = 'ROOM' AND room_type_id IS NOT NULL AND service_id IS NULL) OR "
            "(item_kind = 'SERVICE' AND service_id IS NOT NULL AND room_type_id IS NULL)",
            name="ck_package_item_one_target",
        ),
        CheckConstraint("quantity >= 1", name="ck_package_item_quantity"),
    )

    package_id: Mapped[int] = mapped_column(
        ForeignKey("packages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_kind: Mapped[PackageItemKind] = mapped_column(Enum(PackageItemKind), nullable=False)
    room_type_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("room_types.id", ondelete="RESTRICT"), nullable=True
    )
    service_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    package: Mapped[Package] = relationship(back_populates="items")
    room_type: Mapped[Optional[RoomType]] = relationship()
    service: Mapped[Optional[Service]] = relationship()

    @classmethod
    def from_line(cls, line: PackageLine) -> "PackageItem":
        if isinstance(line, RoomItem):
            return cls(
                item_kind=PackageItemKind.ROOM,
                room_type_id=line.room_type_id,
                quantity=line.quantity,
            )
        return cls(
            item_kind=PackageItemKind.SERVICE,
            service_id=line.service_id,
            quantity=line.quantity,
        )

    def as_line(self) -> PackageLine:
        if self.item_kind == PackageItemKind.ROOM:
            return RoomItem(room_type_id=self.room_type_id, quantity=self.quantity)
        return ServiceItem(service_id=self.service_id, quantity=self.quantity)
