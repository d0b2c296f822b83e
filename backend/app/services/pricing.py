"""
Registration fees by delegate type, plus optional add-on packages.

Local delegates (private and public sector) pay in ZMW, international
delegates in USD. Victoria Falls and the boat cruise are sold as one combined
package: selecting either adds its price once. Accommodation is only offered
to international delegates.

A registration without a delegate type pays the event's listed price in the
default currency and cannot book add-ons.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from app.core.config import get_settings
from app.core.errors import ValidationError
from app.models.registration import DelegateType

settings = get_settings()


@dataclass(frozen=True)
class FeeSchedule:
    currency: str
    base: Decimal
    excursion: Decimal
    dinner_gala: Decimal
    accommodation: Optional[Decimal] = None


FEE_SCHEDULES: dict[DelegateType, FeeSchedule] = {
    DelegateType.PRIVATE: FeeSchedule(
        currency="ZMW", base=Decimal("7000"), excursion=Decimal("2500"), dinner_gala=Decimal("2500"),
    ),
    DelegateType.PUBLIC: FeeSchedule(
        currency="ZMW", base=Decimal("6500"), excursion=Decimal("2500"), dinner_gala=Decimal("2500"),
    ),
    DelegateType.INTERNATIONAL: FeeSchedule(
        currency="USD",
        base=Decimal("650"),
        excursion=Decimal("150"),
        dinner_gala=Decimal("110"),
        accommodation=Decimal("150"),
    ),
}


@dataclass(frozen=True)
class PackageSelection:
    accommodation: bool = False
    victoria_falls: bool = False
    boat_cruise: bool = False
    dinner_gala: bool = False

    @property
    def any(self) -> bool:
        return self.accommodation or self.victoria_falls or self.boat_cruise or self.dinner_gala


@dataclass
class Quote:
    currency: str
    base: Decimal
    items: list[tuple[str, Decimal]] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.base + sum((amount for _, amount in self.items), Decimal("0"))


def quote(
    delegate_type: Optional[DelegateType],
    packages: PackageSelection = PackageSelection(),
    event_price: Optional[Decimal] = None,
) -> Quote:
    """Price a registration. Raises ValidationError naming the offending field."""
    if delegate_type is None:
        if packages.any:
            raise ValidationError("Select a delegate type to book add-on packages", field="delegate_type")
        return Quote(currency=settings.DEFAULT_CURRENCY, base=Decimal(str(event_price or 0)))

    schedule = FEE_SCHEDULES[delegate_type]
    result = Quote(currency=schedule.currency, base=schedule.base)

    if packages.accommodation:
        if schedule.accommodation is None:
            raise ValidationError(
                "Accommodation package is only available to international delegates",
                field="accommodation_package",
            )
        result.items.append(("accommodation", schedule.accommodation))
    if packages.victoria_falls or packages.boat_cruise:
        result.items.append(("victoria_falls_boat_cruise", schedule.excursion))
    if packages.dinner_gala:
        result.items.append(("dinner_gala", schedule.dinner_gala))

    return result
