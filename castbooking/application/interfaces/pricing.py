"""Interface PricingStrategy - Puerto para calcular el precio de una reserva."""

from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from castbooking.application.dtos.reservation_dto import CreateReservationData


class PricingStrategy:
    """
    Calcula el precio total de una reserva.

    Permite enchufar precios por curso, tarifas de designación, etc.
    """

    async def price_for(self, data: "CreateReservationData") -> Decimal:
        raise NotImplementedError
