import attrs


@attrs.frozen
class PriceQuote:
    """
    Money split for one booking at creation time, all in cents.

    subtotal is the list price; commission is the platform cut; resort_net is what the
    resort receives. subtotal == commission + resort_net before any discount.
    """

    subtotal_cents: int
    commission_cents: int
    resort_net_cents: int

    @property
    def total_cents(self) -> int:
        return self.commission_cents + self.resort_net_cents
