class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class CardError(DomainError):
    """A password card could not be used."""

    def __init__(self, card_id: str, reason: str = "") -> None:
        super().__init__(f"card {card_id}: {reason}" if reason else f"card {card_id}")
        self.card_id = card_id


class CardNotFound(CardError):
    """No stored card matches the given id."""

    pass


class CardCorrupt(CardError):
    """Stored card data failed to decode or its integrity hash did not match."""

    pass


class CardSaveError(CardError):
    """A freshly generated card could not be persisted."""

    pass
