from dataclasses import dataclass, field

CARD_SIZE = 64
CARD_ID_LENGTH = 12


@dataclass
class OtpRecord:
    password: str
    data_digest: str | None = None

    def __post_init__(self):
        if not self.password:
            raise ValueError("password is required")


@dataclass
class Card:
    codes: list[str]
    usable: set[int] = field(default_factory=set)
    id: str | None = None
    integrity_hash: str | None = None

    @classmethod
    def fresh(cls, codes: list[str]) -> "Card":
        """A new card with every index usable."""
        return cls(codes=list(codes), usable=set(range(len(codes))))

    def is_usable(self, index: int) -> bool:
        return index in self.usable

    def consume(self, index: int) -> None:
        self.usable.discard(index)

    @property
    def remaining(self) -> int:
        return len(self.usable)
