from __future__ import annotations

import binascii
import json
import logging
import re

import onetime.domain.services as domain_services
from onetime.domain.entities import CARD_ID_LENGTH, CARD_SIZE, Card
from onetime.domain.errors import CardCorrupt, CardNotFound, CardSaveError
from onetime.domain.ports.card_store import CardStorePort

logger = logging.getLogger(__name__)

DEFAULT_CODE_LENGTH = 6

_CARD_ID_RE = re.compile(rf"[0-9a-f]{{{CARD_ID_LENGTH}}}")


def is_card_id(card_id: str) -> bool:
    return bool(_CARD_ID_RE.fullmatch(card_id))


def card_hash(card: Card) -> Card:
    """
    Recompute integrity hash and id from the card's codes.
    Must run before every save so the stored hash always matches the stored codes.
    """
    card.integrity_hash = domain_services.sha256_hex(
        domain_services.encode_codes(card.codes)
    )
    card.id = card.integrity_hash[:CARD_ID_LENGTH]
    return card


def encode_card(card: Card) -> str:
    if card.id is None or card.integrity_hash is None:
        raise ValueError("card must be hashed before it is encoded")
    envelope = {
        "list": domain_services.encode_codes(card.codes),
        "usable": {str(i): True for i in sorted(card.usable)},
        "hash": card.integrity_hash,
        "id": card.id,
    }
    return json.dumps(envelope, separators=(",", ":"))


def _decode_usable(raw: object, size: int) -> set[int]:
    # Older writers emit a plain list while no index has been consumed yet.
    if isinstance(raw, list):
        items = [(i, v) for i, v in enumerate(raw)]
    elif isinstance(raw, dict):
        items = [(int(k), v) for k, v in raw.items()]
    else:
        raise ValueError("usable must be an object or an array")

    usable = set()
    for index, flag in items:
        if flag is not True or not 0 <= index < size:
            raise ValueError(f"bad usable entry {index!r}")
        usable.add(index)
    return usable


def decode_card(card_id: str, payload: str) -> Card:
    """
    Parse and verify a stored card document. Raises CardCorrupt unless the
    integrity hash matches the stored codes and names this card.
    """
    try:
        envelope = json.loads(payload)
        encoded = envelope["list"]
        stored_hash = envelope["hash"]
        if not isinstance(encoded, str) or not isinstance(stored_hash, str):
            raise ValueError("list and hash must be strings")
    except (ValueError, KeyError, TypeError) as exc:
        raise CardCorrupt(card_id, f"unreadable envelope: {exc}") from exc

    # Only trust the codes once their digest checks out.
    if not domain_services.secure_compare(
        domain_services.sha256_hex(encoded), stored_hash
    ):
        raise CardCorrupt(card_id, "integrity hash mismatch")
    if stored_hash[:CARD_ID_LENGTH] != card_id:
        raise CardCorrupt(card_id, "stored card belongs to another id")

    try:
        codes = domain_services.decode_codes(encoded)
        usable = _decode_usable(envelope.get("usable", {}), len(codes))
    except (ValueError, binascii.Error, UnicodeDecodeError) as exc:
        raise CardCorrupt(card_id, f"undecodable codes: {exc}") from exc
    if len(codes) != CARD_SIZE:
        raise CardCorrupt(card_id, f"expected {CARD_SIZE} codes, got {len(codes)}")

    return Card(codes=codes, usable=usable, id=card_id, integrity_hash=stored_hash)


async def card_save(store: CardStorePort, card: Card) -> bool:
    """Persist an already hashed card. False if the store could not write it."""
    ok = await store.write(card.id, encode_card(card))
    if not ok:
        logger.error("card save failed", extra={"card_id": card.id})
    return ok


async def card_load(store: CardStorePort, card_id: str) -> Card:
    """Load and verify a card. Raises CardNotFound or CardCorrupt."""
    if not is_card_id(card_id):
        raise CardNotFound(card_id, "malformed id")
    payload = await store.read(card_id)
    if payload is None:
        raise CardNotFound(card_id)
    return decode_card(card_id, payload)


async def _try_load(store: CardStorePort, card_id: str) -> Card | None:
    try:
        return await card_load(store, card_id)
    except CardNotFound:
        logger.info("card not found", extra={"card_id": card_id})
    except CardCorrupt as exc:
        logger.warning("card rejected", extra={"card_id": card_id, "reason": str(exc)})
    return None


async def card_generate(
    store: CardStorePort, code_length: int = DEFAULT_CODE_LENGTH
) -> str:
    """
    Create a card of CARD_SIZE fresh codes, all usable, persist it and return its id.
    Raises CardSaveError when the card could not be persisted.
    """
    codes = [domain_services.random_string(code_length) for _ in range(CARD_SIZE)]
    card = card_hash(Card.fresh(codes))
    if not await card_save(store, card):
        raise CardSaveError(card.id, "could not persist new card")
    logger.info("card generated", extra={"card_id": card.id})
    return card.id


async def card_validate(
    store: CardStorePort, card_id: str, selected: int, otp: str
) -> bool:
    """
    Check `otp` against code `selected` of the card and consume that code.

    Each index succeeds at most once. Unknown/corrupt cards, used indices and
    wrong codes all return False. The card stays locked from load to save.
    """
    # No lock (and no lock file) for ids never stored; cards are never deleted.
    if not is_card_id(card_id) or not await store.exists(card_id):
        logger.info("card not found", extra={"card_id": card_id})
        return False

    async with store.lock(card_id):
        card = await _try_load(store, card_id)
        if card is None or not card.is_usable(selected):
            return False
        if not domain_services.secure_compare(card.codes[selected], otp):
            return False

        card.consume(selected)
        card = card_hash(card)
        if not await card_save(store, card):
            # Never accept a code whose consumption was not persisted.
            return False

    logger.info(
        "card code consumed",
        extra={"card_id": card_id, "index": selected, "remaining": card.remaining},
    )
    return True


async def card_select(store: CardStorePort, card_id: str) -> int | None:
    """A random usable index to challenge the user with, or None if there is none."""
    card = await _try_load(store, card_id)
    if card is None or not card.usable:
        return None
    available = sorted(card.usable)
    return available[domain_services.random_int(0, len(available) - 1)]


async def card_remaining(store: CardStorePort, card_id: str) -> int:
    """Number of unused codes; 0 when the card cannot be loaded."""
    card = await _try_load(store, card_id)
    return card.remaining if card is not None else 0


async def card_codes(store: CardStorePort, card_id: str) -> list[str] | None:
    """All codes of the card in index order, for printing/delivery."""
    card = await _try_load(store, card_id)
    return list(card.codes) if card is not None else None
