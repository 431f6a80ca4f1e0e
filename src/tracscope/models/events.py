"""Swap network events decoded from the sidechannel wire format."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

DEFAULT_PAIR = "BTC/USDT"


class EventKind(str, Enum):
    """Event types emitted by swap peers over the sidechannel."""

    PEER_HELLO = "peer_hello"  # peer announces itself
    RFQ_REQUEST = "rfq_request"  # peer requests a quote
    RFQ_RESPONSE = "rfq_response"  # market maker responds
    RFQ_ACCEPT = "rfq_accept"  # requester accepts quote
    RFQ_REJECT = "rfq_reject"  # requester rejects quote
    SWAP_INIT = "swap_init"  # HTLC initiated
    SWAP_SETTLE = "swap_settle"  # HTLC settled (success)
    SWAP_REFUND = "swap_refund"  # HTLC expired / refunded


_KINDS = {k.value: k for k in EventKind}


@dataclass(frozen=True)
class SwapEvent:
    """A single validated event. Amounts are integer base units."""

    kind: EventKind
    peer_id: str
    timestamp: int  # epoch ms
    amount_sats: int = 0
    amount_usdt_micro: int = 0  # USDT * 1_000_000
    quoted_rate: str | None = None
    settlement_ms: int | None = None
    pair: str = DEFAULT_PAIR
    tx_id_lightning: str | None = None
    tx_id_solana: str | None = None


def _to_int(value: Any, name: str) -> int:
    """Coerce a wire number to a non-negative int without going through float math."""
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected integer, got bool")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name}: expected integer, got {value!r}")
        result = int(value)
    elif isinstance(value, str):
        try:
            result = int(value.strip())
        except ValueError:
            raise ValueError(f"{name}: expected integer, got {value!r}") from None
    else:
        raise ValueError(f"{name}: expected integer, got {type(value).__name__}")
    if result < 0:
        raise ValueError(f"{name}: negative value {result}")
    return result


def _amount(raw: dict, key: str) -> int:
    value = raw.get(key)
    if value is None:
        return 0
    return _to_int(value, key)


def _optional_int(raw: dict, key: str) -> int | None:
    value = raw.get(key)
    if value is None:
        return None
    return _to_int(value, key)


def _optional_str(raw: dict, key: str) -> str | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return str(value)


def parse_event(raw: Any, now: int) -> SwapEvent | None:
    """Build a SwapEvent from a JSON-shaped message.

    Returns None for anything that is not an event we track: non-objects,
    a missing or unknown ``type``, or a missing/empty ``peerId``.

    Raises ValueError when a recognised event carries a field value of the
    wrong type (e.g. ``amountSats: "abc"``).
    """
    if not isinstance(raw, dict):
        return None
    kind = raw.get("type")
    if not isinstance(kind, str) or kind not in _KINDS:
        return None
    peer_id = raw.get("peerId")
    if not isinstance(peer_id, str) or not peer_id:
        return None

    ts = raw.get("ts", raw.get("timestamp"))
    timestamp = _to_int(ts, "ts") if ts else now

    return SwapEvent(
        kind=_KINDS[kind],
        peer_id=peer_id,
        timestamp=timestamp or now,
        amount_sats=_amount(raw, "amountSats"),
        amount_usdt_micro=_amount(raw, "amountUsdtMicro"),
        quoted_rate=_optional_str(raw, "quotedRate"),
        settlement_ms=_optional_int(raw, "settlementMs") or None,
        pair=_optional_str(raw, "pair") or DEFAULT_PAIR,
        tx_id_lightning=_optional_str(raw, "txIdLightning"),
        tx_id_solana=_optional_str(raw, "txIdSolana"),
    )
