"""Token enumeration for token-standard contracts.

The token list comes from ``all_tokens``; each token is then explored with
``token_metadata`` and ``total_supply``, one token after the other.  Problems
with a single token stay on the affected field of that token's record.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from tzmeta.core.classify import ClassifiedMetadata, TokenStandard
from tzmeta.core.decode import decode_int, decode_int_list, decode_metadata_map, display_amount
from tzmeta.core.errors import TzmetaError
from tzmeta.core.jobs import JobDone, JobFailed, JobSlot
from tzmeta.core.micheline import UNIT, MichelineInt
from tzmeta.core.ports.node import NodeRpc
from tzmeta.core.validation import Valid, ViewValidationResult
from tzmeta.core.views import call_view

logger = logging.getLogger(__name__)

KNOWN_METADATA_FIELDS = ("symbol", "name", "decimals")


@dataclass(frozen=True)
class FieldError:
    message: str


@dataclass(frozen=True)
class TotalSupply:
    raw: int
    decimals: int | None
    display: str


@dataclass(frozen=True)
class TokenRecord:
    token_id: int
    total_supply: TotalSupply | FieldError | None
    symbol: str | None
    name: str | None
    decimals: str | None
    extras: tuple[tuple[str, str], ...] | FieldError

    @property
    def metadata_error(self) -> FieldError | None:
        return self.extras if isinstance(self.extras, FieldError) else None


def _parse_decimals(decimals: str | None) -> int | None:
    if decimals is None:
        return None
    try:
        return int(decimals)
    except ValueError:
        return None


async def _explore_token(
    token_id: int,
    classified: TokenStandard,
    node: NodeRpc,
    address: str,
    log: Callable[[str], None],
) -> TokenRecord:
    parameter = MichelineInt(value=token_id)

    metadata: list[tuple[str, str]] | FieldError
    if isinstance(classified.token_metadata, Valid):
        try:
            call = await call_view(
                node, address, classified.token_metadata.implementation, parameter, log, name="token_metadata"
            )
            metadata = decode_metadata_map(call.result)
        except TzmetaError as e:
            metadata = FieldError(f"Error getting view: {e}")
    else:
        metadata = FieldError("Not available")

    def _piece(key: str) -> str | None:
        if isinstance(metadata, FieldError):
            return None
        return next((v for k, v in metadata if k == key), None)

    decimals = _piece("decimals")

    total_supply: TotalSupply | FieldError | None = None
    if isinstance(classified.total_supply, Valid):
        try:
            call = await call_view(
                node, address, classified.total_supply.implementation, parameter, log, name="total_supply"
            )
            raw = decode_int(call.result)
            scale = _parse_decimals(decimals)
            total_supply = TotalSupply(raw=raw, decimals=scale, display=display_amount(raw, scale))
        except TzmetaError as e:
            total_supply = FieldError(str(e))

    extras: tuple[tuple[str, str], ...] | FieldError
    if isinstance(metadata, FieldError):
        extras = metadata
    else:
        extras = tuple((k, v) for k, v in metadata if k not in KNOWN_METADATA_FIELDS)

    return TokenRecord(
        token_id=token_id,
        total_supply=total_supply,
        symbol=_piece("symbol"),
        name=_piece("name"),
        decimals=decimals,
        extras=extras,
    )


def _all_tokens_view(classified: ClassifiedMetadata) -> tuple[TokenStandard, Valid]:
    if not isinstance(classified, TokenStandard):
        raise JobFailed("This is not token-standard metadata: there is no all_tokens view")
    all_tokens: ViewValidationResult = classified.all_tokens
    if not isinstance(all_tokens, Valid):
        raise JobFailed("The all_tokens view is not valid, tokens cannot be enumerated")
    return classified, all_tokens


async def enumerate_tokens(
    classified: ClassifiedMetadata,
    node: NodeRpc,
    address: str,
    slot: JobSlot[list[TokenRecord]] | None = None,
) -> JobDone[list[TokenRecord]]:
    """Enumerate all tokens of the contract at ``address``.

    The job fails as a whole only when the token list itself cannot be
    obtained; otherwise it yields one record per token, in ``all_tokens`` order.
    """
    if slot is None:
        slot = JobSlot("tokens")

    async def _work(log: Callable[[str], None]) -> list[TokenRecord]:
        token_standard, all_tokens = _all_tokens_view(classified)
        call = await call_view(node, address, all_tokens.implementation, UNIT, log, name="all_tokens")
        token_ids = decode_int_list(call.result)
        log(f"Got list of tokens {token_ids}")
        records = []
        for token_id in token_ids:
            records.append(await _explore_token(token_id, token_standard, node, address, log))
        logger.info("Enumerated %d token(s) on %s", len(records), address)
        return records

    return await slot.run(_work)
