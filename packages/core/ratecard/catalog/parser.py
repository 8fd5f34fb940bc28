"""Catalog parser — JSONP pricing payload to a typed RawCatalog.

Payloads look like ``callback({"vers":0.01,"config":{...}});``, usually
preceded by a license comment. Numbers are decoded straight to Decimal and
string prices are parsed exactly; no value ever goes through float.
"""

from __future__ import annotations

import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError

from ratecard.errors import MalformedCatalogError
from ratecard.families import FamilyRegistry, get_registry
from ratecard.models import (
    RawCatalog,
    RawStorageType,
    RawTier,
    RawType,
    RawValue,
    TiersRegion,
    TypesRegion,
    validate_currency,
)

logger = logging.getLogger(__name__)

_CALLBACK = re.compile(r"^[A-Za-z_$][\w$.]*\s*\(")


def strip_jsonp(raw_text: str, source: str = "") -> str:
    """Return the JSON body of a ``callback(...)`` payload."""
    text = _strip_leading_comments(raw_text, source)
    m = _CALLBACK.match(text)
    if not m:
        raise MalformedCatalogError("missing JSONP callback wrapper", source)

    tail = text.rstrip()
    if tail.endswith(";"):
        tail = tail[:-1].rstrip()
    if not tail.endswith(")") or len(tail) <= m.end():
        raise MalformedCatalogError("unbalanced JSONP callback wrapper", source)
    return tail[m.end() : -1]


def _strip_leading_comments(text: str, source: str) -> str:
    text = text.lstrip("\ufeff").lstrip()
    while text.startswith(("/*", "//")):
        if text.startswith("/*"):
            end = text.find("*/")
            if end < 0:
                raise MalformedCatalogError("unterminated comment before JSONP payload", source)
            text = text[end + 2 :].lstrip()
        else:
            end = text.find("\n")
            text = "" if end < 0 else text[end + 1 :].lstrip()
    return text


def parse(
    raw_text: str,
    family: str | None = None,
    registry: FamilyRegistry | None = None,
    source: str = "",
) -> RawCatalog:
    """Decode a JSONP pricing payload into a RawCatalog.

    Args:
        raw_text: The payload as fetched, wrapper and comments included.
        family: Product family ("ebs", "s3"). Inferred from the region shape when omitted.
        registry: Family registry used for inference; the shared one by default.
        source: Name of the payload, only used in error messages and logs.

    Raises:
        MalformedCatalogError: The wrapper, JSON, or required structure is invalid.
    """
    body = strip_jsonp(raw_text, source)
    try:
        doc = json.loads(body, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise MalformedCatalogError(f"invalid JSON: {exc}", source) from exc
    if not isinstance(doc, dict):
        raise MalformedCatalogError("payload is not a JSON object", source)

    if "vers" not in doc:
        raise MalformedCatalogError("missing 'vers'", source)
    version = _parse_decimal(doc["vers"])
    if version is None:
        raise MalformedCatalogError(f"invalid 'vers': {doc['vers']!r}", source)

    config = doc.get("config")
    if not isinstance(config, dict):
        raise MalformedCatalogError("missing 'config' object", source)
    raw_regions = config.get("regions")
    if not isinstance(raw_regions, list):
        raise MalformedCatalogError("missing 'config.regions' list", source)

    currencies = _parse_currencies(config.get("currencies", []), source)
    default_rate = config.get("rate")
    if default_rate is not None and not isinstance(default_rate, str):
        raise MalformedCatalogError(f"invalid 'config.rate': {default_rate!r}", source)

    ctx = _Context(source=source, currencies=frozenset(currencies))
    regions = tuple(_parse_region(r, ctx) for r in raw_regions)

    if family is None:
        shapes = {r.shape for r in regions}
        if len(shapes) == 1:
            defn = (registry or get_registry()).for_shape(shapes.pop())
            family = defn.family if defn else None

    footnotes = config.get("footnotes") or {}
    value_columns = config.get("valueColumns") or []
    if not isinstance(footnotes, dict) or not isinstance(value_columns, list):
        raise MalformedCatalogError("invalid 'footnotes' or 'valueColumns'", source)

    try:
        catalog = RawCatalog(
            version=version,
            currencies=tuple(currencies),
            default_rate=default_rate,
            regions=regions,
            family=family,
            value_columns=tuple(str(c) for c in value_columns),
            footnotes={str(k): str(v) for k, v in footnotes.items()},
        )
    except ValidationError as exc:
        raise MalformedCatalogError(str(exc), source) from exc

    logger.debug(
        "Parsed %s catalog v%s%s: %d regions",
        family or "unknown",
        version,
        f" from {source}" if source else "",
        len(regions),
    )
    return catalog


class _Context:
    __slots__ = ("source", "currencies")

    def __init__(self, source: str, currencies: frozenset[str]):
        self.source = source
        self.currencies = currencies


def _parse_currencies(value: Any, source: str) -> list[str]:
    if not isinstance(value, list):
        raise MalformedCatalogError("'config.currencies' must be a list", source)
    result: list[str] = []
    for code in value:
        try:
            validate_currency(code if isinstance(code, str) else repr(code))
        except ValueError as exc:
            raise MalformedCatalogError(str(exc), source) from exc
        if code not in result:
            result.append(code)
    return result


def _parse_region(raw: Any, ctx: _Context) -> TypesRegion | TiersRegion:
    if not isinstance(raw, dict) or not isinstance(raw.get("region"), str):
        raise MalformedCatalogError(f"region without a 'region' code: {raw!r:.80}", ctx.source)
    code = raw["region"]

    has_types = "types" in raw
    has_tiers = "tiers" in raw
    if has_types == has_tiers:
        detail = "both 'types' and 'tiers'" if has_types else "neither 'types' nor 'tiers'"
        raise MalformedCatalogError(f"region {code} has {detail}", ctx.source)

    if has_types:
        types = _require_list(raw["types"], f"{code}.types", ctx)
        return TypesRegion(region=code, types=tuple(_parse_type(t, code, ctx) for t in types))

    tiers = _require_list(raw["tiers"], f"{code}.tiers", ctx)
    return TiersRegion(region=code, tiers=tuple(_parse_tier(t, code, ctx) for t in tiers))


def _parse_type(raw: Any, region: str, ctx: _Context) -> RawType:
    name = _require_name(raw, "name", region, ctx)
    values = []
    for v in _require_list(raw.get("values", []), f"{region}.{name}.values", ctx):
        if not isinstance(v, dict):
            raise MalformedCatalogError(f"{region}.{name}: value is not an object", ctx.source)
        rate = v.get("rate")
        if rate is not None and not isinstance(rate, str):
            raise MalformedCatalogError(f"{region}.{name}: invalid rate {rate!r}", ctx.source)
        prices = _parse_prices(v.get("prices"), f"{region}.{name}", ctx)
        values.append(RawValue(prices=prices, rate=rate))
    return RawType(name=name, values=tuple(values))


def _parse_tier(raw: Any, region: str, ctx: _Context) -> RawTier:
    name = _require_name(raw, "name", region, ctx)
    storage_types = []
    for st in _require_list(raw.get("storageTypes", []), f"{region}.{name}.storageTypes", ctx):
        type_name = _require_name(st, "type", f"{region}.{name}", ctx)
        prices = _parse_prices(st.get("prices"), f"{region}.{name}.{type_name}", ctx)
        storage_types.append(RawStorageType(type=type_name, prices=prices))
    return RawTier(name=name, storage_types=tuple(storage_types))


def _parse_prices(raw: Any, where: str, ctx: _Context) -> dict[str, Decimal]:
    if not isinstance(raw, dict):
        raise MalformedCatalogError(f"{where}: missing 'prices' object", ctx.source)
    prices: dict[str, Decimal] = {}
    for currency, value in raw.items():
        try:
            validate_currency(currency)
        except ValueError as exc:
            raise MalformedCatalogError(f"{where}: {exc}", ctx.source) from exc
        if ctx.currencies and currency not in ctx.currencies:
            raise MalformedCatalogError(f"{where}: currency {currency} is not declared by the catalog", ctx.source)
        if isinstance(value, bool):
            raise MalformedCatalogError(f"{where}: invalid {currency} price {value!r}", ctx.source)

        amount = _parse_decimal(value)
        if amount is None:
            # Placeholders such as "N/A" mean the price is not offered in this currency
            logger.warning("Dropping unparsable %s price %r at %s", currency, value, where)
            continue
        if amount < 0:
            raise MalformedCatalogError(f"{where}: negative {currency} price {value!r}", ctx.source)
        prices[currency] = amount
    return prices


def _parse_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return amount if amount.is_finite() else None


def _require_list(value: Any, where: str, ctx: _Context) -> list:
    if not isinstance(value, list):
        raise MalformedCatalogError(f"{where} must be a list", ctx.source)
    return value


def _require_name(raw: Any, field: str, where: str, ctx: _Context) -> str:
    if not isinstance(raw, dict) or not isinstance(raw.get(field), str) or not raw[field]:
        raise MalformedCatalogError(f"{where}: entry without a '{field}'", ctx.source)
    return raw[field]
