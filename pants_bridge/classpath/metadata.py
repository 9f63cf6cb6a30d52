"""Decoding of the Pants metadata stored on imported modules.

At import time each module records, as JSON option values, the Pants target
addresses it was built from, the published artifact groups (target address
infos) and the libraries it excludes.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from ..models import TargetAddressInfo
from ..ports import ModuleMetadata

TARGET_ADDRESS_INFOS_KEY = "pants.target.address.infos"
TARGET_ADDRESSES_KEY = "pants.target.addresses"
LIBRARY_EXCLUDES_KEY = "pants.library.excludes"

_TARGET_INFOS = TypeAdapter(frozenset[TargetAddressInfo])
_ADDRESSES = TypeAdapter(frozenset[str])


class MetadataError(ValueError):
    """Raised when a module option holds malformed JSON."""

    def __init__(self, module: str, key: str, detail: str) -> None:
        self.module = module
        self.key = key
        super().__init__(f"Module '{module}' has an invalid '{key}' option: {detail}")


def load_target_address_infos(module: ModuleMetadata) -> frozenset[TargetAddressInfo]:
    """Return the target address infos recorded on *module*.

    A module without the option yields an empty set.

    Raises:
        MetadataError: If the option is present but not a JSON list of infos.
    """
    raw = module.option_value(TARGET_ADDRESS_INFOS_KEY)
    if not raw:
        return frozenset()
    try:
        return _TARGET_INFOS.validate_json(raw)
    except ValidationError as exc:
        raise MetadataError(module.name, TARGET_ADDRESS_INFOS_KEY, str(exc)) from exc


def hydrate_target_addresses(value: Optional[str]) -> frozenset[str]:
    """Decode a JSON list of target addresses; ``None`` or ``""`` is empty.

    Raises:
        ValidationError: If *value* is not a JSON list of strings.
    """
    if not value:
        return frozenset()
    return _ADDRESSES.validate_json(value)


def find_library_excludes(modules: Iterable[ModuleMetadata]) -> dict[str, str]:
    """Map each excluded library address to the module that excludes it.

    The owner is described by the module's raw target-addresses option, or
    by its name when it has none. *modules* is the runtime module closure of
    the module being run, as enumerated by the host.

    Raises:
        MetadataError: If an excludes option is malformed.
    """
    result: dict[str, str] = {}
    for module in modules:
        targets = module.option_value(TARGET_ADDRESSES_KEY)
        try:
            excludes = hydrate_target_addresses(module.option_value(LIBRARY_EXCLUDES_KEY))
        except ValidationError as exc:
            raise MetadataError(module.name, LIBRARY_EXCLUDES_KEY, str(exc)) from exc
        for exclude in sorted(excludes):
            result[exclude] = targets or module.name
    return result
