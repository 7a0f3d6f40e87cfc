"""
Region registry - region code -> storage handle

Built once at startup from config and injected wherever a region has to be
resolved.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from config import Region, database_settings_from_config, regions_from_config
from storage import RegionStore

logger = logging.getLogger(__name__)


class UnknownRegionError(LookupError):
    """Raised for a region code with no configured storage"""

    def __init__(self, code: str, known: List[str]):
        self.code = code
        self.known = list(known)
        super().__init__(
            f"Invalid region code: {code}. Must be one of: {', '.join(self.known)}"
        )


class RegionRegistry:
    """
    Mapping from region code to a storage handle.

    Region order is preserved; the first region is the default for
    analytics requests.
    """

    def __init__(self, stores: Mapping[str, Any], regions: Optional[List[Region]] = None):
        self._stores: Dict[str, Any] = dict(stores)
        if regions is None:
            regions = [Region(code=code, name=code) for code in self._stores]
        self.regions = [r for r in regions if r.code in self._stores]

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]] = None) -> "RegionRegistry":
        regions = regions_from_config(cfg)
        db = database_settings_from_config(cfg)

        stores = {}
        for region in regions:
            dsn = db.urls.get(region.code)
            if not dsn:
                logger.warning(f"Missing database URL for region {region.name} ({region.code}), skipping")
                continue
            stores[region.code] = RegionStore(
                region.code, dsn, minconn=db.pool_min, maxconn=db.pool_max
            )
            logger.info(f"Registered region {region.code} ({region.name})")

        return cls(stores, regions)

    @property
    def codes(self) -> List[str]:
        return [r.code for r in self.regions]

    @property
    def default_code(self) -> Optional[str]:
        return self.regions[0].code if self.regions else None

    def __contains__(self, code: object) -> bool:
        return code in self._stores

    def resolve(self, code: str) -> Any:
        try:
            return self._stores[code]
        except KeyError:
            raise UnknownRegionError(code, self.codes) from None

    def region(self, code: str) -> Region:
        for r in self.regions:
            if r.code == code:
                return r
        raise UnknownRegionError(code, self.codes)

    def close(self) -> None:
        for code, store in self._stores.items():
            close = getattr(store, "close", None)
            if close is not None:
                close()
                logger.debug(f"Closed storage for {code}")
