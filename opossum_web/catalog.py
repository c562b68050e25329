from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TFInfo:
    id: str
    name: str
    collection: str = "CORE"
    tax_group: str = ""
    tf_class: str = ""
    family: str = ""
    ic: Optional[float] = None


@dataclass
class TFCluster:
    id: str
    name: str
    family: str = ""
    tf_ids: Optional[List[str]] = None


class TFCatalog:
    """Read-only view of a JASPAR / TFBS cluster export.

    The export is a JSON object with ``tfs`` and ``clusters`` arrays, written
    offline from the databases. A missing export yields an empty catalog so the
    input form still renders.
    """

    def __init__(self, tfs: Iterable[TFInfo] = (), clusters: Iterable[TFCluster] = ()):
        self.tfs = list(tfs)
        self.clusters = list(clusters)

    @classmethod
    def load(cls, path: Optional[Path]) -> "TFCatalog":
        if path is None or not Path(path).is_file():
            if path is not None:
                logger.warning("TF catalog not found: %s", path)
            return cls()
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            logger.error("Could not read TF catalog %s: %s", path, exc)
            return cls()
        return cls.from_dict(data if isinstance(data, dict) else {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TFCatalog":
        tfs = []
        for row in data.get("tfs") or []:
            if not isinstance(row, dict) or not row.get("id"):
                continue
            ic = row.get("ic")
            tfs.append(
                TFInfo(
                    id=str(row["id"]),
                    name=str(row.get("name") or row["id"]),
                    collection=str(row.get("collection") or "CORE"),
                    tax_group=str(row.get("tax_group") or ""),
                    tf_class=str(row.get("class") or ""),
                    family=str(row.get("family") or ""),
                    ic=float(ic) if ic is not None else None,
                )
            )
        clusters = []
        for row in data.get("clusters") or []:
            if not isinstance(row, dict) or not row.get("id"):
                continue
            clusters.append(
                TFCluster(
                    id=str(row["id"]),
                    name=str(row.get("name") or row["id"]),
                    family=str(row.get("family") or ""),
                    tf_ids=[str(t) for t in row.get("tf_ids") or []],
                )
            )
        return cls(tfs, clusters)

    def tf_set(
        self,
        collection: str = "CORE",
        tax_groups: Optional[Iterable[str]] = None,
        min_ic: Optional[float] = None,
    ) -> List[TFInfo]:
        groups = set(tax_groups or [])
        selected = [
            tf
            for tf in self.tfs
            if tf.collection == collection
            and (not groups or tf.tax_group in groups)
            and (min_ic is None or tf.ic is None or tf.ic >= min_ic)
        ]
        return sorted(selected, key=lambda tf: tf.name.upper())

    def cluster_families(self) -> List[str]:
        return sorted({c.family for c in self.clusters if c.family}, key=str.upper)
