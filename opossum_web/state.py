from __future__ import annotations

import json
import logging
import os
import time
import uuid
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from .settings import AnalysisVariant

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    sid: str
    title: str = ""
    heading: str = ""
    bg_color_class: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    anchor_tf_id: Optional[str] = None
    debug: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionState":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        # Older state files stored empty lists as null.
        for key in ("errors", "warnings"):
            if values.get(key) is None:
                values[key] = []
        return cls(**values)


def new_session_id() -> str:
    # pid + epoch seconds alone collide inside one long-lived worker.
    return f"{os.getpid()}{int(time.time())}{uuid.uuid4().hex[:6]}"


class SessionStore:
    """One JSON file per session id under the configured temp directory."""

    def __init__(self, tmp_dir: Path):
        self.tmp_dir = Path(tmp_dir)

    def path_for(self, sid: str) -> Path:
        # sid comes from the query string; never let it escape tmp_dir.
        return self.tmp_dir / Path(str(sid)).name

    def create(self, variant: AnalysisVariant, sid: Optional[str] = None) -> SessionState:
        state = SessionState(sid=sid or new_session_id())
        initialize_state(state, variant)
        return state

    def load(self, sid: str) -> Optional[SessionState]:
        path = self.path_for(sid)
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8") or "null")
        except (OSError, ValueError) as exc:
            logger.warning("Could not read session state %s: %s", path, exc)
            return None
        if not isinstance(data, dict):
            return None
        try:
            return SessionState.from_dict(data)
        except TypeError as exc:
            logger.warning("Malformed session state %s: %s", path, exc)
            return None

    def load_or_create(self, sid: Optional[str], variant: AnalysisVariant) -> SessionState:
        name = Path((sid or "").strip()).name
        if name in ("", ".", ".."):
            return self.create(variant)
        state = self.load(name)
        if state is not None:
            return state
        return self.create(variant, sid=name)

    def commit(self, state: SessionState) -> Path:
        path = self.path_for(state.sid)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(state.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        return path


def initialize_state(state: SessionState, variant: AnalysisVariant, debug: bool = False) -> None:
    state.heading = variant.heading
    state.title = variant.title
    state.bg_color_class = variant.bg_color_class
    state.debug = debug
    state.errors = []
    state.warnings = []
