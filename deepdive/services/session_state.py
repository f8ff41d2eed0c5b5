"""In-memory state of one analysis session."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..schemas import AnalysisResult, ChatMessage, UploadedFile


class BackendMode(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    DEGRADED = "degraded"


@dataclass
class SessionState:
    """What the display layer renders.

    ``current_result`` is set only for the selected file, and
    ``is_analyzing`` / ``is_chatting`` each guard one in-flight call.
    """

    files: List[UploadedFile] = field(default_factory=list)
    analyses: Dict[str, AnalysisResult] = field(default_factory=dict)
    chat_histories: Dict[str, List[ChatMessage]] = field(default_factory=dict)
    selected_file_id: Optional[str] = None
    current_result: Optional[AnalysisResult] = None
    is_analyzing: bool = False
    is_chatting: bool = False
    last_error: Optional[str] = None
    mode: BackendMode = BackendMode.UNINITIALIZED

    @property
    def store_reachable(self) -> bool:
        return self.mode is BackendMode.CONNECTED

    @property
    def selected_file(self) -> Optional[UploadedFile]:
        if self.selected_file_id is None:
            return None
        return next((f for f in self.files if f.id == self.selected_file_id), None)

    def chat_history(self, file_id: str) -> List[ChatMessage]:
        return list(self.chat_histories.get(file_id, []))

    def copy(self) -> "SessionState":
        return copy.deepcopy(self)


__all__ = ["BackendMode", "SessionState"]
