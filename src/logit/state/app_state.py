from dataclasses import dataclass, field
from typing import Dict, Optional

from logit.state.session_state import StudySession


@dataclass
class AppState:
    active_semester_id: Optional[int] = None
    viewing_archived: bool = False
    selected_subject_id: Optional[int] = None
    selected_subject: str = ""
    visible_types: Dict[str, bool] = field(default_factory=dict)
    target_grade: float = 90.0
    show_absolute: bool = False
    study: StudySession = field(default_factory=StudySession)

    def select_semester(self, semester_id: Optional[int]) -> None:
        self.active_semester_id = semester_id
        self.clear_subject()

    def select_subject(self, subject_id: Optional[int], name: str, categories=()) -> None:
        self.selected_subject_id = subject_id
        self.selected_subject = name
        self.visible_types = {c: True for c in categories}

    def clear_subject(self) -> None:
        self.selected_subject_id = None
        self.selected_subject = ""
        self.visible_types = {}

    def toggle_type(self, category: str) -> None:
        self.visible_types[category] = not self.visible_types.get(category, False)
