from datetime import date
from typing import Dict, List, Literal

from pydantic import BaseModel, Field


class Goal(BaseModel):
    name: str = ""
    progress: str = ""
    methods: str = ""


class SessionData(BaseModel):
    client_name: str = ""
    session_date: str = ""
    start_time: str = ""
    end_time: str = ""
    venue: str = ""
    people_present: str = ""
    client_health: str = ""
    goals: List[Goal] = Field(default_factory=lambda: [Goal()], min_length=1)
    next_session_plan: str = ""


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str = ""


class GeneratedNote(BaseModel):
    """
    The generated note plus the draft used while edit mode is active.

    Outside edit mode the draft always mirrors the committed text.
    """

    committed: str = ""
    draft: str = ""
    editing: bool = False

    @property
    def current_text(self) -> str:
        return self.draft

    def replace(self, text: str) -> None:
        self.committed = text
        self.draft = text
        self.editing = False

    def begin_edit(self) -> None:
        self.draft = self.committed
        self.editing = True

    def update_draft(self, text: str) -> None:
        if not self.editing:
            raise ValueError("Note is not being edited.")
        self.draft = text

    def save(self) -> None:
        self.committed = self.draft
        self.editing = False

    def cancel(self) -> None:
        self.draft = self.committed
        self.editing = False


def blank_session() -> SessionData:
    return SessionData(goals=[Goal()])


def example_session() -> SessionData:
    return SessionData(
        client_name="Alex P.",
        session_date=date.today().isoformat(),
        start_time="09:00",
        end_time="11:00",
        venue="Client's home",
        people_present="Client, RBT, Mother",
        client_health="Client was in good health, energetic, and ready to engage in activities.",
        goals=[
            Goal(
                name="Manding for preferred items",
                progress=(
                    "Client independently manded for 3 different preferred toys (car, ball, blocks) "
                    "on 4 out of 5 opportunities presented."
                ),
                methods="Natural Environment Teaching (NET), Positive Reinforcement (praise and access to item).",
            ),
            Goal(
                name="Following 2-step instructions",
                progress=(
                    "Client followed 2-step instructions with gestural prompts on 60% of trials. "
                    "For example, 'Get your shoes and sit down'."
                ),
                methods="Discrete Trial Training (DTT), gestural prompting, token economy system.",
            ),
        ],
        next_session_plan=(
            "Continue working on manding with new items. Fade gestural prompts for 2-step "
            "instructions and introduce social story for sharing."
        ),
    )


def validate_session(data: SessionData) -> Dict[str, str]:
    """
    Return field errors for the session form, keyed by field name (goal_<i> for goals).

    Only presence and time ordering are checked. Times are compared as strings,
    which orders correctly for zero-padded HH:MM values.
    """
    errors: Dict[str, str] = {}

    if not data.client_name.strip():
        errors["client_name"] = "Client name is required."
    if not data.session_date:
        errors["session_date"] = "Session date is required."
    if not data.start_time:
        errors["start_time"] = "Start time is required."
    if not data.end_time:
        errors["end_time"] = "End time is required."
    if data.start_time and data.end_time and data.start_time >= data.end_time:
        errors["end_time"] = "End time must be after start time."

    for index, goal in enumerate(data.goals):
        if not goal.name.strip() or not goal.progress.strip() or not goal.methods.strip():
            errors[f"goal_{index}"] = f"All fields for Goal {index + 1} are required."

    return errors
