import re
from typing import Dict

from models import SessionData

NOTE_PROMPT_TEMPLATE = """
As a professional Registered Behavior Technician (RBT), generate a comprehensive and objective session note based on the following details.

**Key RBT Note Principles to Apply:**
1.  **Objective and Observable:** Describe specific actions and behaviors. Do not use subjective or vague terms like "happy," "good," "well," or "struggled." Instead of "Alex struggled with his math problems," write "Alex correctly answered 2 of 10 math problems and required frequent prompting to remain on task."
2.  **Measurable:** Incorporate all provided data points and quantitative measures.
3.  **Professional Language:** Use clinical and precise terminology appropriate for a session note.
4.  **Structure:**
    - Start with a conclusive summary of the session logistics (venue, time, people present) and the client's health/appearance.
    - Detail the work on each goal, tying observations directly to the interventions and instructional methods used.
    - Conclude with the plan for the next session.
5.  **Format:** Produce a clean, well-structured note in paragraph form. Avoid lists unless detailing specific, sequential steps taken.

**Session Details:**
- **Client Name:** <<CLIENT_NAME>>
- **Session Date:** <<SESSION_DATE>>
- **Session Time:** <<START_TIME>> - <<END_TIME>>
- **Venue:** <<VENUE>>
- **People Present:** <<PEOPLE_PRESENT>>
- **Client's Health & Appearance:** <<CLIENT_HEALTH>>
- **Goals & Interventions:** <<GOALS>>
- **Plan for Next Session:** <<NEXT_SESSION_PLAN>>

Now, generate the complete session note.
"""

NOTE_GOAL_TEMPLATE = """
Goal <<NUMBER>>: <<NAME>>
Client's Performance/Progress: <<PROGRESS>>
Instructional Methods Used: <<METHODS>>
"""

IDEAS_PROMPT_TEMPLATE = """
As an expert Board Certified Behavior Analyst (BCBA) supervising an RBT, your task is to generate creative and actionable ideas to enhance the next therapy session's effectiveness. Based on the session summary below, provide 3-5 concrete suggestions.

**Guiding Principles for Your Suggestions:**
1.  **Enhance Engagement:** Propose novel materials, activities, or ways to incorporate the client's interests.
2.  **Promote Generalization:** Suggest how to practice skills in different settings or with different people/materials.
3.  **Increase Skill Acquisition:** Recommend slight modifications to teaching procedures (e.g., changing prompting, reinforcement schedules).
4.  **Be Practical:** Ideas should be feasible for an RBT to implement in a typical session setting (<<VENUE>>).

**Session Summary:**
- **Client:** <<CLIENT_NAME>>
- **Goals Worked On:** <<GOALS>>
- **Venue:** <<VENUE>>
- **Plan for Next Session:** <<NEXT_SESSION_PLAN>>

Now, provide a list of creative and practical ideas to enhance the next session. After you provide the ideas, ask me a follow-up question to keep the conversation going.
"""

IDEAS_GOAL_TEMPLATE = """
  - **Goal:** "<<NAME>>"
    - **Client's Progress:** <<PROGRESS>>
    - **Methods Used:** <<METHODS>>"""

_PLACEHOLDER = re.compile(r"<<([A-Z_]+)>>")


def _fill(template: str, values: Dict[str, str]) -> str:
    # Single pass, so user text that looks like a placeholder is left alone.
    return _PLACEHOLDER.sub(lambda match: values[match.group(1)], template)


def build_note_prompt(data: SessionData) -> str:
    goals_text = "".join(
        _fill(
            NOTE_GOAL_TEMPLATE,
            {"NUMBER": str(index), "NAME": goal.name, "PROGRESS": goal.progress, "METHODS": goal.methods},
        )
        for index, goal in enumerate(data.goals, start=1)
    )
    return _fill(
        NOTE_PROMPT_TEMPLATE,
        {
            "CLIENT_NAME": data.client_name,
            "SESSION_DATE": data.session_date,
            "START_TIME": data.start_time,
            "END_TIME": data.end_time,
            "VENUE": data.venue,
            "PEOPLE_PRESENT": data.people_present,
            "CLIENT_HEALTH": data.client_health,
            "GOALS": goals_text,
            "NEXT_SESSION_PLAN": data.next_session_plan,
        },
    )


def build_ideas_prompt(data: SessionData) -> str:
    goals_text = "".join(
        _fill(IDEAS_GOAL_TEMPLATE, {"NAME": goal.name, "PROGRESS": goal.progress, "METHODS": goal.methods})
        for goal in data.goals
    )
    return _fill(
        IDEAS_PROMPT_TEMPLATE,
        {
            "CLIENT_NAME": data.client_name,
            "GOALS": goals_text,
            "VENUE": data.venue,
            "NEXT_SESSION_PLAN": data.next_session_plan,
        },
    )
