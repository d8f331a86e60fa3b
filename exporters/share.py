from pydantic import BaseModel

NOTE_SHARE_TITLE = "RBT Session Note for {client_name}"
IDEAS_SHARE_TITLE = "RBT Session Enhancement Ideas"


class SharePayload(BaseModel):
    """What the page hands to the native share sheet, or copies when there is none."""

    title: str
    text: str


def note_share_payload(note: str, client_name: str) -> SharePayload:
    return SharePayload(title=NOTE_SHARE_TITLE.format(client_name=client_name), text=note)


def conversation_share_payload(formatted_transcript: str) -> SharePayload:
    return SharePayload(title=IDEAS_SHARE_TITLE, text=formatted_transcript)
