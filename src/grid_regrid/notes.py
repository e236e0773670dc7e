"""
Provenance notes merged into regridded cells.

Note capacities are in bytes of UTF-8, matching the fixed-size note buffers
of the files the notes end up in.
"""

from map_projector.exceptions import InvalidParameterError

from .constants import NOTE_LENGTH, REGRIDDED_NOTE_LENGTH, NOTE_SEPARATOR


def _encoded_length(text: str) -> int:
    return len(text.encode("utf-8"))


def append_note(regridded_note: str, note: str) -> str:
    """
    Merge a point's note into a cell's regridded note.

    Parameters
    ----------
    regridded_note : str
        Current cell note, at most REGRIDDED_NOTE_LENGTH bytes
    note : str
        Non-empty point note, at most NOTE_LENGTH bytes

    Returns
    -------
    str
        regridded_note unchanged if it already contains note, otherwise
        regridded_note + ',' + note (no comma when regridded_note is empty)
        truncated to REGRIDDED_NOTE_LENGTH bytes.

    Notes
    -----
    Once the cell note is full further notes are dropped. A note that only
    has room for its separator leaves a trailing comma. Truncation never
    splits a multi-byte character.
    """
    if not note:
        raise InvalidParameterError("note", note, "must be non-empty")
    if _encoded_length(note) > NOTE_LENGTH:
        raise InvalidParameterError("note", note, f"longer than {NOTE_LENGTH} bytes")
    if _encoded_length(regridded_note) > REGRIDDED_NOTE_LENGTH:
        raise InvalidParameterError(
            "regridded_note", regridded_note, f"longer than {REGRIDDED_NOTE_LENGTH} bytes"
        )

    if note in regridded_note or _encoded_length(regridded_note) >= REGRIDDED_NOTE_LENGTH:
        return regridded_note
    if regridded_note:
        regridded_note += NOTE_SEPARATOR
    merged = (regridded_note + note).encode("utf-8")[:REGRIDDED_NOTE_LENGTH]
    # A character cut at the limit is dropped whole
    return merged.decode("utf-8", errors="ignore")
