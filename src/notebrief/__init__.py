"""notebrief - Meeting context retrieval over personal notes.

notebrief indexes a vault of markdown notes in memory and, given an upcoming
meeting's title, attendees and topics, returns the notes most likely to be
relevant to it, scored, ranked and excerpted for display.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
