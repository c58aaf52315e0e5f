"""
EngBuddy - an English writing tutor for middle school students.

Relays the student's messages to a hosted Gemini model, keeps the
conversation log for the running process and reads model replies aloud
through a text-to-speech provider.
"""

__version__ = "1.0.0"
