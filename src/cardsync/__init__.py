"""cardsync - Copy new files from camera cards to storage."""

__version__ = "0.1.0"
