"""Terminal falling-block puzzle game: a solo curses client, a versus lobby server and its wire protocol."""

__version__ = "0.1.0"