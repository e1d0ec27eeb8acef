"""Chat front end: per-user session state machine plus the Telegram transport."""
