"""Terminal dashboard for the heat board, built on Textual."""
