"""Qt host: the main window and the bridge object exposed to the frontend."""
