"""Assessment pipeline core."""
