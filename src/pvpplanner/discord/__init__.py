"""Discord integration for PvP Planner — bot, interaction routing, signup views."""
