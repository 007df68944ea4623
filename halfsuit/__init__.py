"""Half-Suit multiplayer game server."""
