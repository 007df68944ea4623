"""Game constants for Half-Suit."""

# Game limits
MAX_PLAYERS = 12
MIN_PLAYERS = 4

# Deck
HALF_SUIT_COUNT = 8

# Teams
TEAM_ONE = "team1"
TEAM_TWO = "team2"
TEAM_IDS = (TEAM_ONE, TEAM_TWO)
TEAM_LABELS = {TEAM_ONE: "Team 1", TEAM_TWO: "Team 2"}
TIE = "Tie"

# Game codes
GAME_CODE_LENGTH = 6
GAME_CODE_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
MAX_CODE_ATTEMPTS = 10

# Session retention after the game ends (seconds)
GAME_RETENTION_SECONDS = 300

# Action log lines kept on the session
LOG_HISTORY_LIMIT = 50

# Publisher service
REDIS_PUBLISH_TIMEOUT = 5

# Outbound delivery
SEND_TIMEOUT_SECONDS = 5
OUTBOX_LIMIT = 256
