"""Global constants for the songrank application."""

# Collection names
GAMES_COLLECTION = "games"
PLAYERS_COLLECTION = "players"
ROUNDS_COLLECTION = "rounds"
RANKINGS_COLLECTION = "rankings"
SCORES_COLLECTION = "scores"
CHALLENGES_COLLECTION = "challenges"

# Game rules
MAX_PLAYERS = 6
MIN_PLAYERS_TO_START = 2
MIN_ROUNDS = 3
MAX_ROUNDS = 10
DEFAULT_TOTAL_ROUNDS = 5
MAX_PLAYER_NAME_LENGTH = 25
MAX_SONG_NAME_LENGTH = 100
MIN_SONGS_FOR_RANKING = 5

# Allowed values for game settings
VALID_ROUNDS = (3, 5, 7, 10)
VALID_MAX_PLAYERS = (3, 4, 5, 6)
VALID_TIME_LIMITS = (60, 90, 120)

DEFAULT_SELECTION_TIME_LIMIT = 90
DEFAULT_RANKING_TIME_LIMIT = 60

GAME_ID_LENGTH = 6

# Game level statuses that are not tied to a round
GAME_STATUS_WAITING = "waiting"
GAME_STATUS_FINISHED = "finished"

# Round local statuses
ROUND_STATUS_ANNOUNCING = "announcing"
ROUND_STATUS_SELECTING = "selecting_songs"
ROUND_STATUS_LISTENING = "listening"
ROUND_STATUS_RANKING = "ranking"
ROUND_STATUS_SCORING = "scoring"
ROUND_STATUS_FINISHED = "finished"
# Reserved for failed scoring; no transition writes it yet.
ROUND_STATUS_ERROR_SCORING = "error_scoring"

# Suffixes of the round{N}_{phase} game statuses
PHASE_ANNOUNCING = "announcing"
PHASE_SELECTING = "selecting"
PHASE_LISTENING = "listening"
PHASE_RANKING = "ranking"
PHASE_SCORING = "scoring"
PHASE_FINISHED = "finished"

PLAYBACK_ACTIONS = ("play", "pause", "next", "prev", "seekToIndex")

# Challenge seeding
SONGS_PER_CHALLENGE = 15
MIN_PREVIEW_DURATION_SECONDS = 29

# Admin dashboard
TOP_SONG_LIMIT = 5
RECENT_GAMES_LIMIT = 20

FIRESTORE_BATCH_LIMIT = 400
