from pydantic import BaseModel


class DraftPickItem(BaseModel):
    contestant_id: int
    contestant_name: str
    pick_number: int
    total_score: int
    is_eliminated: bool


class LeaderboardEntry(BaseModel):
    rank: int
    player_id: int
    player_name: str
    draft_picks: list[DraftPickItem]
    draft_score: int
    under_rostered: bool
    sole_survivor_id: int | None
    sole_survivor_name: str | None
    sole_survivor_score: int
    tenure_episodes: int
    sole_survivor_bonus: int
    winner_bonus: int
    team_score: int
    points_behind_leader: int
    weekly_change: int | None


class LeaderboardResponse(BaseModel):
    as_of_episode: int
    standings: list[LeaderboardEntry]


class LeaderboardQuery(BaseModel):
    """Body for a leaderboard request that carries last week's scores."""
    as_of_episode_number: int | None = None
    previous_snapshot: dict[int, int] | None = None
