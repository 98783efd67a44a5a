from pydantic import BaseModel, Field


class SoleSurvivorSet(BaseModel):
    contestant_id: int
    as_of_episode_number: int | None = Field(None, gt=0)


class ClosedInterval(BaseModel):
    contestant_id: int
    start_episode: int
    end_episode: int


class SoleSurvivorChangeResponse(BaseModel):
    changed: bool
    player_id: int
    contestant_id: int
    previous_contestant_id: int | None
    start_episode: int
    closed_interval: ClosedInterval | None


class SoleSurvivorHistoryItem(BaseModel):
    id: int
    contestant_id: int
    contestant_name: str | None
    start_episode: int
    end_episode: int | None


class SoleSurvivorBonusResponse(BaseModel):
    player_id: int
    as_of_episode: int
    tenure_episodes: int
    tenure_bonus: int
    winner_bonus: int
    total: int
