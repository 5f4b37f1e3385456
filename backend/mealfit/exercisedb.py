"""
ExerciseDB API Integration
Exercise lookups through RapidAPI
"""

from urllib.parse import quote

import httpx

from config import RAPIDAPI_KEY, EXERCISEDB_HOST, EXERCISEDB_BASE_URL
from mealfit.errors import UpstreamError
from mealfit.upstream import UpstreamClient


class ExerciseDBAPI(UpstreamClient):
    provider = "exercisedb"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = RAPIDAPI_KEY,
        host: str = EXERCISEDB_HOST,
        base_url: str = EXERCISEDB_BASE_URL
    ):
        super().__init__(client, base_url)
        self.api_key = api_key
        self.host = host

    def _headers(self) -> dict:
        return {
            "x-rapidapi-key": self.api_key,
            "x-rapidapi-host": self.host
        }

    async def list_exercises(self, limit: int = 10, offset: int = 0) -> list[dict]:
        result = await self._make_request(
            "GET", "/exercises", params={"limit": limit, "offset": offset}
        )
        return self._expect_list(result)

    async def exercises_by_body_part(self, body_part: str, limit: int = 7) -> list[dict]:
        """Exercises for one body part, e.g. "upper legs"."""
        result = await self._make_request(
            "GET",
            f"/exercises/bodyPart/{quote(body_part, safe='')}",
            params={"limit": limit}
        )
        return self._expect_list(result)

    def _expect_list(self, result) -> list[dict]:
        if not isinstance(result, list):
            raise UpstreamError(self.provider, body="Expected a list of exercises")
        return result
