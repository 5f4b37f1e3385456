"""
Route tests: FastAPI app with stubbed upstreams and a temporary datastore
"""
import asyncio
import json

import httpx

from config import OPENAI_BASE_URL

COMPLETIONS = httpx.URL(OPENAI_BASE_URL).path.rstrip("/") + "/chat/completions"
FIND_BY_INGREDIENTS = "/recipes/findByIngredients"
COMPLEX_SEARCH = "/recipes/complexSearch"
NUTRIENTS = "/v2/natural/nutrients"

PREFERENCES = {
    "ingredientsToInclude": ["chicken", "rice"],
    "ingredientsToExclude": ["pork"],
    "dietaryPreferences": "high-protein",
    "bodyPartTrained": "upper legs",
    "mealPreferences": ["stir fry"],
}


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def recipes(count, start=1):
    return [
        {"id": i, "title": f"Recipe {i}", "image": f"https://img.test/{i}.jpg", "likes": i * 2}
        for i in range(start, start + count)
    ]


def exercises(count, body_part="upper legs"):
    return [
        {
            "id": f"{i:04d}",
            "bodyPart": body_part,
            "equipment": "body weight",
            "gifUrl": f"https://gif.test/{i}.gif",
            "name": f"exercise {i}",
            "target": "quads",
            "secondaryMuscles": ["glutes"],
            "instructions": ["stand", "squat"],
        }
        for i in range(1, count + 1)
    ]


# ----------------------------------------------------------------------------
# Preferences
# ----------------------------------------------------------------------------

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": True}


def test_llm_echo(client, upstream):
    upstream.add("POST", COMPLETIONS, completion("Hello there"))

    response = client.post("/llm-echo", json={"prompt": "Say hello"})

    assert response.status_code == 200
    assert response.json() == {"message": "Hello there"}


def test_llm_echo_upstream_failure(client, upstream):
    upstream.add("POST", COMPLETIONS, {"error": {"message": "invalid key"}}, status=401)

    response = client.post("/llm-echo", json={"prompt": "Say hello"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "OpenAI API request failed"
    assert body["details"] == {"error": {"message": "invalid key"}}


def test_preferences_from_prompt(client, upstream):
    def answer(request):
        prompt = json.loads(request.content)["messages"][0]["content"]
        if "body part" in prompt:
            return completion("upper legs")
        if "dietary preference" in prompt:
            return completion("vegetarian\nsince no meat was mentioned")
        if "meal preference" in prompt:
            return completion("")
        if "does not want" in prompt:
            return completion("mushrooms")
        return completion("tofu, spinach ,, garlic")

    upstream.add("POST", COMPLETIONS, answer)

    response = client.post("/preferences-from-prompt", json={"prompt": "leg day, tofu, no mushrooms"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Data added successfully"
    data = body["data"]
    assert data["ingredients_to_include"] == ["tofu", "spinach", "garlic"]
    assert data["ingredients_to_exclude"] == ["mushrooms"]
    assert data["dietary_preference"] == "vegetarian"
    assert data["body_part_trained"] == "upper legs"
    assert data["meal_preference"] == "No"
    assert len(upstream.calls(COMPLETIONS)) == 5

    latest = client.get("/latest-preferences").json()["data"]
    assert latest["id"] == data["id"]


def test_preferences_from_prompt_stores_nothing_on_failure(client, upstream, ctx):
    def answer(request):
        prompt = json.loads(request.content)["messages"][0]["content"]
        if "body part" in prompt:
            raise httpx.ConnectError("connection reset", request=request)
        return completion("anything")

    upstream.add("POST", COMPLETIONS, answer)

    response = client.post("/preferences-from-prompt", json={"prompt": "leg day"})

    assert response.status_code == 500
    assert response.json()["error"] == "OpenAI API request failed"
    assert ctx.store.select("user_preferences") == []


def test_add_preferences(client):
    response = client.post("/preferences", json={**PREFERENCES, "ingredientsToExclude": "pork, lard"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["ingredients_to_exclude"] == ["pork", "lard"]
    assert data["meal_preference"] == "stir fry"
    assert data["body_part_trained"] == "upper legs"


def test_add_preferences_missing_field(client):
    body = dict(PREFERENCES)
    del body["dietaryPreferences"]

    response = client.post("/preferences", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "All fields are required"


def test_add_preferences_blank_body_part(client):
    response = client.post("/preferences", json={**PREFERENCES, "bodyPartTrained": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "bodyPartTrained must be a non-empty string"


def test_add_preferences_empty_body_part_is_missing(client):
    response = client.post("/preferences", json={**PREFERENCES, "bodyPartTrained": ""})

    assert response.status_code == 400
    assert response.json()["error"] == "All fields are required"


def test_add_preferences_non_string_body_part(client):
    response = client.post("/preferences", json={**PREFERENCES, "bodyPartTrained": 3})

    assert response.status_code == 400
    assert response.json()["error"] == "bodyPartTrained must be a non-empty string"


def test_latest_preferences_empty(client):
    response = client.get("/latest-preferences")

    assert response.status_code == 404
    assert response.json() == {"error": "No data found"}


def test_latest_preferences_returns_newest(client):
    client.post("/preferences", json=PREFERENCES)
    client.post("/preferences", json={**PREFERENCES, "bodyPartTrained": "waist"})

    response = client.get("/latest-preferences")

    assert response.status_code == 200
    assert response.json()["data"]["body_part_trained"] == "waist"


def test_legacy_route_alias(client):
    assert client.get("/latest-data").status_code == 404
    client.post("/add-data", json=PREFERENCES)
    assert client.get("/latest-data").json()["data"]["dietary_preference"] == "high-protein"


# ----------------------------------------------------------------------------
# Recipes
# ----------------------------------------------------------------------------

def test_recipes_passthrough(client, upstream):
    payload = {"results": recipes(2), "offset": 0, "number": 10, "totalResults": 2}
    upstream.add("GET", COMPLEX_SEARCH, payload)

    response = client.get("/recipes", params={"query": "pasta", "diet": "vegetarian"})

    assert response.status_code == 200
    assert response.json() == payload
    params = upstream.calls(COMPLEX_SEARCH)[0].url.params
    assert params["query"] == "pasta"
    assert params["number"] == "10"


def test_recipes_by_ingredients_normalized(client, upstream):
    upstream.add("GET", FIND_BY_INGREDIENTS, [
        {**recipes(1)[0], "usedIngredientCount": 2, "missedIngredients": [{"name": "salt"}]}
    ])

    response = client.get("/recipes-by-ingredients", params={"ingredients": "apples,flour"})

    assert response.json() == [
        {"id": 1, "title": "Recipe 1", "image": "https://img.test/1.jpg", "likes": 2}
    ]


def test_combined_search_dedups_by_id(client, upstream):
    upstream.add("GET", FIND_BY_INGREDIENTS, [
        {"id": 42, "title": "From ingredients", "image": "a.jpg", "likes": 8},
        {"id": 5, "title": "Five", "image": "b.jpg", "likes": 1},
    ])
    upstream.add("GET", COMPLEX_SEARCH, {"results": [
        {"id": 42, "title": "From query", "image": "c.jpg"},
        {"id": 9, "title": "Nine", "image": "d.jpg"},
    ]})

    response = client.get("/combined-recipes-search", params={"query": "soup", "ingredients": "leek"})

    body = response.json()
    assert [r["id"] for r in body] == [42, 5, 9]
    assert body[0]["title"] == "From ingredients"
    assert upstream.calls(FIND_BY_INGREDIENTS)[0].url.params["number"] == "3"
    assert upstream.calls(COMPLEX_SEARCH)[0].url.params["number"] == "3"


def test_combined_search_malformed_query_results(client, upstream):
    upstream.add("GET", FIND_BY_INGREDIENTS, recipes(2))
    upstream.add("GET", COMPLEX_SEARCH, [])

    response = client.get("/combined-recipes-search", params={"query": "soup", "ingredients": "leek"})

    assert response.status_code == 500
    assert response.json()["error"] == "Spoonacular API request failed"


def test_recipe_data(client, upstream):
    upstream.add("GET", "/recipes/716429/information", {"id": 716429, "title": "Pasta"})

    response = client.get("/recipe-data/716429")

    assert response.json()["title"] == "Pasta"


def test_meal_flow(client, upstream, ctx):
    client.post("/preferences", json=PREFERENCES)
    candidates = recipes(30)
    candidates.reverse()
    candidates[0], candidates[15] = candidates[15], candidates[0]
    upstream.add("GET", FIND_BY_INGREDIENTS, candidates)

    response = client.get("/latest-preferences-with-recipes")

    assert response.status_code == 200
    top = response.json()["recipes"]
    assert len(top) == 21
    assert [r["id"] for r in top][:3] == [30, 29, 28]
    likes = [r["likes"] for r in top]
    assert likes == sorted(likes, reverse=True)

    params = upstream.calls(FIND_BY_INGREDIENTS)[0].url.params
    assert params["ingredients"] == "chicken,rice"
    assert params["excludeIngredients"] == "pork"
    assert params["diet"] == "high-protein"
    assert params["number"] == "200"

    assert len(ctx.store.select("meal_data")) == 21
    [selection] = ctx.store.select("user_meal")
    assert selection["meal_ids"] == [r["id"] for r in top]

    latest = client.get("/latest-meal-data").json()["data"]
    assert len(latest) == 21


def test_meal_flow_skips_sentinel_values(client, upstream):
    client.post("/preferences", json={**PREFERENCES, "ingredientsToExclude": ["No"], "dietaryPreferences": "No"})
    upstream.add("GET", FIND_BY_INGREDIENTS, recipes(21))

    client.get("/latest-preferences-with-recipes")

    params = upstream.calls(FIND_BY_INGREDIENTS)[0].url.params
    assert "excludeIngredients" not in params
    assert "diet" not in params


def test_meal_flow_insufficient_results(client, upstream, ctx):
    client.post("/preferences", json=PREFERENCES)
    upstream.add("GET", FIND_BY_INGREDIENTS, recipes(20))

    response = client.get("/latest-preferences-with-recipes")

    assert response.status_code == 500
    assert response.json()["message"] == "Expected at least 21 recipes, got 20"
    assert ctx.store.select("meal_data") == []
    assert ctx.store.select("user_meal") == []


def test_meal_flow_without_preferences(client):
    response = client.get("/latest-preferences-with-recipes")

    assert response.status_code == 404
    assert response.json() == {"error": "No user preferences found"}


def test_latest_meal_data_empty(client):
    assert client.get("/latest-meal-data").status_code == 404


# ----------------------------------------------------------------------------
# Exercises
# ----------------------------------------------------------------------------

def test_exercises_passthrough(client, upstream):
    upstream.add("GET", "/exercises", exercises(10))

    response = client.get("/exercises")

    assert len(response.json()) == 10
    params = upstream.calls("/exercises")[0].url.params
    assert params["limit"] == "10"
    assert params["offset"] == "0"


def test_exercise_flow(client, upstream, ctx):
    client.post("/preferences", json=PREFERENCES)
    upstream.add("GET", "/exercises/bodyPart/upper legs", exercises(7))

    response = client.get("/latest-preferences-with-exercises")

    assert response.status_code == 200
    result = response.json()["exercises"]
    assert [e["id"] for e in result] == [f"{i:04d}" for i in range(1, 8)]
    assert result[0]["gifUrl"] == "https://gif.test/1.gif"
    assert result[0]["secondaryMuscles"] == ["glutes"]

    [selection] = ctx.store.select("user_exercise")
    assert selection["exercise_ids"] == [e["id"] for e in result]

    stored = client.get("/exercise-data/0003").json()
    assert stored["data"]["name"] == "exercise 3"
    assert stored["data"]["instructions"] == ["stand", "squat"]

    assert len(client.get("/latest-exercise-data").json()["data"]) == 7


def test_exercise_flow_insufficient_results(client, upstream):
    client.post("/preferences", json=PREFERENCES)
    upstream.add("GET", "/exercises/bodyPart/upper legs", exercises(3))

    response = client.get("/latest-preferences-with-exercises")

    assert response.status_code == 500
    assert response.json()["message"] == "Expected at least 7 exercises, got 3"


def test_exercise_flow_sentinel_body_part(client, upstream):
    client.post("/preferences", json={**PREFERENCES, "bodyPartTrained": "No"})

    response = client.get("/latest-preferences-with-exercises")

    assert response.status_code == 500
    assert upstream.requests == []


def test_exercise_data_not_found(client):
    response = client.get("/exercise-data/0042")

    assert response.status_code == 404
    assert response.json() == {"error": "No exercise data found with ID: 0042"}


# ----------------------------------------------------------------------------
# Nutrition
# ----------------------------------------------------------------------------

def test_nutrition_lookup_and_latest(client, upstream):
    def answer(request):
        query = json.loads(request.content)["query"]
        return {"foods": [{
            "food_name": query,
            "serving_qty": 1,
            "serving_unit": "cup",
            "nf_calories": 100.0,
            "nf_protein": 3.5,
            "photo": {"highres": f"https://photo.test/{query}.jpg"},
        }]}

    upstream.add("POST", NUTRIENTS, answer)

    first = client.get("/nutrition", params={"query": "oats"})
    client.get("/nutrition", params={"query": "milk"})

    assert first.status_code == 200
    data = first.json()["data"]
    assert data["food_name"] == "oats"
    assert data["image_url"] == "https://photo.test/oats.jpg"

    headers = upstream.calls(NUTRIENTS)[0].headers
    assert "x-app-id" in headers
    assert "x-app-key" in headers

    latest = client.get("/latest-nutrition").json()
    assert [row["food_name"] for row in latest] == ["milk", "oats"]


def test_nutrition_requires_query(client):
    assert client.get("/nutrition").status_code == 400


def test_nutrition_no_match(client, upstream, ctx):
    upstream.add("POST", NUTRIENTS, {"foods": []})

    response = client.get("/nutrition", params={"query": "xyzzy"})

    assert response.status_code == 404
    assert ctx.store.select("nutrition_data") == []


# ----------------------------------------------------------------------------
# Event loop
# ----------------------------------------------------------------------------

def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def test_store_calls_stay_off_the_event_loop(client, upstream, ctx, monkeypatch):
    seen = []

    def record(method):
        def wrapper(*args, **kwargs):
            seen.append((method.__name__, _on_event_loop()))
            return method(*args, **kwargs)
        return wrapper

    for name in ("ping", "insert", "select", "upsert"):
        monkeypatch.setattr(ctx.store, name, record(getattr(ctx.store, name)))

    upstream.add("GET", FIND_BY_INGREDIENTS, recipes(21))
    upstream.add("GET", "/exercises/bodyPart/upper legs", exercises(7))
    upstream.add("POST", NUTRIENTS, {"foods": [{"food_name": "oats"}]})

    client.get("/health")
    client.post("/preferences", json=PREFERENCES)
    client.get("/latest-preferences")
    assert client.get("/latest-preferences-with-recipes").status_code == 200
    client.get("/latest-meal-data")
    assert client.get("/latest-preferences-with-exercises").status_code == 200
    client.get("/exercise-data/0001")
    client.get("/latest-exercise-data")
    assert client.get("/nutrition", params={"query": "oats"}).status_code == 200
    client.get("/latest-nutrition")

    assert {name for name, _ in seen} == {"ping", "insert", "select", "upsert"}
    assert [name for name, on_loop in seen if on_loop] == []
