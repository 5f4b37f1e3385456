"""
MealFit Relay Configuration
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
DB_PATH = Path(os.getenv("DB_PATH", DATA_DIR / "mealfit.db"))

# Server
PORT = int(os.getenv("PORT", "5000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Completion endpoint (OpenAI-compatible)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-3.5-turbo")
LLM_MAX_TOKENS = 150

# Outbound HTTP
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))

# Spoonacular API Configuration
SPOONACULAR_API_KEY = os.getenv("SPOONACULAR_API_KEY", "")
SPOONACULAR_BASE_URL = "https://api.spoonacular.com"

# Nutritionix API Configuration
NUTRITIONIX_APP_ID = os.getenv("NUTRITIONIX_APP_ID", "")
NUTRITIONIX_API_KEY = os.getenv("NUTRITIONIX_API_KEY", "")
NUTRITIONIX_BASE_URL = "https://trackapi.nutritionix.com"

# ExerciseDB (RapidAPI) Configuration
RAPIDAPI_KEY = os.getenv("RAPIDAPI_KEY", "")
EXERCISEDB_HOST = "exercisedb.p.rapidapi.com"
EXERCISEDB_BASE_URL = f"https://{EXERCISEDB_HOST}"

# CORS - Frontend URLs
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    os.getenv("FRONTEND_URL", ""),  # Production frontend URL
]
# Filter empty strings
CORS_ORIGINS = [origin for origin in CORS_ORIGINS if origin]

# Placeholder stored when a preference field could not be extracted
SENTINEL = "No"

# Dietary preferences the extraction prompt chooses from
DIET_OPTIONS = ["high-protein", "vegetarian"]

# Body parts understood by ExerciseDB
BODY_PARTS = [
    "back", "cardio", "chest", "lower arms", "lower legs",
    "neck", "shoulders", "upper arms", "upper legs", "waist"
]

# Recipe search sizes
RECIPE_SEARCH_LIMIT = 10
COMBINED_SEARCH_LIMIT = 3
MEAL_CANDIDATES = 200

# Selection sizes
MEAL_SLOTS = 21
EXERCISE_SLOTS = 7

# Listing sizes
EXERCISE_LIST_LIMIT = 10
LATEST_NUTRITION_LIMIT = 20
